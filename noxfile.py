"""Nox configuration for Resource Manager development automation.

This file defines automated development tasks including linting, testing,
formatting and running the API locally.
"""

import nox

# Python versions to test against
PYTHON_VERSIONS = ["3.11"]

# Default sessions to run when no specific session is requested
nox.options.sessions = ["lint", "test", "coverage"]


@nox.session(python=PYTHON_VERSIONS)
def lint(session):
    """Run linting with ruff and mypy."""
    session.install("poetry")
    session.run("poetry", "install", "--all-extras")

    # Run ruff for code quality
    session.run("poetry", "run", "ruff", "check", "src", "tests", "lambda")

    # Run mypy for type checking
    session.run("poetry", "run", "mypy", "src")

    session.log("✅ Linting completed successfully")


@nox.session(python=PYTHON_VERSIONS)
def format_code(session):
    """Format code with black and isort."""
    session.install("poetry")
    session.run("poetry", "install", "--all-extras")

    session.run("poetry", "run", "black", "src", "tests", "lambda")
    session.run("poetry", "run", "isort", "src", "tests", "lambda")
    session.run("poetry", "run", "ruff", "check", "--fix", "src", "tests", "lambda")

    session.log("✅ Code formatting completed")


@nox.session(python=PYTHON_VERSIONS)
def test(session):
    """Run the test suite with pytest."""
    session.install("poetry")
    session.run("poetry", "install", "--all-extras")

    session.run(
        "poetry", "run", "pytest",
        "tests/",
        "-v",
        "--tb=short",
        "--strict-markers",
        *session.posargs,
    )

    session.log("✅ Unit tests completed successfully")


@nox.session(python=PYTHON_VERSIONS)
def coverage(session):
    """Run tests with coverage reporting."""
    session.install("poetry")
    session.run("poetry", "install", "--all-extras")

    session.run(
        "poetry", "run", "pytest",
        "tests/",
        "--cov=resource_manager",
        "--cov-report=term-missing",
        "--cov-report=html:htmlcov",
        "--cov-report=xml:coverage.xml",
        "--cov-fail-under=80",
    )

    session.log("✅ Coverage analysis completed")
    session.log("📊 Coverage report available at htmlcov/index.html")


@nox.session(python=PYTHON_VERSIONS)
def serve(session):
    """Run the API locally against the local config.

    Examples:
      nox -s serve
      nox -s serve -- --env dev --port 9000
    """
    session.install("poetry")
    session.run("poetry", "install")
    args = session.posargs or ["--env", "local"]
    session.run("poetry", "run", "resource-manager", "serve", *args)


@nox.session(python=PYTHON_VERSIONS)
def clean(session):
    """Clean up build artifacts and cache files."""
    import os
    import shutil

    clean_dirs = [
        ".pytest_cache",
        "__pycache__",
        ".coverage",
        "htmlcov",
        "coverage.xml",
        "dist",
        ".ruff_cache",
        ".mypy_cache",
    ]

    for dir_name in clean_dirs:
        if os.path.exists(dir_name):
            if os.path.isdir(dir_name):
                shutil.rmtree(dir_name)
                session.log(f"🗑️  Removed directory: {dir_name}")
            else:
                os.remove(dir_name)
                session.log(f"🗑️  Removed file: {dir_name}")

    session.log("✅ Cleanup completed")


@nox.session(python=PYTHON_VERSIONS)
def security(session):
    """Run security checks with bandit and safety."""
    session.install("poetry")
    session.run("poetry", "install")

    session.install("bandit", "safety")
    session.run("bandit", "-r", "src", "lambda", "-f", "json")
    session.run("safety", "check")

    session.log("✅ Security checks completed")


@nox.session(python=PYTHON_VERSIONS)
def pre_commit(session):
    """Run all pre-commit checks."""
    session.notify("format_code")
    session.notify("lint")
    session.notify("test")
    session.notify("security")

    session.log("✅ All pre-commit checks queued")
