"""Configuration management for the Resource Manager service.

Provides environment-specific configuration loading and validation for
tag-based discovery, Lambda self-exclusion and the HTTP surface.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

# Environments shipped with a config/<env>.yml file
KNOWN_ENVIRONMENTS = ["dev", "staging", "prod", "local"]


class TaggingConfig(BaseModel):
    """Configuration for tag-based resource discovery."""

    managed_by: str = Field("terraform", description="Required ManagedBy tag value")
    snapshot_tag_key: str = Field(
        "ResourceManagerPrevReservedConcurrency",
        description="Tag holding the pre-shutdown reserved concurrency of a function",
    )
    fallback_name_template: str = Field(
        "{environment}-{project}-{kind}-{region}",
        description="Naming convention used when tag discovery finds nothing",
    )


class LambdaSettings(BaseModel):
    """Configuration for the manager's own Lambda function."""

    function_arn: str | None = Field(None, description="ARN of the resource manager function")
    role_arn: str | None = Field(None, description="Role assumed by scheduler targets")
    excluded_name_patterns: list[str] = Field(
        default_factory=lambda: ["resource-manager-service"],
        description="Function name fragments never shut down",
    )


class ResourceManagerConfig(BaseModel):
    """Main configuration class for the Resource Manager service."""

    # Environment
    environment: str = Field("dev", description="Deployment environment")
    aws_region: str = Field("us-east-1", description="AWS region")
    project_name: str = Field("legitmark", description="Required Project tag value")
    protected_environments: list[str] = Field(
        default_factory=lambda: ["prod"],
        description="Environments where shutdown/startup are refused",
    )

    # Sub-configurations
    tagging: TaggingConfig = Field(default_factory=TaggingConfig)
    lambda_settings: LambdaSettings = Field(default_factory=LambdaSettings)

    # Service identity
    service_name: str = Field("resource-manager-service", description="Service name for logs")
    app_name: str = Field("resource-manager", description="Application name")

    # API settings
    api_host: str = Field("0.0.0.0", description="API host")
    api_port: int = Field(8000, description="API port")

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    structured_logging: bool = Field(True, description="Enable JSON log lines")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment values."""
        v = v.strip()
        if not v:
            raise ValueError("Environment must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level values."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of: {allowed_levels}")
        return v.upper()

    @property
    def is_protected(self) -> bool:
        """Whether shutdown/startup must be refused for this environment."""
        return self.environment in self.protected_environments

    def required_tags(self) -> dict[str, str]:
        """Tags every managed resource must carry for this environment."""
        return {
            "Environment": self.environment,
            "ManagedBy": self.tagging.managed_by,
            "Project": self.project_name,
        }

    def fallback_name(self, kind: str) -> str:
        """Build the conventional resource name for a kind."""
        return self.tagging.fallback_name_template.format(
            environment=self.environment,
            project=self.project_name,
            kind=kind,
            region=self.aws_region,
        )

    @classmethod
    def from_env(cls) -> "ResourceManagerConfig":
        """Load configuration from environment variables."""
        config_data: dict[str, Any] = {
            "environment": os.environ.get("NODE_ENV") or "dev",
            "aws_region": _region_from_env() or "us-east-1",
            "project_name": os.environ.get("PROJECT_NAME", "legitmark"),
            "service_name": os.environ.get("SERVICE_NAME", "resource-manager-service"),
            "app_name": os.environ.get("APP_NAME", "resource-manager"),
            "log_level": os.environ.get("LOG_LEVEL", "INFO"),
            "structured_logging": os.environ.get("STRUCTURED_LOGGING", "true").lower()
            in ("1", "true", "yes"),
            "lambda_settings": {
                "function_arn": os.environ.get("LAMBDA_FUNCTION_ARN") or None,
                "role_arn": os.environ.get("LAMBDA_ROLE_ARN") or None,
            },
        }

        return cls(**config_data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ResourceManagerConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            ResourceManagerConfig instance loaded from the file
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Try to infer environment from filename if not provided
        if "environment" not in data:
            stem = config_path.stem.lower()
            if stem in KNOWN_ENVIRONMENTS:
                data["environment"] = stem
            else:
                data["environment"] = os.environ.get("NODE_ENV", "dev")

        return cls(**data)


def _region_from_env() -> str | None:
    return os.environ.get("AWS_REGION_NAME") or os.environ.get("AWS_DEFAULT_REGION")


def load_config(environment: str, config_path: Path | None = None) -> ResourceManagerConfig:
    """Load configuration for the specified environment.

    Region, project name and the manager's Lambda ARNs are taken from the
    process environment when set, so the deployed function can share one
    configuration file across regions.

    Args:
        environment: Target environment (dev/staging/prod/local)
        config_path: Optional custom config file path

    Returns:
        Loaded configuration object

    Raises:
        FileNotFoundError: If config file is not found
        ValueError: If configuration is invalid
    """
    if config_path is None:
        config_dir = Path(__file__).parent.parent.parent / "config"
        config_path = config_dir / f"{environment}.yml"

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    config_data["environment"] = environment

    region = _region_from_env()
    if region:
        config_data["aws_region"] = region
    if os.getenv("PROJECT_NAME"):
        config_data["project_name"] = os.environ["PROJECT_NAME"]

    lambda_settings = dict(config_data.get("lambda_settings") or {})
    if os.getenv("LAMBDA_FUNCTION_ARN"):
        lambda_settings["function_arn"] = os.environ["LAMBDA_FUNCTION_ARN"]
    if os.getenv("LAMBDA_ROLE_ARN"):
        lambda_settings["role_arn"] = os.environ["LAMBDA_ROLE_ARN"]
    config_data["lambda_settings"] = lambda_settings

    return ResourceManagerConfig(**config_data)


def get_default_config(environment: str) -> dict[str, Any]:
    """Get default configuration for an environment.

    Args:
        environment: Target environment

    Returns:
        Default configuration dictionary
    """
    base_config: dict[str, Any] = {
        "environment": environment,
        "aws_region": "us-east-1",
        "project_name": "legitmark",
    }

    # Environment-specific overrides
    if environment == "prod":
        base_config["log_level"] = "WARNING"
    elif environment in ("dev", "local"):
        base_config["log_level"] = "DEBUG"
        base_config["structured_logging"] = environment != "local"

    return base_config
