"""Custom exceptions for the Resource Manager service.

Defines the exception hierarchy used across discovery, state transitions,
scheduling and cost optimization.
"""

from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

# Errors raised by boto3 calls: provider responses and client-side failures
AwsError = (ClientError, BotoCoreError)


class ResourceManagerError(Exception):
    """Base exception for all resource manager errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ProductionGuardError(ResourceManagerError):
    """Raised when a state transition is requested against a protected environment."""

    def __init__(self, operation: str, environment: str, **kwargs):
        capitalized = operation[:1].upper() + operation[1:]
        message = f"{capitalized} operation is blocked in production environment"
        super().__init__(message, **kwargs)
        self.operation = operation
        self.environment = environment
        self.details.update({"operation": operation, "environment": environment})


class DiscoveryError(ResourceManagerError):
    """Raised when a resource listing call fails for a set-shaped kind."""

    def __init__(self, message: str, kind: str, **kwargs):
        super().__init__(message, **kwargs)
        self.kind = kind
        self.details["kind"] = kind


class ScheduleError(ResourceManagerError):
    """Raised when scheduler operations fail."""

    def __init__(self, message: str, operation: str, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.details["operation"] = operation


class OptimizationError(ResourceManagerError):
    """Raised when cost analysis or optimization fails."""

    def __init__(self, message: str, service: str, **kwargs):
        super().__init__(message, **kwargs)
        self.service = service
        self.details["service"] = service


class ConfigurationError(ResourceManagerError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, config_key: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.config_key = config_key
        if config_key:
            self.details["config_key"] = config_key


class ValidationError(ResourceManagerError):
    """Raised when request parameters are invalid."""

    def __init__(self, message: str, field: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        if field:
            self.details["field"] = field


def error_code(exc: BaseException) -> str | None:
    """Return the provider error code carried by a botocore ClientError."""
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def error_message(exc: BaseException) -> str:
    """Return the plain error text, without botocore's operation preamble."""
    if isinstance(exc, ClientError):
        message = exc.response.get("Error", {}).get("Message")
        if message:
            return message
    if isinstance(exc, ResourceManagerError):
        return exc.message
    return str(exc)
