"""EventBridge Scheduler management.

Schedules invoke the manager's own Lambda function with
``{"action": ..., "environment": ...}`` at the given expression.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .clients import AwsClients
from .config import ResourceManagerConfig
from .exceptions import AwsError, ConfigurationError, ScheduleError, ValidationError, error_message
from .resources.base import paginate

logger = logging.getLogger(__name__)

SCHEDULE_ACTIONS = ("shutdown", "startup")
EXPRESSION_PREFIXES = ("cron(", "rate(", "at(")


class ScheduleManager:
    """Create, list and delete shutdown/startup schedules."""

    def __init__(self, config: ResourceManagerConfig, clients: AwsClients | None = None):
        self.config = config
        self.clients = clients if clients is not None else AwsClients(config.aws_region)

    @property
    def scheduler(self) -> Any:
        return self.clients.scheduler

    def list_schedules(self) -> list[dict[str, Any]]:
        try:
            return list(paginate(self.scheduler, "list_schedules", "Schedules"))
        except AwsError as e:
            logger.error(
                f"Failed to get schedules: {error_message(e)}",
                extra={"component": "scheduler", "action": "list"},
            )
            raise ScheduleError(error_message(e), operation="list") from e

    def create_schedule(self, name: str, expression: str, action: str, environment: str) -> dict[str, Any]:
        """Create a schedule targeting the manager's own function.

        Args:
            name: Schedule name
            expression: ``cron(...)``, ``rate(...)`` or ``at(...)``
            action: ``shutdown`` or ``startup``
            environment: Environment passed through in the target input

        Returns:
            The CreateSchedule response (carries ``ScheduleArn``)
        """
        if action not in SCHEDULE_ACTIONS:
            raise ValidationError(f"Action must be one of: {list(SCHEDULE_ACTIONS)}", field="action")
        if not expression.startswith(EXPRESSION_PREFIXES) or not expression.endswith(")"):
            raise ValidationError("Expression must be cron(...), rate(...) or at(...)", field="cron")

        settings = self.config.lambda_settings
        if not settings.function_arn:
            raise ConfigurationError("LAMBDA_FUNCTION_ARN is not configured", config_key="lambda_settings.function_arn")
        if not settings.role_arn:
            raise ConfigurationError("LAMBDA_ROLE_ARN is not configured", config_key="lambda_settings.role_arn")

        try:
            response = self.scheduler.create_schedule(
                Name=name,
                ScheduleExpression=expression,
                Target={
                    "Arn": settings.function_arn,
                    "RoleArn": settings.role_arn,
                    "Input": json.dumps({"action": action, "environment": environment}),
                },
                FlexibleTimeWindow={"Mode": "OFF"},
            )
        except AwsError as e:
            logger.error(
                f"Failed to create schedule {name}: {error_message(e)}",
                extra={"component": "scheduler", "action": "create", "schedule": name},
            )
            raise ScheduleError(error_message(e), operation="create") from e

        logger.info(
            f"Created schedule {name} ({expression}) to {action} {environment}",
            extra={"component": "scheduler", "action": "create", "schedule": name},
        )
        return response

    def delete_schedule(self, name: str) -> None:
        try:
            self.scheduler.delete_schedule(Name=name)
        except AwsError as e:
            logger.error(
                f"Failed to delete schedule {name}: {error_message(e)}",
                extra={"component": "scheduler", "action": "delete", "schedule": name},
            )
            raise ScheduleError(error_message(e), operation="delete") from e
        logger.info(f"Deleted schedule {name}", extra={"component": "scheduler", "action": "delete", "schedule": name})
