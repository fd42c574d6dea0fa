"""Operation orchestrator for shutdown, startup and status.

Every call re-discovers resources from scratch; nothing is cached between
calls. Shutdown and startup run each resource kind in a fixed order and fold
the per-kind outcomes into one ``OperationResult`` with ``record_step``, so a
failing kind never stops the kinds after it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from functools import reduce
from typing import Literal

from .clients import AwsClients
from .config import ResourceManagerConfig
from .exceptions import ProductionGuardError, error_message
from .models import OperationResult, ResourceStatus
from .resources import (
    AppRunnerResource,
    CloudFrontResource,
    Ec2Resource,
    ElastiCacheResource,
    LambdaResource,
    ManagedResource,
    RdsResource,
)
from .status import StatusAggregator

logger = logging.getLogger(__name__)

Action = Literal["shutdown", "startup"]

RESOURCE_KINDS: tuple[type[ManagedResource], ...] = (
    RdsResource,
    ElastiCacheResource,
    AppRunnerResource,
    CloudFrontResource,
    LambdaResource,
    Ec2Resource,
)


def record_step(result: OperationResult, resource: ManagedResource, action: Action) -> OperationResult:
    """Run one kind's transition and fold its outcome into ``result``.

    Any exception is recorded as ``"<label>: <message>"`` and the kind is
    marked failed; the exception never escapes.
    """
    field = "lambda_" if resource.kind == "lambda" else resource.kind
    try:
        report = resource.shutdown() if action == "shutdown" else resource.startup()
    except Exception as e:
        logger.error(
            f"{resource.label} {action} failed: {error_message(e)}",
            extra={"component": resource.kind, "action": action},
        )
        result.errors.append(f"{resource.label}: {error_message(e)}")
        if resource.kind != "cloudfront":
            setattr(result.resources, field, False)
        return result

    if resource.kind == "cloudfront":
        result.resources.cloudfront.update(report.items)
    else:
        setattr(result.resources, field, report.ok)
    result.errors.extend(report.errors)
    return result


class ResourceOrchestrator:
    """Entry point for shutting down, starting up and inspecting an environment."""

    def __init__(
        self,
        config: ResourceManagerConfig,
        clients: AwsClients | None = None,
        resources: Sequence[ManagedResource] | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            config: Service configuration (environment, tags, self-exclusion)
            clients: AWS client set; built from ``config.aws_region`` when omitted
            resources: Resource kinds to manage, in execution order
        """
        self.config = config
        self.clients = clients if clients is not None else AwsClients(config.aws_region)
        if resources is None:
            resources = [kind(config, self.clients) for kind in RESOURCE_KINDS]
        self.resources = list(resources)

    @property
    def environment(self) -> str:
        return self.config.environment

    def _guard(self, action: Action) -> None:
        if self.config.is_protected:
            logger.warning(
                f"Refusing {action} in protected environment {self.environment}",
                extra={"component": "orchestrator", "action": action},
            )
            raise ProductionGuardError(action, self.environment)

    def _run(self, action: Action) -> OperationResult:
        self._guard(action)
        logger.info(
            f"Starting {action} for environment {self.environment}",
            extra={"component": "orchestrator", "action": action},
        )

        result = reduce(
            lambda acc, resource: record_step(acc, resource, action),
            self.resources,
            OperationResult(operation=action, environment=self.environment),
        )

        try:
            result.status = self.get_resource_status()
        except Exception as e:
            logger.warning(
                f"Status snapshot after {action} unavailable: {error_message(e)}",
                extra={"component": "orchestrator", "action": action},
            )

        if result.success:
            logger.info(f"{action.capitalize()} completed for {self.environment}")
        else:
            logger.error(
                f"{action.capitalize()} completed with {len(result.errors)} errors for {self.environment}",
                extra={"component": "orchestrator", "action": action, "errors": result.errors},
            )
        return result

    def shutdown_resources(self) -> OperationResult:
        """Stop every managed resource in the environment."""
        return self._run("shutdown")

    def startup_resources(self) -> OperationResult:
        """Start every managed resource in the environment."""
        return self._run("startup")

    def get_resource_status(self) -> ResourceStatus:
        """Query live state of every resource kind."""
        return StatusAggregator(self.resources).collect()
