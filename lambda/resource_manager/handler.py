"""Scheduled Lambda entry point for the Resource Manager.

EventBridge Scheduler invokes this function with
``{"action": "shutdown" | "startup" | "status", "environment": ...}``.
The environment the function is deployed into is authoritative; a different
``environment`` in the event is logged and ignored.

Accepts a `clients` dict for injection of boto3-like clients in unit tests.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from resource_manager.clients import AwsClients
from resource_manager.config import ResourceManagerConfig
from resource_manager.exceptions import ProductionGuardError
from resource_manager.logging_config import configure_logging
from resource_manager.orchestrator import ResourceOrchestrator

logger = logging.getLogger("resource_manager_lambda")

ACTIONS = ("shutdown", "startup", "status")


def lambda_handler(event: Dict[str, Any], context: Any = None, *, clients: Dict[str, Any] | None = None) -> Dict[str, Any]:
    config = ResourceManagerConfig.from_env()
    configure_logging(config)

    event = event or {}
    action = event.get("action")
    if action not in ACTIONS:
        logger.error(f"Unknown action: {action!r}")
        return {"status": "error", "message": f"Unknown action: {action}. Must be one of {list(ACTIONS)}"}

    requested = event.get("environment")
    if requested and requested != config.environment:
        logger.warning(
            f"Event environment {requested} does not match configured environment {config.environment}, "
            f"using {config.environment}"
        )

    orchestrator = ResourceOrchestrator(config, AwsClients(config.aws_region, overrides=clients))
    logger.info(f"Scheduled {action} for {config.environment}", extra={"component": "lambda", "action": action})

    try:
        if action == "shutdown":
            result = orchestrator.shutdown_resources()
        elif action == "startup":
            result = orchestrator.startup_resources()
        else:
            result = orchestrator.get_resource_status()
    except ProductionGuardError as e:
        logger.warning(f"Scheduled {action} refused: {e.message}")
        return {"status": "error", "action": action, "message": e.message}

    return {"status": "success", "action": action, "result": result.model_dump(mode="json", by_alias=True)}
