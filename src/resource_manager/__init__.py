"""Resource Manager - environment shutdown/startup for tagged AWS resources.

This package discovers the AWS resources of an environment by tag, moves them
between running and stopped states idempotently, and reports live status.
"""

__version__ = "0.1.0"

from .config import ResourceManagerConfig, load_config
from .exceptions import ProductionGuardError, ResourceManagerError
from .orchestrator import ResourceOrchestrator

__all__ = [
    "ResourceManagerConfig",
    "ResourceManagerError",
    "ProductionGuardError",
    "ResourceOrchestrator",
    "load_config",
]
