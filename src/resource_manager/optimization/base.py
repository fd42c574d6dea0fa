"""Region handling shared by the cost optimizers."""

from __future__ import annotations

import re

from ..clients import AwsClients
from ..config import ResourceManagerConfig
from ..exceptions import ValidationError

REGION_PATTERN = re.compile(r"^[a-z0-9-]+$")

BYTES_PER_GB = 1024**3


class RegionalOptimizer:
    """Base for optimizers that accept an optional target region per call."""

    service = ""

    def __init__(self, config: ResourceManagerConfig, clients: AwsClients | None = None):
        self.config = config
        self.clients = clients if clients is not None else AwsClients(config.aws_region)

    def resolve_region(self, region: str | None) -> str:
        """Return ``region`` (or the configured one) after validating its format."""
        target = region or self.config.aws_region
        if not target or not REGION_PATTERN.match(target):
            raise ValidationError(f"Invalid region format: {target}", field="region")
        return target

    def clients_for(self, region: str | None) -> tuple[str, AwsClients]:
        target = self.resolve_region(region)
        return target, self.clients.for_region(target)
