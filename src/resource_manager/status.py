"""Status aggregation across every managed resource kind.

Each kind is queried in isolation: a failure fills that kind's sub-status
with ``error`` and the message, and the remaining kinds are still queried.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel

from .exceptions import error_message
from .models import ERROR, ResourceStatus
from .resources import ManagedResource

logger = logging.getLogger(__name__)


class StatusAggregator:
    """Builds a ``ResourceStatus`` from live provider state."""

    def __init__(self, resources: Sequence[ManagedResource]):
        self.resources = list(resources)

    def query(self, resource: ManagedResource) -> BaseModel:
        try:
            return resource.status()
        except Exception as e:
            logger.error(
                f"{resource.label} status failed: {error_message(e)}",
                extra={"component": resource.kind, "action": "status"},
            )
            return resource.status_model(status=ERROR, message=error_message(e))

    def collect(self) -> ResourceStatus:
        statuses = {_field_name(r.kind): self.query(r) for r in self.resources}
        return ResourceStatus(**statuses)


def _field_name(kind: str) -> str:
    # ``lambda`` is a keyword; the model field is ``lambda_``
    return "lambda_" if kind == "lambda" else kind
