"""Shared behaviour for managed resource kinds.

Each kind combines a locator (tag scan with an optional naming fallback), an
idempotent shutdown/startup pair and a live status query.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from pydantic import BaseModel

from ..clients import AwsClients
from ..config import ResourceManagerConfig
from ..exceptions import AwsError, error_code, error_message
from ..models import KindStatus, TransitionReport
from ..tags import TagInput, tags_match

logger = logging.getLogger(__name__)


def is_client_error(exc: BaseException, *codes: str) -> bool:
    """Return True when ``exc`` is a ClientError carrying one of ``codes``."""
    return error_code(exc) in codes


def paginate(client: Any, operation: str, result_key: str, **kwargs: Any) -> Iterator[dict[str, Any]]:
    """Yield every item under ``result_key`` across all pages of ``operation``."""
    paginator = client.get_paginator(operation)
    for page in paginator.paginate(**kwargs):
        yield from page.get(result_key) or []


class ManagedResource(ABC):
    """Base class for one resource kind."""

    #: key in ``OperationResult.resources`` / ``ResourceStatus``
    kind: str = ""
    #: human-readable prefix used in error messages
    label: str = ""
    #: sub-status model returned by ``status()``
    status_model: type[KindStatus] = KindStatus

    def __init__(self, config: ResourceManagerConfig, clients: AwsClients):
        self.config = config
        self.clients = clients

    @property
    def environment(self) -> str:
        return self.config.environment

    @property
    def required_tags(self) -> dict[str, str]:
        return self.config.required_tags()

    def log_extra(self, action: str, **fields: Any) -> dict[str, Any]:
        return {"component": self.kind, "action": action, **fields}

    def filter_tagged(
        self,
        items: Iterable[dict[str, Any]],
        resource_id: Callable[[dict[str, Any]], str | None],
        fetch_tags: Callable[[str], TagInput],
    ) -> list[dict[str, Any]]:
        """Keep the items whose tags match the required tag set.

        A tag fetch that fails for one resource is logged and that resource is
        skipped; the rest of the scan continues.
        """
        matches: list[dict[str, Any]] = []
        for item in items:
            rid = resource_id(item)
            if not rid:
                continue
            try:
                tags = fetch_tags(rid)
            except AwsError as e:
                logger.warning(
                    f"Skipping {self.label} resource {rid}: tag lookup failed: {error_message(e)}",
                    extra=self.log_extra("discover", resource=rid),
                )
                continue
            if tags_match(self.required_tags, tags):
                matches.append(item)
        return matches

    @abstractmethod
    def shutdown(self) -> TransitionReport:
        """Move every managed resource of this kind to its stopped state."""

    @abstractmethod
    def startup(self) -> TransitionReport:
        """Move every managed resource of this kind to its running state."""

    @abstractmethod
    def status(self) -> BaseModel:
        """Query live provider state for this kind."""
