"""Concurrency State Vault.

Before a Lambda function is throttled to zero its reserved concurrency is
saved so startup can restore the exact prior capacity. The value lives in a
tag on the function itself (``ResourceManagerPrevReservedConcurrency``);
``SnapshotStore`` isolates that storage so it can be replaced by a real
key-value store without touching the callers.

The read-then-write sequence is not locked: two overlapping shutdown/startup
runs for the same environment can race on the same tag.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from .exceptions import AwsError, error_message

logger = logging.getLogger(__name__)

UNLIMITED = "unlimited"


class RestoreOutcome(str, Enum):
    """How a function's reserved concurrency was restored."""

    RESTORED_VALUE = "restored-value"
    RESTORED_UNLIMITED = "restored-unlimited"
    DEFAULTED_UNLIMITED = "defaulted-unlimited"


class SnapshotStore(ABC):
    """Key-value storage for per-function snapshots, keyed by function ARN."""

    @abstractmethod
    def get(self, function_arn: str) -> str | None:
        """Return the stored snapshot, or None if absent."""

    @abstractmethod
    def put(self, function_arn: str, value: str) -> None:
        """Store (or overwrite) the snapshot."""

    @abstractmethod
    def delete(self, function_arn: str) -> None:
        """Remove the snapshot."""


class LambdaTagSnapshotStore(SnapshotStore):
    """Stores snapshots as a tag on the Lambda function itself."""

    def __init__(self, lambda_client: Any, tag_key: str):
        self.lambda_client = lambda_client
        self.tag_key = tag_key

    def get(self, function_arn: str) -> str | None:
        tags = self.lambda_client.list_tags(Resource=function_arn).get("Tags") or {}
        return tags.get(self.tag_key)

    def put(self, function_arn: str, value: str) -> None:
        self.lambda_client.tag_resource(Resource=function_arn, Tags={self.tag_key: value})

    def delete(self, function_arn: str) -> None:
        self.lambda_client.untag_resource(Resource=function_arn, TagKeys=[self.tag_key])


def encode_concurrency(value: int | None) -> str:
    """Encode a reserved concurrency value; None means no limit."""
    return UNLIMITED if value is None else str(value)


def decode_concurrency(raw: str | None) -> int | str | None:
    """Decode a stored snapshot.

    Returns:
        ``"unlimited"``, a positive int, or None when absent or unusable
    """
    if raw is None:
        return None
    if raw == UNLIMITED:
        return UNLIMITED
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


class ConcurrencyVault:
    """Save and restore Lambda reserved concurrency around a shutdown."""

    def __init__(self, lambda_client: Any, store: SnapshotStore):
        self.lambda_client = lambda_client
        self.store = store

    def save(self, function_arn: str, value: int | None) -> bool:
        """Persist ``value`` for the function.

        The store is only written when the new value differs from what is
        already saved. A throttled value of 0 never replaces an existing
        snapshot, so repeating a shutdown keeps the pre-shutdown capacity.

        Returns:
            True if the store was written
        """
        encoded = encode_concurrency(value)
        existing = self.store.get(function_arn)
        if existing == encoded:
            logger.debug(f"Concurrency snapshot unchanged for {function_arn}: {encoded}")
            return False
        if value == 0 and existing is not None:
            logger.info(
                f"{function_arn} is already throttled, keeping saved concurrency {existing}",
                extra={"component": "lambda", "action": "snapshot", "saved_value": existing},
            )
            return False
        self.store.put(function_arn, encoded)
        logger.info(
            f"Saved previous concurrency state for {function_arn}: {encoded}",
            extra={"component": "lambda", "action": "snapshot", "saved_value": encoded},
        )
        return True

    def restore(self, function_arn: str) -> RestoreOutcome:
        """Reapply the saved concurrency and remove the snapshot.

        With no usable snapshot the function is assumed to have been
        unlimited and any limit is removed.
        """
        raw = self.store.get(function_arn)
        snapshot = decode_concurrency(raw)

        if snapshot == UNLIMITED:
            self.lambda_client.delete_function_concurrency(FunctionName=function_arn)
            logger.info(f"Restored unlimited concurrency for {function_arn}")
            outcome = RestoreOutcome.RESTORED_UNLIMITED
        elif isinstance(snapshot, int):
            self.lambda_client.put_function_concurrency(
                FunctionName=function_arn, ReservedConcurrentExecutions=snapshot
            )
            logger.info(f"Restored reserved concurrency {snapshot} for {function_arn}")
            outcome = RestoreOutcome.RESTORED_VALUE
        else:
            if raw is not None:
                logger.warning(f"Ignoring unusable concurrency snapshot {raw!r} on {function_arn}")
            else:
                logger.info(f"No previous concurrency snapshot for {function_arn}, assuming unlimited")
            self.lambda_client.delete_function_concurrency(FunctionName=function_arn)
            outcome = RestoreOutcome.DEFAULTED_UNLIMITED

        if raw is not None:
            try:
                self.store.delete(function_arn)
            except AwsError as e:
                logger.warning(f"Failed to remove concurrency snapshot from {function_arn}: {error_message(e)}")
        return outcome
