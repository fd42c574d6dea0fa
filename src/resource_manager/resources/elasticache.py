"""ElastiCache replication group.

Replication groups have no pause/resume primitive, so shutdown and startup
only resolve the group and log the intent. Status is live.
"""

from __future__ import annotations

import logging

from ..exceptions import AwsError, error_message
from ..models import ERROR, NOT_FOUND, ElastiCacheStatus, TransitionReport
from .base import ManagedResource, is_client_error, paginate

logger = logging.getLogger(__name__)


class ElastiCacheResource(ManagedResource):
    kind = "elasticache"
    label = "ElastiCache"
    status_model = ElastiCacheStatus

    def find_by_tags(self) -> str | None:
        client = self.clients.elasticache

        def fetch_tags(arn: str):
            return client.list_tags_for_resource(ResourceName=arn).get("TagList", [])

        try:
            groups = paginate(client, "describe_replication_groups", "ReplicationGroups")
            for group in self.filter_tagged(groups, lambda g: g.get("ARN"), fetch_tags):
                if group.get("ReplicationGroupId"):
                    return group["ReplicationGroupId"]
        except AwsError as e:
            logger.warning(
                f"ElastiCache tag discovery failed, using naming convention: {error_message(e)}",
                extra=self.log_extra("discover"),
            )
        return None

    def locate(self) -> str:
        return self.find_by_tags() or self.config.fallback_name("redis")

    def shutdown(self) -> TransitionReport:
        group_id = self.locate()
        logger.info(
            f"ElastiCache shutdown not supported by the replication group API, leaving {group_id} running",
            extra=self.log_extra("shutdown", replication_group_id=group_id),
        )
        return TransitionReport()

    def startup(self) -> TransitionReport:
        group_id = self.locate()
        logger.info(
            f"ElastiCache startup not supported by the replication group API, {group_id} left as is",
            extra=self.log_extra("startup", replication_group_id=group_id),
        )
        return TransitionReport()

    def status(self) -> ElastiCacheStatus:
        group_id = self.locate()
        try:
            groups = self.clients.elasticache.describe_replication_groups(
                ReplicationGroupId=group_id
            ).get("ReplicationGroups", [])
        except AwsError as e:
            if is_client_error(e, "ReplicationGroupNotFoundFault"):
                return ElastiCacheStatus(
                    status=NOT_FOUND, replication_group_id=group_id, message="Replication group not found"
                )
            return ElastiCacheStatus(status=ERROR, replication_group_id=group_id, message=error_message(e))

        if not groups:
            return ElastiCacheStatus(
                status=NOT_FOUND, replication_group_id=group_id, message="Replication group not found"
            )
        state = groups[0].get("Status") or "unknown"
        return ElastiCacheStatus(
            status=state,
            replication_group_id=groups[0].get("ReplicationGroupId") or group_id,
            message=f"Replication group is {state}",
        )
