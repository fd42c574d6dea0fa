"""CloudFront distributions: disable on shutdown, enable on startup.

Updates use the distribution's ETag as an optimistic-concurrency token and
are skipped entirely when ``Enabled`` already has the target value.
"""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import AwsError, DiscoveryError, error_message
from ..models import ACTIVE, ERROR, CloudFrontDistributionDetails, CloudFrontStatus, TransitionReport
from .base import ManagedResource, paginate

logger = logging.getLogger(__name__)


class CloudFrontResource(ManagedResource):
    kind = "cloudfront"
    label = "CloudFront"
    status_model = CloudFrontStatus

    def find_distributions(self) -> list[dict[str, Any]]:
        """Return the summaries of every distribution carrying the required tags."""
        client = self.clients.cloudfront

        def fetch_tags(arn: str):
            return client.list_tags_for_resource(Resource=arn).get("Tags", {})

        try:
            distributions = list(self._list_distributions())
        except AwsError as e:
            raise DiscoveryError(error_message(e), kind=self.kind) from e
        return self.filter_tagged(distributions, lambda d: d.get("ARN"), fetch_tags)

    def _list_distributions(self):
        paginator = self.clients.cloudfront.get_paginator("list_distributions")
        for page in paginator.paginate():
            yield from (page.get("DistributionList") or {}).get("Items") or []

    def set_enabled(self, distribution_id: str, enabled: bool) -> bool:
        """Flip ``Enabled`` on one distribution.

        Returns:
            True if an update was written, False if already in the target state
        """
        client = self.clients.cloudfront
        response = client.get_distribution_config(Id=distribution_id)
        etag = response.get("ETag")
        config = response.get("DistributionConfig")
        if not config or not etag:
            logger.warning(
                f"CloudFront distribution {distribution_id} returned no config or ETag, skipping",
                extra=self.log_extra("update", distribution_id=distribution_id),
            )
            return False

        state = "enabled" if enabled else "disabled"
        if config.get("Enabled") is enabled:
            logger.info(
                f"CloudFront distribution already {state}: {distribution_id}",
                extra=self.log_extra("update", distribution_id=distribution_id),
            )
            return False

        config["Enabled"] = enabled
        client.update_distribution(Id=distribution_id, IfMatch=etag, DistributionConfig=config)
        logger.info(
            f"CloudFront distribution {state}: {distribution_id}",
            extra=self.log_extra("update", distribution_id=distribution_id),
        )
        return True

    def _transition(self, action: str, enabled: bool) -> TransitionReport:
        report = TransitionReport()
        distributions = self.find_distributions()
        if not distributions:
            logger.info("No CloudFront distributions found for environment", extra=self.log_extra(action))

        for dist in distributions:
            dist_id = dist.get("Id")
            if not dist_id:
                continue
            try:
                self.set_enabled(dist_id, enabled)
                report.record(dist_id, True)
            except AwsError as e:
                logger.error(
                    f"CloudFront {action} failed for {dist_id}: {error_message(e)}",
                    extra=self.log_extra(action, distribution_id=dist_id),
                )
                report.record(dist_id, False, f"{self.label} {dist_id}: {error_message(e)}")
        return report

    def shutdown(self) -> TransitionReport:
        return self._transition("shutdown", False)

    def startup(self) -> TransitionReport:
        return self._transition("startup", True)

    def status(self) -> CloudFrontStatus:
        try:
            distributions = self.find_distributions()
        except DiscoveryError as e:
            return CloudFrontStatus(status=ERROR, message=e.message)

        details = [
            CloudFrontDistributionDetails(
                id=d.get("Id") or "",
                arn=d.get("ARN"),
                domain_name=d.get("DomainName"),
                aliases=(d.get("Aliases") or {}).get("Items") or [],
                enabled=d.get("Enabled") is True,
                status=d.get("Status"),
                price_class=d.get("PriceClass"),
            )
            for d in distributions
        ]
        return CloudFrontStatus(
            status=ACTIVE,
            distributions=details,
            message=f"{len(details)} distributions found",
        )
