"""App Runner service: pause on shutdown, resume on startup."""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import AwsError, error_message
from ..models import ERROR, NOT_FOUND, AppRunnerStatus, TransitionReport
from .base import ManagedResource, is_client_error

logger = logging.getLogger(__name__)


class AppRunnerResource(ManagedResource):
    kind = "apprunner"
    label = "App Runner"
    status_model = AppRunnerStatus

    def list_services(self) -> list[dict[str, Any]]:
        # App Runner has no boto3 paginator for ListServices
        client = self.clients.apprunner
        services: list[dict[str, Any]] = []
        kwargs: dict[str, Any] = {}
        while True:
            response = client.list_services(**kwargs)
            services.extend(response.get("ServiceSummaryList") or [])
            token = response.get("NextToken")
            if not token:
                return services
            kwargs["NextToken"] = token

    def locate(self) -> dict[str, Any] | None:
        """Return the tagged service summary, or the one named by convention.

        The naming fallback needs the service listing too, so a listing
        failure propagates.
        """
        client = self.clients.apprunner
        fallback_name = self.config.fallback_name("service")
        services = self.list_services()

        def fetch_tags(arn: str):
            return client.list_tags_for_resource(ResourceArn=arn).get("Tags", [])

        tagged = self.filter_tagged(services, lambda s: s.get("ServiceArn"), fetch_tags)
        if tagged:
            return tagged[0]
        return next((s for s in services if s.get("ServiceName") == fallback_name), None)

    def _transition(self, action: str, target_state: str) -> TransitionReport:
        service = self.locate()
        if not service or not service.get("ServiceArn"):
            logger.info(
                f"App Runner service not found (fallback name {self.config.fallback_name('service')})",
                extra=self.log_extra(action),
            )
            return TransitionReport()

        arn = service["ServiceArn"]
        if service.get("Status") == target_state:
            logger.info(f"App Runner service already {target_state}: {arn}", extra=self.log_extra(action))
            return TransitionReport()

        client = self.clients.apprunner
        try:
            if action == "shutdown":
                client.pause_service(ServiceArn=arn)
                logger.info(f"App Runner service paused: {arn}", extra=self.log_extra(action))
            else:
                client.resume_service(ServiceArn=arn)
                logger.info(f"App Runner service resumed: {arn}", extra=self.log_extra(action))
        except AwsError as e:
            if not is_client_error(e, "InvalidStateException"):
                raise
            logger.info(
                f"App Runner service not in a transitionable state ({error_message(e)}): {arn}",
                extra=self.log_extra(action),
            )
        return TransitionReport()

    def shutdown(self) -> TransitionReport:
        return self._transition("shutdown", "PAUSED")

    def startup(self) -> TransitionReport:
        return self._transition("startup", "RUNNING")

    def status(self) -> AppRunnerStatus:
        try:
            service = self.locate()
        except AwsError as e:
            return AppRunnerStatus(status=ERROR, message=error_message(e))
        if not service:
            return AppRunnerStatus(status=NOT_FOUND, message="Service not found")
        state = service.get("Status") or "unknown"
        return AppRunnerStatus(
            status=state,
            service_arn=service.get("ServiceArn") or "",
            message=f"Service is {state}",
        )
