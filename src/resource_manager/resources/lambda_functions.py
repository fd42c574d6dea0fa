"""Lambda functions: throttle to zero on shutdown, restore on startup.

The prior reserved concurrency of each function is kept in the concurrency
vault so startup reapplies exactly what was there. The manager's own function
is never touched.
"""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import AwsError, DiscoveryError, error_message
from ..models import ACTIVE, ERROR, LambdaFunctionDetails, LambdaStatus, ProvisionedConcurrencyDetail, TransitionReport
from ..snapshots import ConcurrencyVault, LambdaTagSnapshotStore
from .base import ManagedResource, is_client_error, paginate

logger = logging.getLogger(__name__)

LATEST = "$LATEST"
PROVISIONED_NOT_FOUND_CODES = ("ResourceNotFoundException", "ProvisionedConcurrencyConfigNotFoundException")


class LambdaResource(ManagedResource):
    kind = "lambda"
    label = "Lambda"
    status_model = LambdaStatus

    def __init__(self, config, clients, vault: ConcurrencyVault | None = None):
        super().__init__(config, clients)
        self._vault = vault

    @property
    def vault(self) -> ConcurrencyVault:
        if self._vault is None:
            client = self.clients.lambda_
            store = LambdaTagSnapshotStore(client, self.config.tagging.snapshot_tag_key)
            self._vault = ConcurrencyVault(client, store)
        return self._vault

    def is_excluded(self, function: dict[str, Any]) -> bool:
        """True for the manager's own function, matched by ARN or by name."""
        settings = self.config.lambda_settings
        arn = function.get("FunctionArn")
        if settings.function_arn and arn == settings.function_arn:
            return True
        name = function.get("FunctionName") or ""
        return any(pattern in name for pattern in settings.excluded_name_patterns)

    def find_functions(self, include_excluded: bool = False) -> list[dict[str, Any]]:
        """Return every tagged function, leaving out the manager's own unless asked."""
        client = self.clients.lambda_

        def fetch_tags(arn: str):
            return client.list_tags(Resource=arn).get("Tags", {})

        try:
            functions = list(paginate(client, "list_functions", "Functions"))
        except AwsError as e:
            raise DiscoveryError(error_message(e), kind=self.kind) from e

        selected = []
        for func in self.filter_tagged(functions, lambda f: f.get("FunctionArn"), fetch_tags):
            if not include_excluded and self.is_excluded(func):
                logger.info(
                    f"Skipping resource manager function: {func.get('FunctionName')}",
                    extra=self.log_extra("discover", function_name=func.get("FunctionName")),
                )
                continue
            selected.append(func)
        return selected

    def reserved_concurrency(self, function_arn: str) -> int | None:
        response = self.clients.lambda_.get_function_concurrency(FunctionName=function_arn)
        return response.get("ReservedConcurrentExecutions")

    def qualifiers(self, function_arn: str) -> list[str]:
        """``$LATEST`` plus every alias of the function."""
        aliases = paginate(self.clients.lambda_, "list_aliases", "Aliases", FunctionName=function_arn)
        return [LATEST] + [a["Name"] for a in aliases if a.get("Name")]

    def remove_provisioned_concurrency(self, function_arn: str, function_name: str) -> None:
        client = self.clients.lambda_
        try:
            qualifiers = self.qualifiers(function_arn)
        except AwsError as e:
            logger.warning(
                f"Could not list aliases for {function_name}, only clearing {LATEST}: {error_message(e)}",
                extra=self.log_extra("shutdown", function_name=function_name),
            )
            qualifiers = [LATEST]

        for qualifier in qualifiers:
            try:
                client.delete_provisioned_concurrency_config(FunctionName=function_arn, Qualifier=qualifier)
                logger.info(
                    f"Removed provisioned concurrency for {function_name}:{qualifier}",
                    extra=self.log_extra("shutdown", function_name=function_name, qualifier=qualifier),
                )
            except AwsError as e:
                if is_client_error(e, *PROVISIONED_NOT_FOUND_CODES):
                    continue
                logger.warning(
                    f"Failed to remove provisioned concurrency for {function_name}:{qualifier}: {error_message(e)}",
                    extra=self.log_extra("shutdown", function_name=function_name, qualifier=qualifier),
                )

    def throttle(self, function: dict[str, Any]) -> None:
        """Save the current reserved concurrency, then pin it to zero.

        Nothing is throttled unless the snapshot was saved first.
        """
        arn = function["FunctionArn"]
        name = function.get("FunctionName") or arn
        current = self.reserved_concurrency(arn)
        self.vault.save(arn, current)

        self.clients.lambda_.put_function_concurrency(FunctionName=arn, ReservedConcurrentExecutions=0)
        logger.info(
            f"Set reserved concurrency to 0 for {name} (previous: {current if current is not None else 'unlimited'})",
            extra=self.log_extra("shutdown", function_name=name),
        )
        self.remove_provisioned_concurrency(arn, name)

    def _transition(self, action: str) -> TransitionReport:
        report = TransitionReport()
        functions = self.find_functions()
        if not functions:
            logger.info("No Lambda functions found for environment", extra=self.log_extra(action))

        for func in functions:
            arn = func.get("FunctionArn")
            name = func.get("FunctionName") or arn
            if not arn:
                continue
            try:
                if action == "shutdown":
                    self.throttle(func)
                else:
                    outcome = self.vault.restore(arn)
                    logger.info(
                        f"Lambda {name} restored ({outcome.value})",
                        extra=self.log_extra(action, function_name=name, outcome=outcome.value),
                    )
                report.record(name, True)
            except AwsError as e:
                logger.error(
                    f"Lambda {action} failed for {name}: {error_message(e)}",
                    extra=self.log_extra(action, function_name=name),
                )
                report.record(name, False, f"{self.label} {name}: {error_message(e)}")
        return report

    def shutdown(self) -> TransitionReport:
        return self._transition("shutdown")

    def startup(self) -> TransitionReport:
        return self._transition("startup")

    def _provisioned(self, function_arn: str) -> list[ProvisionedConcurrencyDetail]:
        client = self.clients.lambda_
        details = []
        for qualifier in self.qualifiers(function_arn):
            try:
                config = client.get_provisioned_concurrency_config(FunctionName=function_arn, Qualifier=qualifier)
            except AwsError as e:
                if is_client_error(e, *PROVISIONED_NOT_FOUND_CODES):
                    continue
                raise
            details.append(
                ProvisionedConcurrencyDetail(
                    qualifier=qualifier,
                    allocated=config.get("AllocatedProvisionedConcurrentExecutions") or 0,
                    requested=config.get("RequestedProvisionedConcurrentExecutions") or 0,
                    status=config.get("Status") or "UNKNOWN",
                )
            )
        return details

    def describe(self, function: dict[str, Any]) -> LambdaFunctionDetails:
        arn = function["FunctionArn"]
        details = LambdaFunctionDetails(
            function_name=function.get("FunctionName") or arn,
            function_arn=arn,
            runtime=function.get("Runtime"),
            memory_size=function.get("MemorySize"),
            timeout=function.get("Timeout"),
            last_modified=function.get("LastModified"),
            version=function.get("Version"),
            state=function.get("State"),
        )
        try:
            details.reserved_concurrent_executions = self.reserved_concurrency(arn)
            details.provisioned_concurrency = self._provisioned(arn)
        except AwsError as e:
            logger.warning(
                f"Incomplete concurrency details for {details.function_name}: {error_message(e)}",
                extra=self.log_extra("status", function_name=details.function_name),
            )
        return details

    def status(self) -> LambdaStatus:
        try:
            functions = self.find_functions(include_excluded=True)
        except DiscoveryError as e:
            return LambdaStatus(status=ERROR, message=e.message)

        details = [self.describe(f) for f in functions if f.get("FunctionArn")]
        return LambdaStatus(
            status=ACTIVE,
            function_count=len(details),
            functions=details,
            message=f"{len(details)} functions found",
        )
