"""CloudWatch Logs cost analysis and retention optimization.

Costs are estimates from list pricing: storage at $0.03/GB-month and
ingestion at $0.50/GB, assuming monthly ingestion is ten times the stored
volume.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, computed_field

from ..exceptions import AwsError, OptimizationError, error_code, error_message
from ..resources.base import paginate
from .base import BYTES_PER_GB, RegionalOptimizer

logger = logging.getLogger(__name__)

PRICING = {
    "log_ingestion": 0.50,
    "log_storage": 0.03,
    "s3_egress": 0.25,
    "alarms": 0.10,
    "metrics": 0.30,
}
INGESTION_MULTIPLIER = 10
HIGH_VOLUME_BYTES = 1_000_000_000


class RetentionRule(BaseModel):
    name: str
    patterns: list[str]
    retention_days: int
    description: str


# First match wins; ``default`` applies when nothing else matches.
RETENTION_RULES: list[RetentionRule] = [
    RetentionRule(name="production", patterns=["prod-", "production-"], retention_days=14, description="Production logs"),
    RetentionRule(name="staging", patterns=["staging-", "stage-"], retention_days=7, description="Staging logs"),
    RetentionRule(name="development", patterns=["dev-", "development-"], retention_days=3, description="Development logs"),
    RetentionRule(name="waf", patterns=["waf-", "aws-waf-logs"], retention_days=30, description="WAF security logs"),
    RetentionRule(
        name="cloudtrail", patterns=["cloudtrail", "aws-cloudtrail"], retention_days=30, description="CloudTrail audit logs"
    ),
    RetentionRule(name="rds", patterns=["/aws/rds/", "rds-"], retention_days=7, description="RDS error logs"),
    RetentionRule(name="lambda", patterns=["/aws/lambda/"], retention_days=3, description="Lambda function logs"),
    RetentionRule(name="codebuild", patterns=["/aws/codebuild/"], retention_days=3, description="CodeBuild logs"),
]
DEFAULT_RETENTION_RULE = RetentionRule(name="default", patterns=[], retention_days=7, description="Default retention")

ALARM_ERROR_MESSAGES = {
    "SignatureDoesNotMatch": "AWS credentials not valid for region {region}. Please check if your credentials support this region.",
    "AccessDenied": "Access denied to CloudWatch in region {region}. Please check IAM permissions.",
    "InvalidParameterValue": "Invalid region parameter: {region}",
}


class LogGroupInfo(BaseModel):
    log_group_name: str
    stored_bytes: int = 0
    retention_in_days: int | None = None
    creation_time: int | None = None
    metric_filter_count: int = 0
    arn: str | None = None

    @property
    def stored_gb(self) -> float:
        return self.stored_bytes / BYTES_PER_GB


class CloudWatchCostBreakdown(BaseModel):
    log_ingestion: float = 0.0
    log_storage: float = 0.0
    s3_egress: float = 0.0
    alarms: float = 0.0
    metrics: float = 0.0


class CloudWatchRecommendations(BaseModel):
    potential_savings: float = 0.0
    actions: list[str] = Field(default_factory=list)


class CloudWatchCostAnalysis(BaseModel):
    total_cost: float
    breakdown: CloudWatchCostBreakdown
    recommendations: CloudWatchRecommendations
    log_groups: list[LogGroupInfo]


class RetentionChange(BaseModel):
    log_group_name: str
    previous_retention: int | None = None
    new_retention: int
    estimated_savings: float


class CloudWatchOptimizationResult(BaseModel):
    applied_retention_policies: int = 0
    estimated_monthly_savings: float = 0.0
    errors: list[str] = Field(default_factory=list)
    details: list[RetentionChange] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return not self.errors


def retention_rule_for(log_group_name: str) -> RetentionRule:
    """Pick the retention rule for a log group by case-insensitive name pattern."""
    lower_name = log_group_name.lower()
    for rule in RETENTION_RULES:
        if any(pattern.lower() in lower_name for pattern in rule.patterns):
            return rule
    return DEFAULT_RETENTION_RULE


def calculate_costs(log_groups: list[LogGroupInfo]) -> CloudWatchCostAnalysis:
    """Estimate monthly cost and savings for a set of log groups."""
    breakdown = CloudWatchCostBreakdown()
    recommendations = CloudWatchRecommendations()

    for group in log_groups:
        breakdown.log_storage += group.stored_gb * PRICING["log_storage"]
        breakdown.log_ingestion += group.stored_gb * INGESTION_MULTIPLIER * PRICING["log_ingestion"]

    no_retention = [g for g in log_groups if not g.retention_in_days]
    high_volume = [g for g in log_groups if g.stored_bytes > HIGH_VOLUME_BYTES]

    recommendations.potential_savings = sum(g.stored_gb * PRICING["log_storage"] for g in no_retention)
    if no_retention:
        recommendations.actions.append(
            f"Set retention policies for {len(no_retention)} log groups with no retention"
        )
    if high_volume:
        names = ", ".join(g.log_group_name for g in high_volume)
        recommendations.actions.append(f"Review high-volume log groups: {names}")

    total = sum(breakdown.model_dump().values())
    return CloudWatchCostAnalysis(
        total_cost=total,
        breakdown=breakdown,
        recommendations=recommendations,
        log_groups=sorted(log_groups, key=lambda g: g.stored_bytes, reverse=True),
    )


class CloudWatchOptimizer(RegionalOptimizer):
    """Analyzes and trims CloudWatch Logs spend."""

    service = "cloudwatch"

    def list_log_groups(self, logs_client: Any) -> list[LogGroupInfo]:
        groups = []
        for group in paginate(logs_client, "describe_log_groups", "logGroups"):
            name = group.get("logGroupName") or ""
            metric_filter_count = 0
            try:
                filters = logs_client.describe_metric_filters(logGroupName=name)
                metric_filter_count = len(filters.get("metricFilters") or [])
            except AwsError as e:
                logger.debug(f"Could not count metric filters for {name}: {error_message(e)}")
            groups.append(
                LogGroupInfo(
                    log_group_name=name,
                    stored_bytes=group.get("storedBytes") or 0,
                    retention_in_days=group.get("retentionInDays"),
                    creation_time=group.get("creationTime"),
                    metric_filter_count=metric_filter_count,
                    arn=group.get("arn"),
                )
            )
        return groups

    def analyze_costs(self, region: str | None = None) -> CloudWatchCostAnalysis:
        target, clients = self.clients_for(region)
        logger.info(
            f"Analyzing CloudWatch costs in {target}",
            extra={"component": self.service, "action": "cloudwatch-analysis", "region": target},
        )
        try:
            log_groups = self.list_log_groups(clients.logs)
        except AwsError as e:
            logger.error(
                f"CloudWatch cost analysis failed: {error_message(e)}",
                extra={"component": self.service, "action": "cloudwatch-analysis", "region": target},
            )
            raise OptimizationError(error_message(e), service=self.service) from e
        return calculate_costs(log_groups)

    def optimize_logs(self, region: str | None = None) -> CloudWatchOptimizationResult:
        """Apply retention rules to log groups with no or a longer retention."""
        target, clients = self.clients_for(region)
        logger.info(
            f"Optimizing CloudWatch logs in {target}",
            extra={"component": self.service, "action": "cloudwatch-optimization", "region": target},
        )
        try:
            log_groups = self.list_log_groups(clients.logs)
        except AwsError as e:
            raise OptimizationError(error_message(e), service=self.service) from e

        result = CloudWatchOptimizationResult()
        for group in log_groups:
            rule = retention_rule_for(group.log_group_name)
            if group.retention_in_days and group.retention_in_days <= rule.retention_days:
                continue
            try:
                clients.logs.put_retention_policy(
                    logGroupName=group.log_group_name, retentionInDays=rule.retention_days
                )
            except AwsError as e:
                result.errors.append(f"{group.log_group_name}: {error_message(e)}")
                logger.error(
                    f"Failed to apply retention policy to {group.log_group_name}: {error_message(e)}",
                    extra={"component": self.service, "action": "cloudwatch-optimization"},
                )
                continue

            savings = group.stored_gb * PRICING["log_storage"]
            result.details.append(
                RetentionChange(
                    log_group_name=group.log_group_name,
                    previous_retention=group.retention_in_days,
                    new_retention=rule.retention_days,
                    estimated_savings=savings,
                )
            )
            result.applied_retention_policies += 1
            result.estimated_monthly_savings += savings
            logger.info(f"Applied {rule.retention_days}d retention to {group.log_group_name}")

        logger.info(
            f"CloudWatch optimization completed: {result.applied_retention_policies} policies, "
            f"{len(result.errors)} errors",
            extra={"component": self.service, "action": "cloudwatch-optimization", "region": target},
        )
        return result

    def get_alarms(self, region: str | None = None) -> list[dict[str, Any]]:
        target, clients = self.clients_for(region)
        try:
            alarms = list(paginate(clients.cloudwatch, "describe_alarms", "MetricAlarms"))
        except AwsError as e:
            template = ALARM_ERROR_MESSAGES.get(error_code(e) or "")
            message = template.format(region=target) if template else error_message(e)
            logger.error(
                f"Failed to get CloudWatch alarms in {target}: {error_message(e)}",
                extra={"component": self.service, "action": "get-alarms", "region": target},
            )
            raise OptimizationError(message, service=self.service) from e

        logger.info(f"Retrieved {len(alarms)} CloudWatch alarms in {target}")
        return alarms
