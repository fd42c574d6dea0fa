"""S3 cost analysis and bucket optimization.

Bucket cost is estimated at $0.023/GB-month for storage plus $0.0004 per
10,000 requests, taking the object count as the request count.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field

from ..exceptions import AwsError, error_message
from ..resources.base import paginate
from .base import BYTES_PER_GB, RegionalOptimizer

logger = logging.getLogger(__name__)

STORAGE_PRICE_PER_GB = 0.023
REQUEST_PRICE_PER_10K = 0.0004
INTELLIGENT_TIERING_ID = "EntireBucket"
DEFAULT_BUCKET_REGION = "us-east-1"


class S3OptimizationRule(BaseModel):
    name: str
    patterns: list[str]
    lifecycle_policy: dict[str, Any] | None = None
    intelligent_tiering: dict[str, Any] | None = None
    estimated_savings: float = 0.0


# First match wins; buckets matching nothing are left alone.
S3_OPTIMIZATION_RULES: list[S3OptimizationRule] = [
    S3OptimizationRule(
        name="media",
        patterns=["media", "cdn", "assets"],
        lifecycle_policy={
            "Rules": [
                {
                    "ID": "MediaLifecycleRule",
                    "Status": "Enabled",
                    "Filter": {"Prefix": ""},
                    "Transitions": [
                        {"Days": 30, "StorageClass": "STANDARD_IA"},
                        {"Days": 90, "StorageClass": "GLACIER"},
                    ],
                }
            ]
        },
        intelligent_tiering={
            "Id": INTELLIGENT_TIERING_ID,
            "Status": "Enabled",
            "Tierings": [{"Days": 90, "AccessTier": "ARCHIVE_ACCESS"}],
        },
        estimated_savings=0.3,
    ),
    S3OptimizationRule(
        name="logs",
        patterns=["logs", "log"],
        lifecycle_policy={
            "Rules": [
                {
                    "ID": "LogLifecycleRule",
                    "Status": "Enabled",
                    "Filter": {"Prefix": ""},
                    "Expiration": {"Days": 30},
                }
            ]
        },
        estimated_savings=0.5,
    ),
    S3OptimizationRule(
        name="backups",
        patterns=["backup", "backups"],
        lifecycle_policy={
            "Rules": [
                {
                    "ID": "BackupLifecycleRule",
                    "Status": "Enabled",
                    "Filter": {"Prefix": ""},
                    "Transitions": [{"Days": 1, "StorageClass": "GLACIER"}],
                }
            ]
        },
        estimated_savings=0.7,
    ),
]


class S3BucketAnalysis(BaseModel):
    bucket_name: str
    region: str
    total_size: int = 0
    object_count: int = 0
    storage_class: str = "STANDARD"
    has_lifecycle_policy: bool = False
    has_intelligent_tiering: bool = False
    estimated_monthly_cost: float = 0.0
    last_modified: datetime | None = None


class S3CostBreakdown(BaseModel):
    standard_storage: float = 0.0
    intelligent_tiering: float = 0.0
    requests: float = 0.0
    data_transfer: float = 0.0


class S3Recommendation(BaseModel):
    bucket_name: str
    recommendation: str
    estimated_savings: float
    priority: Literal["high", "medium", "low"]


class S3CostAnalysis(BaseModel):
    total_cost: float
    breakdown: S3CostBreakdown
    buckets: list[S3BucketAnalysis]
    recommendations: list[S3Recommendation]


class S3OptimizationDetail(BaseModel):
    bucket_name: str
    action: str
    configuration: dict[str, Any]
    estimated_savings: float


class S3OptimizationResult(BaseModel):
    applied_optimizations: int = 0
    estimated_monthly_savings: float = 0.0
    errors: list[str] = Field(default_factory=list)
    details: list[S3OptimizationDetail] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return not self.errors


def bucket_monthly_cost(size_bytes: int, object_count: int) -> float:
    return (size_bytes / BYTES_PER_GB) * STORAGE_PRICE_PER_GB + (object_count * REQUEST_PRICE_PER_10K) / 10_000


def calculate_costs(buckets: list[S3BucketAnalysis]) -> tuple[float, S3CostBreakdown]:
    """Total cost plus an 80/10/10 storage/requests/transfer split."""
    breakdown = S3CostBreakdown()
    total = 0.0
    for bucket in buckets:
        total += bucket.estimated_monthly_cost
        breakdown.standard_storage += bucket.estimated_monthly_cost * 0.8
        breakdown.requests += bucket.estimated_monthly_cost * 0.1
        breakdown.data_transfer += bucket.estimated_monthly_cost * 0.1
    return total, breakdown


def generate_recommendations(buckets: list[S3BucketAnalysis]) -> list[S3Recommendation]:
    recommendations = []
    for bucket in buckets:
        if bucket.total_size > 100 * BYTES_PER_GB and not bucket.has_lifecycle_policy:
            recommendations.append(
                S3Recommendation(
                    bucket_name=bucket.bucket_name,
                    recommendation="Apply lifecycle policy to transition old objects to cheaper storage classes",
                    estimated_savings=bucket.estimated_monthly_cost * 0.3,
                    priority="high",
                )
            )
        if bucket.total_size > 10 * BYTES_PER_GB and not bucket.has_intelligent_tiering:
            recommendations.append(
                S3Recommendation(
                    bucket_name=bucket.bucket_name,
                    recommendation="Enable S3 Intelligent Tiering for automatic cost optimization",
                    estimated_savings=bucket.estimated_monthly_cost * 0.15,
                    priority="medium",
                )
            )
        if not bucket.has_lifecycle_policy:
            recommendations.append(
                S3Recommendation(
                    bucket_name=bucket.bucket_name,
                    recommendation="Consider implementing lifecycle policies for cost optimization",
                    estimated_savings=bucket.estimated_monthly_cost * 0.1,
                    priority="low",
                )
            )
    return recommendations


def optimization_rule_for(bucket_name: str) -> S3OptimizationRule | None:
    lower_name = bucket_name.lower()
    for rule in S3_OPTIMIZATION_RULES:
        if any(pattern in lower_name for pattern in rule.patterns):
            return rule
    return None


class S3Optimizer(RegionalOptimizer):
    """Analyzes S3 spend and applies lifecycle/tiering rules by bucket name."""

    service = "s3"

    def bucket_size_and_count(self, s3: Any, bucket_name: str) -> tuple[int, int]:
        total_size = 0
        object_count = 0
        try:
            for obj in paginate(s3, "list_objects_v2", "Contents", Bucket=bucket_name):
                total_size += obj.get("Size") or 0
                object_count += 1
        except AwsError as e:
            logger.warning(
                f"Failed to list objects in bucket {bucket_name}: {error_message(e)}",
                extra={"component": self.service, "bucket_name": bucket_name},
            )
        return total_size, object_count

    @staticmethod
    def _has_config(call, **kwargs: Any) -> bool:
        try:
            call(**kwargs)
        except AwsError:
            return False
        return True

    def analyze_bucket(self, s3: Any, bucket: dict[str, Any], region: str) -> S3BucketAnalysis | None:
        """Return the bucket's analysis, or None when it lives in another region."""
        name = bucket["Name"]
        location = s3.get_bucket_location(Bucket=name).get("LocationConstraint")
        bucket_region = location or DEFAULT_BUCKET_REGION
        if bucket_region != region:
            return None

        total_size, object_count = self.bucket_size_and_count(s3, name)
        return S3BucketAnalysis(
            bucket_name=name,
            region=bucket_region,
            total_size=total_size,
            object_count=object_count,
            has_lifecycle_policy=self._has_config(s3.get_bucket_lifecycle_configuration, Bucket=name),
            has_intelligent_tiering=self._has_config(
                s3.get_bucket_intelligent_tiering_configuration, Bucket=name, Id=INTELLIGENT_TIERING_ID
            ),
            estimated_monthly_cost=bucket_monthly_cost(total_size, object_count),
            last_modified=bucket.get("CreationDate"),
        )

    def list_buckets(self, s3: Any, region: str) -> list[S3BucketAnalysis]:
        """Analyze every bucket located in ``region``.

        Buckets that cannot be inspected are logged and skipped. A failing
        ListBuckets call yields an empty list.
        """
        try:
            raw_buckets = s3.list_buckets().get("Buckets") or []
        except AwsError as e:
            logger.error(f"Failed to list S3 buckets: {error_message(e)}", extra={"component": self.service})
            return []

        buckets = []
        for bucket in raw_buckets:
            if not bucket.get("Name"):
                continue
            try:
                analysis = self.analyze_bucket(s3, bucket, region)
            except AwsError as e:
                logger.warning(
                    f"Failed to analyze bucket {bucket['Name']}: {error_message(e)}",
                    extra={"component": self.service, "bucket_name": bucket["Name"]},
                )
                continue
            if analysis is not None:
                buckets.append(analysis)
        return buckets

    def analyze_costs(self, region: str | None = None) -> S3CostAnalysis:
        target, clients = self.clients_for(region)
        logger.info(
            f"Analyzing S3 costs in {target}",
            extra={"component": self.service, "action": "s3-analysis", "region": target},
        )
        buckets = self.list_buckets(clients.s3, target)
        total, breakdown = calculate_costs(buckets)
        return S3CostAnalysis(
            total_cost=total,
            breakdown=breakdown,
            buckets=buckets,
            recommendations=generate_recommendations(buckets),
        )

    def optimize_buckets(self, region: str | None = None) -> S3OptimizationResult:
        target, clients = self.clients_for(region)
        s3 = clients.s3
        logger.info(
            f"Optimizing S3 buckets in {target}",
            extra={"component": self.service, "action": "s3-optimization", "region": target},
        )

        result = S3OptimizationResult()
        for bucket in self.list_buckets(s3, target):
            rule = optimization_rule_for(bucket.bucket_name)
            if rule is None:
                continue
            try:
                if rule.lifecycle_policy and not bucket.has_lifecycle_policy:
                    s3.put_bucket_lifecycle_configuration(
                        Bucket=bucket.bucket_name, LifecycleConfiguration=rule.lifecycle_policy
                    )
                    self._record(result, bucket.bucket_name, "Applied lifecycle policy", rule.lifecycle_policy, rule)
                if rule.intelligent_tiering and not bucket.has_intelligent_tiering:
                    s3.put_bucket_intelligent_tiering_configuration(
                        Bucket=bucket.bucket_name,
                        Id=rule.intelligent_tiering["Id"],
                        IntelligentTieringConfiguration=rule.intelligent_tiering,
                    )
                    self._record(
                        result, bucket.bucket_name, "Applied intelligent tiering", rule.intelligent_tiering, rule
                    )
            except AwsError as e:
                result.errors.append(f"Failed to optimize bucket {bucket.bucket_name}: {error_message(e)}")
                logger.error(
                    f"S3 bucket optimization failed for {bucket.bucket_name}: {error_message(e)}",
                    extra={"component": self.service, "action": "s3-optimization", "bucket_name": bucket.bucket_name},
                )
        return result

    @staticmethod
    def _record(
        result: S3OptimizationResult,
        bucket_name: str,
        action: str,
        configuration: dict[str, Any],
        rule: S3OptimizationRule,
    ) -> None:
        result.applied_optimizations += 1
        result.estimated_monthly_savings += rule.estimated_savings
        result.details.append(
            S3OptimizationDetail(
                bucket_name=bucket_name,
                action=action,
                configuration=configuration,
                estimated_savings=rule.estimated_savings,
            )
        )
        logger.info(f"{action} on {bucket_name}")
