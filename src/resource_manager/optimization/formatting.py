"""Human-readable renderings of cost analyses.

Formatted payloads keep the raw numbers next to the display strings
(``*_raw`` keys) so callers can still sort and compute.
"""

from __future__ import annotations

from typing import Any

from .cloudwatch import CloudWatchCostAnalysis
from .s3 import S3CostAnalysis

BYTE_UNITS = ["Bytes", "KB", "MB", "GB", "TB", "PB"]


def format_currency(amount: float) -> str:
    if amount < 0.01:
        return "< $0.01"
    return f"${amount:,.2f}"


def format_bytes(size: int | float) -> str:
    """Format a byte count with 1024-based units, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(BYTE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {BYTE_UNITS[unit]}"


def format_cloudwatch_analysis(analysis: CloudWatchCostAnalysis) -> dict[str, Any]:
    return {
        "total_cost": format_currency(analysis.total_cost),
        "breakdown": {key: format_currency(value) for key, value in analysis.breakdown.model_dump().items()},
        "recommendations": {
            "potential_savings": format_currency(analysis.recommendations.potential_savings),
            "actions": list(analysis.recommendations.actions),
        },
        "log_groups": [
            {
                "log_group_name": group.log_group_name,
                "stored_bytes": format_bytes(group.stored_bytes),
                "stored_bytes_raw": group.stored_bytes,
                "retention_in_days": group.retention_in_days or "Never",
                "metric_filter_count": group.metric_filter_count,
                "arn": group.arn,
            }
            for group in analysis.log_groups
        ],
    }


def format_s3_analysis(analysis: S3CostAnalysis) -> dict[str, Any]:
    return {
        "total_cost": format_currency(analysis.total_cost),
        "breakdown": {key: format_currency(value) for key, value in analysis.breakdown.model_dump().items()},
        "buckets": [
            {
                "bucket_name": bucket.bucket_name,
                "region": bucket.region,
                "total_size": format_bytes(bucket.total_size),
                "total_size_raw": bucket.total_size,
                "object_count": f"{bucket.object_count:,}",
                "object_count_raw": bucket.object_count,
                "storage_class": bucket.storage_class,
                "has_lifecycle_policy": bucket.has_lifecycle_policy,
                "has_intelligent_tiering": bucket.has_intelligent_tiering,
                "estimated_monthly_cost": format_currency(bucket.estimated_monthly_cost),
                "estimated_monthly_cost_raw": bucket.estimated_monthly_cost,
                "last_modified": bucket.last_modified.isoformat() if bucket.last_modified else None,
            }
            for bucket in analysis.buckets
        ],
        "recommendations": [
            {
                "bucket_name": rec.bucket_name,
                "recommendation": rec.recommendation,
                "estimated_savings": format_currency(rec.estimated_savings),
                "estimated_savings_raw": rec.estimated_savings,
                "priority": rec.priority,
            }
            for rec in analysis.recommendations
        ],
    }
