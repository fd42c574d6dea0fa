"""Cost optimization for CloudWatch Logs and S3.

Provides cost analysis, retention/lifecycle optimization and
human-readable formatting of the analyses.
"""

from .cloudwatch import CloudWatchCostAnalysis, CloudWatchOptimizationResult, CloudWatchOptimizer
from .formatting import format_bytes, format_cloudwatch_analysis, format_currency, format_s3_analysis
from .s3 import S3CostAnalysis, S3OptimizationResult, S3Optimizer

__all__ = [
    "CloudWatchOptimizer",
    "CloudWatchCostAnalysis",
    "CloudWatchOptimizationResult",
    "S3Optimizer",
    "S3CostAnalysis",
    "S3OptimizationResult",
    "format_currency",
    "format_bytes",
    "format_cloudwatch_analysis",
    "format_s3_analysis",
]
