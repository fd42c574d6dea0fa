"""Managed resource kinds for the Resource Manager service.

Each kind locates its resources by tag, moves them between running and
stopped states idempotently, and reports live status.
"""

from .apprunner import AppRunnerResource
from .base import ManagedResource
from .cloudfront import CloudFrontResource
from .ec2 import Ec2Resource
from .elasticache import ElastiCacheResource
from .lambda_functions import LambdaResource
from .rds import RdsResource

__all__ = [
    "ManagedResource",
    "RdsResource",
    "ElastiCacheResource",
    "AppRunnerResource",
    "CloudFrontResource",
    "LambdaResource",
    "Ec2Resource",
]
