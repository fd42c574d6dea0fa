"""Result and status models for the Resource Manager service.

Every model is ephemeral: recomputed from live provider state per call and
never persisted. Fields named ``lambda`` on the wire are ``lambda_`` in
Python; serialize with ``by_alias=True``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

UNKNOWN = "unknown"
ERROR = "error"
NOT_FOUND = "not-found"
ACTIVE = "active"


@dataclass
class RdsTarget:
    """Resolved RDS identifier: a single instance (dev) or an Aurora cluster."""

    type: Literal["instance", "cluster"]
    identifier: str
    from_tags: bool = False


@dataclass
class TransitionReport:
    """Outcome of one kind's shutdown/startup.

    ``items`` carries per-resource outcomes for set-shaped kinds (CloudFront
    distribution ids, Lambda function names); ``errors`` holds messages
    already prefixed with the resource kind and id.
    """

    items: dict[str, bool] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def record(self, item: str, ok: bool, error: str | None = None) -> None:
        self.items[item] = ok
        if error:
            self.errors.append(error)


# ---------------------------------------------------------------------------
# Status snapshot
# ---------------------------------------------------------------------------


class ProvisionedConcurrencyDetail(BaseModel):
    qualifier: str
    allocated: int = 0
    requested: int = 0
    status: str = "UNKNOWN"


class LambdaFunctionDetails(BaseModel):
    function_name: str
    function_arn: str
    runtime: str | None = None
    memory_size: int | None = None
    timeout: int | None = None
    last_modified: str | None = None
    version: str | None = None
    state: str | None = None
    reserved_concurrent_executions: int | None = None
    provisioned_concurrency: list[ProvisionedConcurrencyDetail] = Field(default_factory=list)


class EC2InstanceDetails(BaseModel):
    instance_id: str
    arn: str | None = None
    name: str | None = None
    state: str | None = None
    instance_type: str | None = None
    public_ip_address: str | None = None
    private_ip_address: str | None = None
    availability_zone: str | None = None
    vpc_id: str | None = None
    subnet_id: str | None = None
    security_group_ids: list[str] = Field(default_factory=list)
    launch_time: str | None = None
    platform: str | None = None
    architecture: str | None = None


class CloudFrontDistributionDetails(BaseModel):
    id: str
    arn: str | None = None
    domain_name: str | None = None
    aliases: list[str] = Field(default_factory=list)
    enabled: bool = False
    status: str | None = None
    price_class: str | None = None


class KindStatus(BaseModel):
    """Provider-reported state plus a human-readable message."""

    status: str = UNKNOWN
    message: str = ""


class RdsStatus(KindStatus):
    cluster_id: str = ""


class ElastiCacheStatus(KindStatus):
    replication_group_id: str = ""


class AppRunnerStatus(KindStatus):
    service_arn: str = ""


class CloudFrontStatus(KindStatus):
    distributions: list[CloudFrontDistributionDetails] = Field(default_factory=list)


class LambdaStatus(KindStatus):
    function_count: int = 0
    functions: list[LambdaFunctionDetails] = Field(default_factory=list)


class EC2Status(KindStatus):
    instance_count: int = 0
    instances: list[EC2InstanceDetails] = Field(default_factory=list)


class ResourceStatus(BaseModel):
    """Read-only snapshot with one sub-status per resource kind."""

    model_config = ConfigDict(populate_by_name=True)

    rds: RdsStatus = Field(default_factory=RdsStatus)
    elasticache: ElastiCacheStatus = Field(default_factory=ElastiCacheStatus)
    apprunner: AppRunnerStatus = Field(default_factory=AppRunnerStatus)
    cloudfront: CloudFrontStatus = Field(default_factory=CloudFrontStatus)
    lambda_: LambdaStatus = Field(default_factory=LambdaStatus, alias="lambda")
    ec2: EC2Status = Field(default_factory=EC2Status)


# ---------------------------------------------------------------------------
# Operation result
# ---------------------------------------------------------------------------


class ResourceResults(BaseModel):
    """One entry per resource kind (per distribution id for CloudFront)."""

    model_config = ConfigDict(populate_by_name=True)

    rds: bool = False
    elasticache: bool = False
    apprunner: bool = False
    lambda_: bool = Field(False, alias="lambda")
    ec2: bool = False
    cloudfront: dict[str, bool] = Field(default_factory=dict)


class OperationResult(BaseModel):
    """Aggregated outcome of a shutdown or startup run."""

    model_config = ConfigDict(populate_by_name=True)

    operation: Literal["shutdown", "startup"]
    environment: str
    resources: ResourceResults = Field(default_factory=ResourceResults)
    errors: list[str] = Field(default_factory=list)
    status: ResourceStatus | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------


class ScheduleRequest(BaseModel):
    """Body of ``POST /schedule``."""

    name: str = Field(..., min_length=1, max_length=64, description="Schedule name")
    cron: str = Field(..., description="cron(...), rate(...) or at(...) expression")
    action: Literal["shutdown", "startup"]
    environment: str = Field(..., description="Environment the schedule applies to")

    @field_validator("cron")
    @classmethod
    def validate_expression(cls, v: str) -> str:
        if not v.startswith(("cron(", "rate(", "at(")) or not v.endswith(")"):
            raise ValueError("Expression must be cron(...), rate(...) or at(...)")
        return v
