"""EC2 instances: stop on shutdown, start on startup.

Discovery uses server-side tag and state filters, and each transition is a
single batched call over every matching instance.
"""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import AwsError, DiscoveryError, error_message
from ..models import ACTIVE, ERROR, EC2InstanceDetails, EC2Status, TransitionReport
from ..tags import ec2_tag_filters, normalize_tags
from .base import ManagedResource, is_client_error, paginate

logger = logging.getLogger(__name__)

SHUTDOWN_STATES = ["running", "pending"]
STARTUP_STATES = ["stopped"]
RUNNING = "running"


class Ec2Resource(ManagedResource):
    kind = "ec2"
    label = "EC2"
    status_model = EC2Status

    def find_instances(self, states: list[str] | None = None) -> list[dict[str, Any]]:
        """Return tagged instances, optionally limited to ``states``."""
        filters = ec2_tag_filters(self.required_tags)
        if states:
            filters.append({"Name": "instance-state-name", "Values": list(states)})
        try:
            reservations = paginate(self.clients.ec2, "describe_instances", "Reservations", Filters=filters)
            return [inst for r in reservations for inst in r.get("Instances") or []]
        except AwsError as e:
            raise DiscoveryError(error_message(e), kind=self.kind) from e

    def _transition(self, action: str, states: list[str]) -> TransitionReport:
        report = TransitionReport()
        instance_ids = [i["InstanceId"] for i in self.find_instances(states) if i.get("InstanceId")]
        if not instance_ids:
            logger.info(f"No EC2 instances in state {states} found for environment", extra=self.log_extra(action))
            return report

        ec2 = self.clients.ec2
        try:
            if action == "shutdown":
                ec2.stop_instances(InstanceIds=instance_ids)
            else:
                ec2.start_instances(InstanceIds=instance_ids)
        except AwsError as e:
            if not is_client_error(e, "IncorrectInstanceState"):
                raise
            logger.info(
                f"EC2 instances not in a transitionable state ({error_message(e)})",
                extra=self.log_extra(action, instance_ids=instance_ids),
            )
        else:
            verb = "Stopping" if action == "shutdown" else "Starting"
            logger.info(
                f"{verb} {len(instance_ids)} EC2 instances: {', '.join(instance_ids)}",
                extra=self.log_extra(action, instance_ids=instance_ids),
            )
        for instance_id in instance_ids:
            report.record(instance_id, True)
        return report

    def shutdown(self) -> TransitionReport:
        return self._transition("shutdown", SHUTDOWN_STATES)

    def startup(self) -> TransitionReport:
        return self._transition("startup", STARTUP_STATES)

    def account_id(self) -> str | None:
        try:
            return self.clients.sts.get_caller_identity().get("Account")
        except AwsError as e:
            logger.warning(f"Could not resolve AWS account id: {error_message(e)}", extra=self.log_extra("status"))
            return None

    def describe(self, instance: dict[str, Any], account_id: str | None) -> EC2InstanceDetails:
        instance_id = instance["InstanceId"]
        launch_time = instance.get("LaunchTime")
        arn = None
        if account_id:
            arn = f"arn:aws:ec2:{self.clients.region}:{account_id}:instance/{instance_id}"
        return EC2InstanceDetails(
            instance_id=instance_id,
            arn=arn,
            name=normalize_tags(instance.get("Tags") or []).get("Name"),
            state=(instance.get("State") or {}).get("Name"),
            instance_type=instance.get("InstanceType"),
            public_ip_address=instance.get("PublicIpAddress"),
            private_ip_address=instance.get("PrivateIpAddress"),
            availability_zone=(instance.get("Placement") or {}).get("AvailabilityZone"),
            vpc_id=instance.get("VpcId"),
            subnet_id=instance.get("SubnetId"),
            security_group_ids=[g["GroupId"] for g in instance.get("SecurityGroups") or [] if g.get("GroupId")],
            launch_time=launch_time.isoformat() if hasattr(launch_time, "isoformat") else launch_time,
            platform=instance.get("Platform"),
            architecture=instance.get("Architecture"),
        )

    def status(self) -> EC2Status:
        try:
            instances = [i for i in self.find_instances() if i.get("InstanceId")]
        except DiscoveryError as e:
            return EC2Status(status=ERROR, message=e.message)

        account_id = self.account_id() if instances else None
        details = [self.describe(i, account_id) for i in instances]
        running = sum(1 for d in details if d.state == RUNNING)
        return EC2Status(
            status=ACTIVE,
            instance_count=len(details),
            instances=details,
            message=f"{running} running out of {len(details)} total instances",
        )
