"""RDS: a single DB instance in dev, an Aurora cluster everywhere else."""

from __future__ import annotations

import logging

from ..exceptions import AwsError, error_message
from ..models import ERROR, NOT_FOUND, RdsStatus, RdsTarget, TransitionReport
from .base import ManagedResource, is_client_error, paginate

logger = logging.getLogger(__name__)

INSTANCE_STATE_CODES = ("InvalidDBInstanceState", "InvalidDBInstanceStateFault")
CLUSTER_STATE_CODES = ("InvalidDBClusterStateFault", "InvalidDBClusterState")
NOT_FOUND_CODES = ("DBInstanceNotFound", "DBInstanceNotFoundFault", "DBClusterNotFoundFault")


class RdsResource(ManagedResource):
    kind = "rds"
    label = "RDS"
    status_model = RdsStatus

    @property
    def target_type(self) -> str:
        # Fixed policy, not resource-driven
        return "instance" if self.environment == "dev" else "cluster"

    def fallback_target(self) -> RdsTarget:
        if self.target_type == "instance":
            return RdsTarget("instance", self.config.fallback_name("db"))
        return RdsTarget("cluster", self.config.fallback_name("aurora"))

    def find_by_tags(self) -> RdsTarget | None:
        """Return the first instance/cluster carrying the required tags."""
        rds = self.clients.rds

        def fetch_tags(arn: str):
            return rds.list_tags_for_resource(ResourceName=arn).get("TagList", [])

        try:
            if self.target_type == "instance":
                items = paginate(rds, "describe_db_instances", "DBInstances")
                for inst in self.filter_tagged(items, lambda i: i.get("DBInstanceArn"), fetch_tags):
                    if inst.get("DBInstanceIdentifier"):
                        return RdsTarget("instance", inst["DBInstanceIdentifier"], from_tags=True)
            else:
                items = paginate(rds, "describe_db_clusters", "DBClusters")
                for cl in self.filter_tagged(items, lambda c: c.get("DBClusterArn"), fetch_tags):
                    if cl.get("DBClusterIdentifier"):
                        return RdsTarget("cluster", cl["DBClusterIdentifier"], from_tags=True)
        except AwsError as e:
            logger.warning(
                f"RDS tag discovery failed, using naming convention: {error_message(e)}",
                extra=self.log_extra("discover"),
            )
        return None

    def locate(self) -> RdsTarget:
        target = self.find_by_tags()
        if target is None:
            target = self.fallback_target()
            logger.info(
                f"No tagged RDS {target.type} found, falling back to {target.identifier}",
                extra=self.log_extra("discover"),
            )
        return target

    def shutdown(self) -> TransitionReport:
        target = self.locate()
        rds = self.clients.rds
        try:
            if target.type == "instance":
                rds.stop_db_instance(DBInstanceIdentifier=target.identifier)
            else:
                rds.stop_db_cluster(DBClusterIdentifier=target.identifier)
            logger.info(f"RDS {target.type} stopped: {target.identifier}", extra=self.log_extra("shutdown"))
        except AwsError as e:
            if not self._already_in_state(e, target):
                raise
            logger.info(
                f"RDS {target.type} already stopped: {target.identifier}",
                extra=self.log_extra("shutdown"),
            )
        return TransitionReport()

    def startup(self) -> TransitionReport:
        target = self.locate()
        rds = self.clients.rds
        try:
            if target.type == "instance":
                rds.start_db_instance(DBInstanceIdentifier=target.identifier)
            else:
                rds.start_db_cluster(DBClusterIdentifier=target.identifier)
            logger.info(f"RDS {target.type} started: {target.identifier}", extra=self.log_extra("startup"))
        except AwsError as e:
            if not self._already_in_state(e, target):
                raise
            logger.info(
                f"RDS {target.type} already running: {target.identifier}",
                extra=self.log_extra("startup"),
            )
        return TransitionReport()

    @staticmethod
    def _already_in_state(exc: BaseException, target: RdsTarget) -> bool:
        codes = INSTANCE_STATE_CODES if target.type == "instance" else CLUSTER_STATE_CODES
        return is_client_error(exc, *codes)

    def status(self) -> RdsStatus:
        target = self.locate()
        rds = self.clients.rds
        try:
            if target.type == "instance":
                found = rds.describe_db_instances(DBInstanceIdentifier=target.identifier).get("DBInstances", [])
                if not found:
                    return RdsStatus(status=NOT_FOUND, cluster_id=target.identifier, message="DB instance not found")
                state = found[0].get("DBInstanceStatus") or "unknown"
                return RdsStatus(
                    status=state,
                    cluster_id=found[0].get("DBInstanceIdentifier") or target.identifier,
                    message=f"Instance is {state}",
                )

            found = rds.describe_db_clusters(DBClusterIdentifier=target.identifier).get("DBClusters", [])
            if not found:
                return RdsStatus(status=NOT_FOUND, cluster_id=target.identifier, message="Cluster not found")
            state = found[0].get("Status") or "unknown"
            return RdsStatus(
                status=state,
                cluster_id=found[0].get("DBClusterIdentifier") or target.identifier,
                message=f"Cluster is {state}",
            )
        except AwsError as e:
            if is_client_error(e, *NOT_FOUND_CODES):
                return RdsStatus(status=NOT_FOUND, cluster_id=target.identifier, message=error_message(e))
            return RdsStatus(status=ERROR, cluster_id=target.identifier, message=error_message(e))
