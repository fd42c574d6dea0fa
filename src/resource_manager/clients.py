"""Per-instance AWS client set.

One ``AwsClients`` object is built per service instance (or per request) and
passed explicitly to every component that talks to AWS.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3

logger = logging.getLogger(__name__)

SERVICES = (
    "rds",
    "elasticache",
    "apprunner",
    "lambda",
    "ec2",
    "sts",
    "cloudfront",
    "scheduler",
    "logs",
    "cloudwatch",
    "s3",
)


class _ServiceClient:
    """Descriptor exposing one lazily-created service client."""

    def __init__(self, service: str):
        self.service = service

    def __get__(self, instance: "AwsClients | None", owner: type) -> Any:
        if instance is None:
            return self
        return instance.get(self.service)


class AwsClients:
    """Lazily-created boto3 clients sharing one session and region."""

    rds = _ServiceClient("rds")
    elasticache = _ServiceClient("elasticache")
    apprunner = _ServiceClient("apprunner")
    lambda_ = _ServiceClient("lambda")
    ec2 = _ServiceClient("ec2")
    sts = _ServiceClient("sts")
    cloudfront = _ServiceClient("cloudfront")
    scheduler = _ServiceClient("scheduler")
    logs = _ServiceClient("logs")
    cloudwatch = _ServiceClient("cloudwatch")
    s3 = _ServiceClient("s3")

    def __init__(
        self,
        region: str,
        session: boto3.Session | None = None,
        overrides: dict[str, Any] | None = None,
    ):
        """Initialize the client set.

        Args:
            region: AWS region every client is bound to
            session: Optional boto3 session (defaults to a new one)
            overrides: Prebuilt clients keyed by service name (for DI/testing)
        """
        self.region = region
        self._session = session
        self._clients: dict[str, Any] = dict(overrides or {})

    @property
    def session(self) -> boto3.Session:
        """Lazy-loaded boto3 session."""
        if self._session is None:
            self._session = boto3.Session()
        return self._session

    def get(self, service: str) -> Any:
        """Return the client for ``service``, creating it on first use."""
        if service not in SERVICES:
            raise ValueError(f"Unsupported service: {service}")
        if service not in self._clients:
            logger.debug(f"Creating {service} client for region {self.region}")
            self._clients[service] = self.session.client(service, region_name=self.region)
        return self._clients[service]

    def for_region(self, region: str | None) -> "AwsClients":
        """Return a client set bound to ``region``, reusing this one when it matches."""
        if not region or region == self.region:
            return self
        return AwsClients(region, session=self._session)
