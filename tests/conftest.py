"""Pytest configuration and shared fixtures for Resource Manager tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from resource_manager.clients import SERVICES, AwsClients
from resource_manager.config import ResourceManagerConfig

REGION = "us-east-1"
ACCOUNT = "123456789012"
MANAGER_ARN = f"arn:aws:lambda:{REGION}:{ACCOUNT}:function:dev-resource-manager-service"
ROLE_ARN = f"arn:aws:iam::{ACCOUNT}:role/dev-resource-manager-scheduler"

DEV_TAGS = {"Environment": "dev", "ManagedBy": "terraform", "Project": "legitmark"}


def client_error(code: str, message: str = "error", operation: str = "Operation") -> ClientError:
    """Build a botocore ClientError carrying ``code``."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def tag_list(tags: dict[str, str]) -> list[dict[str, str]]:
    return [{"Key": k, "Value": v} for k, v in tags.items()]


class FakePaginator:
    """Paginator stand-in returning canned pages and recording its kwargs."""

    def __init__(self, pages: list[dict[str, Any]]):
        self.pages = pages
        self.calls: list[dict[str, Any]] = []

    def paginate(self, **kwargs):
        self.calls.append(kwargs)
        return iter(self.pages)


def make_client(pages: dict[str, list[dict[str, Any]]] | None = None) -> MagicMock:
    """MagicMock client whose paginators serve ``pages`` keyed by operation name."""
    client = MagicMock()
    paginators: dict[str, FakePaginator] = {}
    page_map = pages or {}

    def get_paginator(operation: str) -> FakePaginator:
        if operation not in paginators:
            paginators[operation] = FakePaginator(page_map.get(operation, [{}]))
        return paginators[operation]

    client.get_paginator.side_effect = get_paginator
    client.paginators = paginators
    return client


class FakeLambdaClient:
    """In-memory Lambda client covering tags and concurrency."""

    def __init__(self):
        self.functions: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def add_function(
        self,
        name: str,
        reserved: int | None = None,
        tags: dict[str, str] | None = None,
        aliases: list[str] | None = None,
    ) -> str:
        arn = f"arn:aws:lambda:{REGION}:{ACCOUNT}:function:{name}"
        self.functions[arn] = {
            "name": name,
            "reserved": reserved,
            "tags": dict(DEV_TAGS if tags is None else tags),
            "aliases": list(aliases or []),
            "provisioned": {},
        }
        return arn

    def _fn(self, arn: str) -> dict[str, Any]:
        if arn not in self.functions:
            raise client_error("ResourceNotFoundException", f"Function not found: {arn}")
        return self.functions[arn]

    # Listing
    def get_paginator(self, operation: str) -> FakePaginator:
        if operation == "list_functions":
            items = [
                {"FunctionName": f["name"], "FunctionArn": arn, "Runtime": "python3.11", "MemorySize": 256}
                for arn, f in self.functions.items()
            ]
            return FakePaginator([{"Functions": items}])
        if operation == "list_aliases":
            return _AliasPaginator(self)
        raise AssertionError(f"unexpected paginator {operation}")

    # Tags
    def list_tags(self, Resource: str):
        return {"Tags": dict(self._fn(Resource)["tags"])}

    def tag_resource(self, Resource: str, Tags: dict[str, str]):
        self.calls.append(("tag_resource", {"Resource": Resource, "Tags": Tags}))
        self._fn(Resource)["tags"].update(Tags)
        return {}

    def untag_resource(self, Resource: str, TagKeys: list[str]):
        self.calls.append(("untag_resource", {"Resource": Resource, "TagKeys": TagKeys}))
        for key in TagKeys:
            self._fn(Resource)["tags"].pop(key, None)
        return {}

    # Concurrency
    def get_function_concurrency(self, FunctionName: str):
        reserved = self._fn(FunctionName)["reserved"]
        return {} if reserved is None else {"ReservedConcurrentExecutions": reserved}

    def put_function_concurrency(self, FunctionName: str, ReservedConcurrentExecutions: int):
        self.calls.append(("put_function_concurrency", {"FunctionName": FunctionName, "Value": ReservedConcurrentExecutions}))
        self._fn(FunctionName)["reserved"] = ReservedConcurrentExecutions
        return {"ReservedConcurrentExecutions": ReservedConcurrentExecutions}

    def delete_function_concurrency(self, FunctionName: str):
        self.calls.append(("delete_function_concurrency", {"FunctionName": FunctionName}))
        self._fn(FunctionName)["reserved"] = None
        return {}

    def get_provisioned_concurrency_config(self, FunctionName: str, Qualifier: str):
        config = self._fn(FunctionName)["provisioned"].get(Qualifier)
        if config is None:
            raise client_error("ProvisionedConcurrencyConfigNotFoundException", "No config")
        return config

    def delete_provisioned_concurrency_config(self, FunctionName: str, Qualifier: str):
        self.calls.append(("delete_provisioned_concurrency_config", {"FunctionName": FunctionName, "Qualifier": Qualifier}))
        if self._fn(FunctionName)["provisioned"].pop(Qualifier, None) is None:
            raise client_error("ProvisionedConcurrencyConfigNotFoundException", "No config")
        return {}

    def called(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]


class _AliasPaginator:
    def __init__(self, client: FakeLambdaClient):
        self.client = client

    def paginate(self, FunctionName: str):
        aliases = self.client._fn(FunctionName)["aliases"]
        return iter([{"Aliases": [{"Name": a} for a in aliases]}])


@pytest.fixture
def config() -> ResourceManagerConfig:
    """Dev configuration with the manager's own Lambda ARNs set."""
    return ResourceManagerConfig(
        environment="dev",
        aws_region=REGION,
        structured_logging=False,
        lambda_settings={"function_arn": MANAGER_ARN, "role_arn": ROLE_ARN},
    )


@pytest.fixture
def prod_config() -> ResourceManagerConfig:
    return ResourceManagerConfig(environment="prod", aws_region=REGION, structured_logging=False)


@pytest.fixture
def fake_lambda() -> FakeLambdaClient:
    return FakeLambdaClient()


@pytest.fixture
def client_overrides(fake_lambda) -> dict[str, Any]:
    """Mock clients keyed by service name; every service finds nothing."""
    overrides: dict[str, Any] = {service: make_client() for service in SERVICES}

    overrides["rds"].describe_db_instances.return_value = {"DBInstances": []}
    overrides["rds"].describe_db_clusters.return_value = {"DBClusters": []}
    overrides["elasticache"].describe_replication_groups.return_value = {"ReplicationGroups": []}
    overrides["apprunner"].list_services.return_value = {"ServiceSummaryList": []}
    overrides["sts"].get_caller_identity.return_value = {"Account": ACCOUNT}
    overrides["lambda"] = fake_lambda
    return overrides


@pytest.fixture
def mock_clients(client_overrides) -> AwsClients:
    return AwsClients(REGION, overrides=client_overrides)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep process environment from leaking into config loading."""
    for var in (
        "NODE_ENV",
        "AWS_REGION_NAME",
        "AWS_DEFAULT_REGION",
        "PROJECT_NAME",
        "LAMBDA_FUNCTION_ARN",
        "LAMBDA_ROLE_ARN",
        "LOG_LEVEL",
        "STRUCTURED_LOGGING",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    yield
