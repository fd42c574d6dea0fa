from unittest.mock import MagicMock

import pytest

from conftest import DEV_TAGS, REGION, client_error
from resource_manager.config import ResourceManagerConfig
from resource_manager.exceptions import ProductionGuardError
from resource_manager.models import OperationResult, TransitionReport
from resource_manager.orchestrator import RESOURCE_KINDS, ResourceOrchestrator, record_step
from resource_manager.resources import ManagedResource

STATUS_MODELS = {kind.kind: kind.status_model for kind in RESOURCE_KINDS}


class StubResource(ManagedResource):
    """Resource kind whose transitions are scripted by the test."""

    def __init__(self, config, kind, label, outcome=None, log=None):
        super().__init__(config, MagicMock())
        self.kind = kind
        self.label = label
        self.status_model = STATUS_MODELS[kind]
        self.outcome = outcome if outcome is not None else TransitionReport()
        self.log = log if log is not None else []

    def _run(self, action):
        self.log.append((self.kind, action))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    def shutdown(self):
        return self._run("shutdown")

    def startup(self):
        return self._run("startup")

    def status(self):
        return self.status_model(status="ok", message=self.kind)


def test_kinds_run_in_fixed_order():
    names = [kind.kind for kind in RESOURCE_KINDS]
    assert names == ["rds", "elasticache", "apprunner", "cloudfront", "lambda", "ec2"]


@pytest.mark.parametrize("method", ["shutdown_resources", "startup_resources"])
def test_protected_environment_is_refused_before_any_provider_call(prod_config, method):
    clients = MagicMock()
    orchestrator = ResourceOrchestrator(prod_config, clients)

    with pytest.raises(ProductionGuardError) as exc_info:
        getattr(orchestrator, method)()

    assert "operation is blocked in production environment" in exc_info.value.message
    assert clients.mock_calls == []


def test_status_is_allowed_in_protected_environment(prod_config, mock_clients):
    status = ResourceOrchestrator(prod_config, mock_clients).get_resource_status()

    assert status.cloudfront.status == "active"


def test_shutdown_with_nothing_deployed_succeeds(config, mock_clients):
    result = ResourceOrchestrator(config, mock_clients).shutdown_resources()

    assert result.success is True
    assert result.errors == []
    assert result.operation == "shutdown"
    assert result.environment == "dev"
    assert result.resources.rds is True
    assert result.resources.lambda_ is True
    assert result.resources.ec2 is True
    assert result.resources.cloudfront == {}
    assert result.status is not None
    assert result.status.rds.status == "not-found"


def test_unlisted_environment_is_shut_down(mock_clients, fake_lambda):
    qa = ResourceManagerConfig(environment="qa", aws_region=REGION, structured_logging=False)
    api = fake_lambda.add_function("qa-api", reserved=3, tags={**DEV_TAGS, "Environment": "qa"})
    dev_api = fake_lambda.add_function("dev-api", reserved=5)

    result = ResourceOrchestrator(qa, mock_clients).shutdown_resources()

    assert result.success is True
    assert result.environment == "qa"
    assert fake_lambda.functions[api]["reserved"] == 0
    assert fake_lambda.functions[dev_api]["reserved"] == 5


def test_failing_kind_does_not_stop_the_rest(config, mock_clients, fake_lambda):
    mock_clients.rds.stop_db_instance.side_effect = client_error("AccessDenied", "boom")
    api = fake_lambda.add_function("api", reserved=4)

    result = ResourceOrchestrator(config, mock_clients).shutdown_resources()

    assert result.errors == ["RDS: boom"]
    assert result.success is False
    assert result.resources.rds is False
    assert result.resources.elasticache is True
    assert result.resources.apprunner is True
    assert result.resources.lambda_ is True
    assert result.resources.ec2 is True
    assert fake_lambda.functions[api]["reserved"] == 0


def test_success_mirrors_errors(config):
    log = []
    resources = [
        StubResource(config, "rds", "RDS", log=log),
        StubResource(config, "cloudfront", "CloudFront", TransitionReport({"E1": True, "E2": False}, ["CloudFront E2: x"]), log),
        StubResource(config, "ec2", "EC2", RuntimeError("kaput"), log),
    ]

    result = ResourceOrchestrator(config, MagicMock(), resources).startup_resources()

    assert log == [("rds", "startup"), ("cloudfront", "startup"), ("ec2", "startup")]
    assert result.errors == ["CloudFront E2: x", "EC2: kaput"]
    assert result.success is False
    assert result.resources.cloudfront == {"E1": True, "E2": False}
    assert result.resources.ec2 is False
    assert result.status.rds.status == "ok"


def test_record_step_marks_kind_from_report(config):
    result = OperationResult(operation="shutdown", environment="dev")
    lambda_stub = StubResource(config, "lambda", "Lambda", TransitionReport({"api": False}, ["Lambda api: no"]))

    record_step(result, lambda_stub, "shutdown")

    assert result.resources.lambda_ is False
    assert result.errors == ["Lambda api: no"]


def test_record_step_cloudfront_failure_leaves_map(config):
    result = OperationResult(operation="shutdown", environment="dev")
    stub = StubResource(config, "cloudfront", "CloudFront", RuntimeError("listing failed"))

    record_step(result, stub, "shutdown")

    assert result.resources.cloudfront == {}
    assert result.errors == ["CloudFront: listing failed"]


def test_result_serializes_with_wire_names(config, mock_clients):
    result = ResourceOrchestrator(config, mock_clients).startup_resources()

    data = result.model_dump(mode="json", by_alias=True)

    assert data["success"] is True
    assert set(data["resources"]) == {"rds", "elasticache", "apprunner", "lambda", "ec2", "cloudfront"}
    assert "lambda" in data["status"]
