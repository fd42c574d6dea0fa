from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from resource_manager.config import (
    ResourceManagerConfig,
    get_default_config,
    load_config,
)


def test_defaults_and_required_tags():
    cfg = ResourceManagerConfig()

    assert cfg.environment == "dev"
    assert cfg.required_tags() == {"Environment": "dev", "ManagedBy": "terraform", "Project": "legitmark"}
    assert cfg.is_protected is False


def test_prod_is_protected():
    assert ResourceManagerConfig(environment="prod").is_protected is True
    assert ResourceManagerConfig(environment="staging").is_protected is False


def test_fallback_name_uses_template():
    cfg = ResourceManagerConfig(environment="staging", aws_region="eu-west-1", project_name="acme")

    assert cfg.fallback_name("aurora") == "staging-acme-aurora-eu-west-1"
    assert cfg.fallback_name("service") == "staging-acme-service-eu-west-1"


def test_any_environment_name_is_accepted():
    cfg = ResourceManagerConfig(environment="qa")

    assert cfg.required_tags()["Environment"] == "qa"
    assert cfg.is_protected is False


def test_empty_environment_rejected():
    with pytest.raises(ValidationError):
        ResourceManagerConfig(environment="  ")


def test_log_level_is_normalized():
    assert ResourceManagerConfig(log_level="debug").log_level == "DEBUG"
    with pytest.raises(ValidationError):
        ResourceManagerConfig(log_level="chatty")


def test_get_default_config_overrides():
    assert get_default_config("prod")["log_level"] == "WARNING"
    assert get_default_config("dev")["log_level"] == "DEBUG"
    assert get_default_config("local")["structured_logging"] is False


def test_load_config_from_yaml(tmp_path: Path):
    p = tmp_path / "staging.yml"
    p.write_text(yaml.safe_dump({"project_name": "acme", "tagging": {"managed_by": "pulumi"}}))

    cfg = load_config("staging", config_path=p)

    assert isinstance(cfg, ResourceManagerConfig)
    assert cfg.environment == "staging"
    assert cfg.required_tags() == {"Environment": "staging", "ManagedBy": "pulumi", "Project": "acme"}


def test_load_config_env_overrides(tmp_path: Path, monkeypatch):
    p = tmp_path / "dev.yml"
    p.write_text(yaml.safe_dump({"aws_region": "us-east-1", "lambda_settings": {"excluded_name_patterns": ["rm"]}}))
    monkeypatch.setenv("AWS_REGION_NAME", "eu-central-1")
    monkeypatch.setenv("PROJECT_NAME", "other")
    monkeypatch.setenv("LAMBDA_FUNCTION_ARN", "arn:aws:lambda:eu-central-1:1:function:rm")
    monkeypatch.setenv("LAMBDA_ROLE_ARN", "arn:aws:iam::1:role/rm")

    cfg = load_config("dev", config_path=p)

    assert cfg.aws_region == "eu-central-1"
    assert cfg.project_name == "other"
    assert cfg.lambda_settings.function_arn == "arn:aws:lambda:eu-central-1:1:function:rm"
    assert cfg.lambda_settings.role_arn == "arn:aws:iam::1:role/rm"
    assert cfg.lambda_settings.excluded_name_patterns == ["rm"]


def test_load_config_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config("dev", config_path=tmp_path / "missing.yml")


def test_bundled_environment_files_load():
    for env in ("dev", "staging", "prod", "local"):
        cfg = load_config(env)
        assert cfg.environment == env
    assert load_config("prod").is_protected is True


def test_from_yaml_infers_environment_from_filename(tmp_path: Path):
    p = tmp_path / "local.yml"
    p.write_text(yaml.safe_dump({"log_level": "INFO"}))

    cfg = ResourceManagerConfig.from_yaml(p)

    assert cfg.environment == "local"
    assert cfg.log_level == "INFO"


def test_from_env_respects_env_vars(monkeypatch):
    monkeypatch.setenv("NODE_ENV", "staging")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
    monkeypatch.setenv("LAMBDA_FUNCTION_ARN", "arn:aws:lambda:eu-west-1:1:function:rm")
    monkeypatch.setenv("STRUCTURED_LOGGING", "false")

    cfg = ResourceManagerConfig.from_env()

    assert cfg.environment == "staging"
    assert cfg.aws_region == "eu-west-1"
    assert cfg.lambda_settings.function_arn == "arn:aws:lambda:eu-west-1:1:function:rm"
    assert cfg.lambda_settings.role_arn is None
    assert cfg.structured_logging is False


def test_from_env_accepts_unlisted_environment(monkeypatch):
    monkeypatch.setenv("NODE_ENV", "production")

    cfg = ResourceManagerConfig.from_env()

    assert cfg.environment == "production"
    assert cfg.is_protected is False


def test_from_env_blank_node_env_defaults_to_dev(monkeypatch):
    monkeypatch.setenv("NODE_ENV", "")

    assert ResourceManagerConfig.from_env().environment == "dev"
