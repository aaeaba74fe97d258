"""Unit tests for ecr_cleaner/config_manager.py"""

import os
import tempfile
from unittest.mock import MagicMock, patch

import pytest
import yaml

from ecr_cleaner.config_manager import ConfigManager, ConfigValidationError

OVERRIDE_VARS = ("AWS_REGION", "AWS_DEFAULT_REGION", "AWS_PROFILE", "ECS_USAGE_SOURCE",
                 "DELETE_BATCH_SIZE", "LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the caller's AWS/cleaner environment out of these tests"""
    for name in OVERRIDE_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file():
    """Write a config dict to a temporary YAML file and return its path"""
    paths = []

    def write(config):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(config, f)
            paths.append(f.name)
        return f.name

    yield write
    for path in paths:
        os.unlink(path)


class TestConfigManagerInitialization:
    """Tests for ConfigManager initialization"""

    def test_loads_default_config_when_file_not_found(self):
        cm = ConfigManager(config_file="/nonexistent/config.yaml")

        assert cm.get_aws_region() is None
        assert cm.get_ecs_usage_source() == "task_definitions"
        assert cm.get_delete_batch_size() == 100
        assert cm.is_dry_run_by_default() is True
        assert cm.get_log_level() == "INFO"
        assert cm.get_max_attempts() == 10
        assert cm.get_retry_mode() == "standard"

    def test_merges_user_config_with_defaults(self, config_file):
        path = config_file({"aws": {"region": "eu-west-1"}, "deletion": {"batch_size": 25}})

        cm = ConfigManager(config_file=path)

        assert cm.get_aws_region() == "eu-west-1"
        assert cm.get_delete_batch_size() == 25
        # default preserved
        assert cm.get_retry_mode() == "standard"

    def test_environment_variables_override_config(self, config_file):
        path = config_file({"aws": {"region": "eu-west-1", "profile": "file"}})

        with patch.dict(os.environ, {
            "AWS_REGION": "us-east-2",
            "AWS_PROFILE": "env",
            "ECS_USAGE_SOURCE": "running_tasks",
            "DELETE_BATCH_SIZE": "50",
            "LOG_LEVEL": "debug",
        }):
            cm = ConfigManager(config_file=path)
            assert cm.get_aws_region() == "us-east-2"
            assert cm.get_aws_profile() == "env"
            assert cm.get_ecs_usage_source() == "running_tasks"
            assert cm.get_delete_batch_size() == 50
            assert cm.get_log_level() == "DEBUG"

    def test_uses_config_file_environment_variable(self, config_file):
        path = config_file({"security": {"dry_run_by_default": False}})

        with patch.dict(os.environ, {"CONFIG_FILE": path}):
            cm = ConfigManager()

        assert cm.config_file == path
        assert cm.is_dry_run_by_default() is False

    def test_invalid_yaml_falls_back_to_defaults(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("aws: [unclosed\n")
        try:
            cm = ConfigManager(config_file=f.name)
            assert cm.get_delete_batch_size() == 100
        finally:
            os.unlink(f.name)


class TestValidation:
    """Tests for validate_config"""

    @pytest.mark.parametrize("config, fragment", [
        ({"deletion": {"batch_size": 101}}, "deletion.batch_size"),
        ({"deletion": {"batch_size": 0}}, "deletion.batch_size"),
        ({"deletion": {"batch_size": "lots"}}, "deletion.batch_size"),
        ({"ecs": {"usage_source": "services"}}, "ecs.usage_source"),
        ({"aws": {"max_attempts": 0}}, "aws.max_attempts"),
        ({"aws": {"retry_mode": "aggressive"}}, "aws.retry_mode"),
        ({"logging": {"level": "chatty"}}, "logging.level"),
    ])
    def test_rejects_invalid_values(self, config_file, config, fragment):
        path = config_file(config)

        with pytest.raises(ConfigValidationError, match=fragment):
            ConfigManager(config_file=path)

    def test_reports_every_problem(self, config_file):
        path = config_file({"deletion": {"batch_size": 500}, "ecs": {"usage_source": "x"}})

        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigManager(config_file=path)

        assert "deletion.batch_size" in str(exc_info.value)
        assert "ecs.usage_source" in str(exc_info.value)

    def test_validation_can_be_skipped(self, config_file):
        path = config_file({"deletion": {"batch_size": 500}})

        cm = ConfigManager(config_file=path, validate=False)

        assert cm.get_delete_batch_size() == 500


class TestGetClient:
    """Tests for get_client"""

    def test_builds_client_from_fresh_session(self, config_file):
        path = config_file({"aws": {"region": "ap-south-1", "profile": "ops", "max_attempts": 4}})
        cm = ConfigManager(config_file=path)

        session = MagicMock()
        with patch("ecr_cleaner.config_manager.boto3.session.Session", return_value=session) as session_cls:
            client = cm.get_client("ecr")

        session_cls.assert_called_once_with(profile_name="ops", region_name="ap-south-1")
        service, kwargs = session.client.call_args.args[0], session.client.call_args.kwargs
        assert service == "ecr"
        assert kwargs["config"].retries == {"max_attempts": 4, "mode": "standard"}
        assert client is session.client.return_value
