#!/usr/bin/env python3
"""
Configuration Manager for the ECR asset cleaner

This module handles loading and managing configuration from config.yaml
and environment variables, and builds the boto3 clients the collectors use.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import boto3
import yaml
from botocore.config import Config

# Registry limit for imageIds in a single BatchDeleteImage call
MAX_DELETE_BATCH_SIZE = 100

USAGE_SOURCE_TASK_DEFINITIONS = "task_definitions"
USAGE_SOURCE_RUNNING_TASKS = "running_tasks"
USAGE_SOURCES = (USAGE_SOURCE_TASK_DEFINITIONS, USAGE_SOURCE_RUNNING_TASKS)

RETRY_MODES = ("legacy", "standard", "adaptive")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "y", "on")


class ConfigManager:
    """Manages configuration for the ECR asset cleaner"""

    def __init__(self, config_file: str = None, validate: bool = True):
        """Initialize ConfigManager

        Args:
            config_file: Path to configuration YAML file (defaults to CONFIG_FILE env var or ./config.yaml)
            validate: If True, validate configuration on initialization
        """
        if config_file is None:
            config_file = os.environ.get("CONFIG_FILE", "config.yaml")
        self.config_file = config_file
        self.config = self._load_config()

        if validate:
            self.validate_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file with defaults"""
        default_config = {
            "aws": {
                "region": None,
                "profile": None,
                "max_attempts": 10,
                "retry_mode": "standard",
            },
            "ecs": {"usage_source": USAGE_SOURCE_TASK_DEFINITIONS},
            "deletion": {"batch_size": MAX_DELETE_BATCH_SIZE},
            "security": {"dry_run_by_default": True},
            "logging": {"level": "INFO"},
        }

        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, "r") as f:
                    user_config = yaml.safe_load(f) or {}
                return self._merge_config(default_config, user_config)
            else:
                logging.debug(f"Config file {self.config_file} not found, using defaults")
                return default_config
        except (OSError, yaml.YAMLError) as e:
            logging.error(f"Error loading config file {self.config_file}: {e}")
            return default_config

    def _merge_config(self, default: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge user config with defaults"""
        result = default.copy()
        for key, value in user.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    # AWS configuration
    def get_aws_region(self) -> Optional[str]:
        """Region from AWS_REGION / AWS_DEFAULT_REGION, then config. None lets boto3 resolve it."""
        return (
            os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
            or self.config["aws"].get("region")
        )

    def get_aws_profile(self) -> Optional[str]:
        return os.environ.get("AWS_PROFILE") or self.config["aws"].get("profile")

    def get_max_attempts(self) -> int:
        value = self.config["aws"].get("max_attempts", 10)
        try:
            return int(value)
        except (TypeError, ValueError):
            return value

    def get_retry_mode(self) -> str:
        return self.config["aws"].get("retry_mode", "standard")

    # ECS configuration
    def get_ecs_usage_source(self) -> str:
        """How in-use ECS images are found: "task_definitions" or "running_tasks"."""
        return os.environ.get("ECS_USAGE_SOURCE") or self.config["ecs"]["usage_source"]

    # Deletion configuration
    def get_delete_batch_size(self) -> int:
        value = os.environ.get("DELETE_BATCH_SIZE") or self.config["deletion"]["batch_size"]
        try:
            return int(value)
        except (TypeError, ValueError):
            return value

    def is_dry_run_by_default(self) -> bool:
        return _parse_bool(self.config["security"].get("dry_run_by_default", True))

    # Logging configuration
    def get_log_level(self) -> str:
        return str(os.environ.get("LOG_LEVEL") or self.config["logging"]["level"]).upper()

    def get_client(self, service_name: str):
        """Create a boto3 client for ``service_name``.

        A new Session is built for every client so each collector thread owns
        its client outright; boto3 sessions are not thread safe.
        """
        session = boto3.session.Session(
            profile_name=self.get_aws_profile(),
            region_name=self.get_aws_region(),
        )
        client_config = Config(
            retries={"max_attempts": self.get_max_attempts(), "mode": self.get_retry_mode()},
        )
        return session.client(service_name, config=client_config)

    def validate_config(self) -> None:
        """Validate configuration values

        Raises:
            ConfigValidationError: If configuration is invalid
        """
        errors: List[str] = []

        usage_source = self.get_ecs_usage_source()
        if usage_source not in USAGE_SOURCES:
            errors.append(
                f"ecs.usage_source must be one of {', '.join(USAGE_SOURCES)}, got: {usage_source}"
            )

        batch_size = self.get_delete_batch_size()
        if not isinstance(batch_size, int) or batch_size < 1 or batch_size > MAX_DELETE_BATCH_SIZE:
            errors.append(
                f"deletion.batch_size must be an integer between 1 and {MAX_DELETE_BATCH_SIZE}, got: {batch_size}"
            )

        max_attempts = self.get_max_attempts()
        if not isinstance(max_attempts, int) or max_attempts < 1:
            errors.append(f"aws.max_attempts must be a positive integer, got: {max_attempts}")

        retry_mode = self.get_retry_mode()
        if retry_mode not in RETRY_MODES:
            errors.append(f"aws.retry_mode must be one of {', '.join(RETRY_MODES)}, got: {retry_mode}")

        log_level = self.get_log_level()
        if log_level not in LOG_LEVELS:
            errors.append(f"logging.level must be one of {', '.join(LOG_LEVELS)}, got: {log_level}")

        if errors:
            raise ConfigValidationError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )

    def print_config(self):
        """Print current configuration (for debugging)"""
        print("Current Configuration:")
        print(f"  Config File: {self.config_file}")
        print(f"  AWS Region: {self.get_aws_region() or '(boto3 default)'}")
        print(f"  AWS Profile: {self.get_aws_profile() or '(boto3 default)'}")
        print(f"  Retries: {self.get_max_attempts()} attempts ({self.get_retry_mode()} mode)")
        print(f"  ECS Usage Source: {self.get_ecs_usage_source()}")
        print(f"  Delete Batch Size: {self.get_delete_batch_size()}")
        print(f"  Dry Run By Default: {self.is_dry_run_by_default()}")
        print(f"  Log Level: {self.get_log_level()}")


# Global config manager instance; the CLI validates the instance it actually runs with
config_manager = ConfigManager(validate=False)
