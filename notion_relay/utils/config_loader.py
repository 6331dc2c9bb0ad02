"""Configuration loader for the Notion sync relay."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import ValidationError

from notion_relay.models.config import AppConfig
from notion_relay.utils.errors import ConfigurationError

log = structlog.stdlib.get_logger()


class ConfigLoader:
    """Loads and validates relay configuration from YAML files and environment variables."""

    def __init__(self) -> None:
        """Initialize the ConfigLoader."""
        # ${VAR} or ${VAR:-default}
        self.env_var_pattern = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")

    def load_config(self, config_path: Optional[str] = None) -> AppConfig:
        """Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to the configuration YAML file. If None, uses
                         config/<APP_ENV>.yaml, falling back to config/default.yaml

        Returns:
            AppConfig: Validated relay configuration

        Raises:
            ConfigurationError: If configuration file is missing or invalid
        """
        if config_path is None:
            config_path = self._get_default_config_path()

        log.info("loading_configuration", config_path=config_path)

        config_dict = self._load_yaml_file(config_path)
        config_dict = self._substitute_env_vars(config_dict)

        try:
            app_config = AppConfig(**config_dict)
            log.info("configuration_loaded_successfully")
            return app_config
        except ValidationError as e:
            log.error("configuration_validation_failed", error=str(e))
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    def _get_default_config_path(self) -> str:
        """Get the default configuration file path based on environment.

        Returns:
            str: Path to the configuration file
        """
        env = os.getenv("APP_ENV", "default")
        config_dir = Path(__file__).parent.parent.parent / "config"
        config_file = config_dir / f"{env}.yaml"

        if not config_file.exists():
            config_file = config_dir / "default.yaml"

        if not config_file.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_file}. "
                f"Please create config/default.yaml or set APP_ENV to a valid environment."
            )

        return str(config_file)

    def _load_yaml_file(self, config_path: str) -> Dict[str, Any]:
        """Load YAML configuration file.

        Args:
            config_path: Path to the YAML file

        Returns:
            Dict containing the configuration

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(config_path, "r") as f:
                config_dict = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML file {config_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration file {config_path}: {e}")

        if config_dict is None:
            raise ConfigurationError(f"Configuration file is empty: {config_path}")
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        log.debug("yaml_file_loaded", config_path=config_path)
        return config_dict

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute environment variables in configuration.

        Args:
            config: Configuration value (can be dict, list, str, or other types)

        Returns:
            Configuration with environment variables substituted

        Raises:
            ConfigurationError: If a required environment variable is not set
        """
        if isinstance(config, dict):
            return {key: self._substitute_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_env_var_in_string(config)
        else:
            return config

    def _substitute_env_var_in_string(self, value: str) -> Any:
        """Substitute ${VAR} and ${VAR:-default} patterns in a string.

        A value that consists solely of one pattern resolving to an empty
        default becomes None, so optional fields can be left unset.

        Raises:
            ConfigurationError: If a variable without default is not set
        """

        def replace(match: re.Match) -> str:
            var_name, default = match.group(1), match.group(2)
            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            if default is not None:
                return default
            raise ConfigurationError(
                f"Required environment variable not set: {var_name}. "
                f"Please set {var_name} in your environment or .env file."
            )

        substituted = self.env_var_pattern.sub(replace, value)
        if substituted == "" and self.env_var_pattern.fullmatch(value):
            return None
        return substituted

    def validate_config(self, config: AppConfig) -> list[str]:
        """Validate configuration and return any warnings.

        Args:
            config: Relay configuration to validate

        Returns:
            List of warning messages (empty if no warnings)
        """
        warnings = []

        if config.sync.auto_sync_enabled and not config.notion.integration_token:
            warnings.append(
                "sync.auto_sync_enabled is set but notion.integration_token is empty; "
                "the poll scheduler will not start"
            )

        if config.server.cors_origin_regex:
            try:
                re.compile(config.server.cors_origin_regex)
            except re.error as e:
                warnings.append(f"server.cors_origin_regex is not a valid pattern: {e}")

        if warnings:
            log.warning("configuration_validation_warnings", warnings=warnings)

        return warnings
