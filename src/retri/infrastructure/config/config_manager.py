"""Configuration manager for loading and validating .retri.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from retri.domain.config import (
    AppConfig,
    BenchmarkConfig,
    CircuitBreakerConfig,
    RetryConfig,
)
from retri.domain.models.circuit_breaker import CircuitBreakerState, create_circuit_breaker_state
from retri.domain.models.retry_options import CircuitBreakerOptions, RetryOptions

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".retri.yml"

# Environment variable -> (section, key, converter)
ENV_OVERRIDES = {
    "RETRI_RETRIES": ("retry", "retries", int),
    "RETRI_DELAY": ("retry", "delay", float),
    "RETRI_MAX_DELAY": ("retry", "max_delay", float),
    "RETRI_JITTER": ("retry", "jitter", str),
    "RETRI_TIMEOUT": ("retry", "timeout", float),
    "RETRI_MAX_DURATION": ("retry", "max_duration", float),
}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .retri.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .retri.yml file (searched from current directory upwards)
    3. Environment variables (RETRI_*)
    4. CLI arguments and runtime options (handled by callers)
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .retri.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        self._breaker_state: Optional[CircuitBreakerState] = None
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .retri.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If the file cannot be read or parsed
        """
        config_dict = copy.deepcopy(AppConfig().model_dump())

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"{self.config_path} must contain a mapping at the top level")
            config_dict = self._merge_config(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)
        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply RETRI_* environment variable overrides

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with env overrides applied

        Raises:
            ConfigurationError: If a variable cannot be converted
        """
        for env_name, (section, key, convert) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if not raw:
                continue
            try:
                config[section][key] = convert(raw)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}") from e
            logger.debug(f"{env_name} overrides {section}.{key}")
        return config

    def get_retry_config(self) -> RetryConfig:
        """Get retry configuration

        Returns:
            Retry configuration model
        """
        return self.config.retry

    def get_circuit_breaker_config(self) -> CircuitBreakerConfig:
        """Get circuit breaker configuration

        Returns:
            Circuit breaker configuration model
        """
        return self.config.circuit_breaker

    def get_benchmark_config(self) -> BenchmarkConfig:
        """Get benchmark configuration

        Returns:
            Benchmark configuration model
        """
        return self.config.benchmark

    @property
    def breaker_state(self) -> CircuitBreakerState:
        """Breaker state shared by every RetryOptions this manager creates"""
        if self._breaker_state is None:
            self._breaker_state = create_circuit_breaker_state()
        return self._breaker_state

    def create_retry_options(self, **runtime: Any) -> RetryOptions:
        """Build runtime retry options from the configured policy

        Args:
            **runtime: Runtime-only fields (retry_on, on_retry, cancellation,
                clock, ...) or overrides of configured values

        Returns:
            Validated RetryOptions
        """
        fields: Dict[str, Any] = self.config.retry.model_dump()
        breaker = self.config.circuit_breaker
        if breaker.enabled:
            fields["circuit_breaker"] = CircuitBreakerOptions(
                failure_threshold=breaker.failure_threshold,
                cooldown=breaker.cooldown,
                state=self.breaker_state,
            )
        fields.update(runtime)
        return RetryOptions(**fields)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "retry.delay" or "retry")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
