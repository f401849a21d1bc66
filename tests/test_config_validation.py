"""Tests for configuration validation with Pydantic."""

import tempfile
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from retri.domain.config import (
    AppConfig,
    BenchmarkConfig,
    CircuitBreakerConfig,
    RetryConfig,
)
from retri.domain.models.delay import FixedDelay, JitterMode
from retri.infrastructure.config.config_manager import ConfigManager, ConfigurationError


def _write_config(data) -> str:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yml", delete=False) as f:
        yaml.dump(data, f)
        return f.name


class TestRetryConfigValidation:
    """Tests for RetryConfig validation."""

    def test_valid_retry_config(self):
        """Test valid retry configuration"""
        config = RetryConfig(
            retries=5,
            delay=0.5,
            factor=3.0,
            max_delay=10.0,
            jitter="equal",
        )
        assert config.retries == 5
        assert config.jitter == "equal"

    def test_retries_zero_allowed(self):
        """Test a single attempt policy is valid"""
        assert RetryConfig(retries=0).retries == 0

    def test_retries_negative(self):
        """Test retries must be non-negative"""
        with pytest.raises(ValidationError, match="retries"):
            RetryConfig(retries=-1)

    def test_retries_too_high(self):
        """Test retries above limit"""
        with pytest.raises(ValidationError, match="retries"):
            RetryConfig(retries=101)

    def test_factor_zero(self):
        """Test factor must be positive"""
        with pytest.raises(ValidationError, match="factor"):
            RetryConfig(factor=0)

    def test_invalid_jitter(self):
        """Test unknown jitter mode"""
        with pytest.raises(ValidationError, match="jitter"):
            RetryConfig(jitter="random")

    def test_negative_max_duration(self):
        """Test max_duration must be non-negative"""
        with pytest.raises(ValidationError, match="max_duration"):
            RetryConfig(max_duration=-1)


class TestCircuitBreakerConfigValidation:
    """Tests for CircuitBreakerConfig validation."""

    def test_defaults(self):
        """Test breaker is disabled by default"""
        config = CircuitBreakerConfig()
        assert config.enabled is False
        assert config.failure_threshold == 5

    def test_threshold_zero(self):
        """Test failure_threshold must be positive"""
        with pytest.raises(ValidationError, match="failure_threshold"):
            CircuitBreakerConfig(failure_threshold=0)

    def test_negative_cooldown(self):
        """Test cooldown must be non-negative"""
        with pytest.raises(ValidationError, match="cooldown"):
            CircuitBreakerConfig(cooldown=-5)


class TestBenchmarkConfigValidation:
    """Tests for BenchmarkConfig validation."""

    def test_defaults(self):
        """Test default scenarios"""
        config = BenchmarkConfig()
        assert config.retries == [0, 1, 3, 5]
        assert config.iterations == 10_000

    def test_negative_retries_rejected(self):
        """Test retry budgets must be non-negative"""
        with pytest.raises(ValidationError, match="retries"):
            BenchmarkConfig(retries=[1, -2])

    def test_iterations_zero(self):
        """Test iterations must be positive"""
        with pytest.raises(ValidationError, match="iterations"):
            BenchmarkConfig(iterations=0)


class TestAppConfigValidation:
    """Tests for AppConfig validation."""

    def test_valid_app_config(self):
        """Test valid application configuration"""
        config = AppConfig()
        assert config.retry.retries == 3
        assert config.circuit_breaker.enabled is False

    def test_unknown_field_rejected(self):
        """Test unknown fields are rejected"""
        with pytest.raises(ValidationError, match="extra"):
            AppConfig(unknown_field="value")

    def test_nested_validation(self):
        """Test nested validation works"""
        with pytest.raises(ValidationError, match="factor"):
            AppConfig(retry={"factor": -1})


class TestConfigManagerValidation:
    """Tests for ConfigManager validation."""

    def test_load_valid_config_from_file(self):
        """Test loading valid configuration from file"""
        config_path = _write_config({"retry": {"retries": 7, "jitter": "full"}})
        try:
            manager = ConfigManager(config_path=config_path)
            assert manager.config.retry.retries == 7
            assert manager.config.retry.jitter == "full"
            # Unspecified keys keep their defaults
            assert manager.config.retry.delay == 0.1
        finally:
            Path(config_path).unlink()

    def test_load_invalid_config_raises_error(self):
        """Test loading invalid configuration raises error"""
        config_path = _write_config({"retry": {"factor": 0}})
        try:
            with pytest.raises(ConfigurationError, match="retry.factor"):
                ConfigManager(config_path=config_path)
        finally:
            Path(config_path).unlink()

    def test_non_mapping_file_rejected(self, tmp_path):
        """Test a YAML file that is not a mapping"""
        config_path = tmp_path / ".retri.yml"
        config_path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigManager(config_path=config_path)

    def test_malformed_yaml_rejected(self, tmp_path):
        """Test unparsable YAML"""
        config_path = tmp_path / ".retri.yml"
        config_path.write_text("retry: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Failed to load"):
            ConfigManager(config_path=config_path)

    def test_default_config_is_valid(self, tmp_path, monkeypatch):
        """Test default configuration is valid"""
        monkeypatch.chdir(tmp_path)
        manager = ConfigManager()
        assert manager.config_path is None
        assert isinstance(manager.config, AppConfig)

    def test_finds_config_in_parent_directory(self, tmp_path, monkeypatch):
        """Test .retri.yml is searched upwards from the cwd"""
        (tmp_path / ".retri.yml").write_text("retry:\n  retries: 9\n", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        manager = ConfigManager()

        assert manager.config_path == tmp_path / ".retri.yml"
        assert manager.config.retry.retries == 9

    def test_get_typed_config_sections(self, tmp_path, monkeypatch):
        """Test getter methods return typed models"""
        monkeypatch.chdir(tmp_path)
        manager = ConfigManager()

        assert isinstance(manager.get_retry_config(), RetryConfig)
        assert isinstance(manager.get_circuit_breaker_config(), CircuitBreakerConfig)
        assert isinstance(manager.get_benchmark_config(), BenchmarkConfig)

    def test_get_dot_notation(self, tmp_path, monkeypatch):
        """Test dot-notation lookup"""
        monkeypatch.chdir(tmp_path)
        manager = ConfigManager()
        assert manager.get("retry.factor") == 2.0
        assert manager.get("retry.missing", "fallback") == "fallback"

    def test_env_overrides_work(self, tmp_path, monkeypatch):
        """Test environment variable overrides"""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("RETRI_RETRIES", "6")
        monkeypatch.setenv("RETRI_DELAY", "0.25")
        monkeypatch.setenv("RETRI_JITTER", "equal")

        manager = ConfigManager()
        assert manager.config.retry.retries == 6
        assert manager.config.retry.delay == 0.25
        assert manager.config.retry.jitter == "equal"

    def test_env_override_invalid_value(self, tmp_path, monkeypatch):
        """Test unconvertible environment values"""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("RETRI_RETRIES", "many")
        with pytest.raises(ConfigurationError, match="RETRI_RETRIES"):
            ConfigManager()


class TestCreateRetryOptions:
    """Tests for building runtime options from configuration."""

    def test_options_from_config(self):
        """Test configured policy flows into RetryOptions"""
        config_path = _write_config({"retry": {"retries": 2, "delay": 0.5, "jitter": "equal", "timeout": 3}})
        try:
            options = ConfigManager(config_path=config_path).create_retry_options()
        finally:
            Path(config_path).unlink()

        assert options.retries == 2
        assert options.delay == FixedDelay(0.5)
        assert options.jitter == JitterMode.EQUAL
        assert options.timeout == 3
        assert options.circuit_breaker is None

    def test_runtime_fields_override(self, tmp_path, monkeypatch):
        """Test runtime fields are merged over configuration"""
        monkeypatch.chdir(tmp_path)

        def observer(*_args):
            pass

        options = ConfigManager().create_retry_options(retries=0, on_retry=observer)

        assert options.retries == 0
        assert options.on_retry is observer

    def test_enabled_breaker_shares_state(self):
        """Test every options object created shares the manager's breaker state"""
        config_path = _write_config({"circuit_breaker": {"enabled": True, "failure_threshold": 2, "cooldown": 5}})
        try:
            manager = ConfigManager(config_path=config_path)
        finally:
            Path(config_path).unlink()

        first = manager.create_retry_options()
        second = manager.create_retry_options()

        assert first.circuit_breaker.failure_threshold == 2
        assert first.circuit_breaker.cooldown == 5
        assert first.circuit_breaker.state is manager.breaker_state
        assert second.circuit_breaker.state is first.circuit_breaker.state
