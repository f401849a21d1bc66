"""Configuration models with Pydantic validation."""

from retri.domain.config.app import AppConfig
from retri.domain.config.benchmark import BenchmarkConfig
from retri.domain.config.circuit_breaker import CircuitBreakerConfig
from retri.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "BenchmarkConfig",
    "CircuitBreakerConfig",
    "RetryConfig",
]
