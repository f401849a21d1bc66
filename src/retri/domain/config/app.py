"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from retri.domain.config.benchmark import BenchmarkConfig
from retri.domain.config.circuit_breaker import CircuitBreakerConfig
from retri.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        retry: Retry policy configuration
        circuit_breaker: Circuit breaker configuration
        benchmark: Benchmark harness configuration
    """

    retry: RetryConfig = Field(default_factory=RetryConfig)
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)
    benchmark: BenchmarkConfig = Field(default_factory=BenchmarkConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "retry": {
                    "retries": 3,
                    "delay": 0.1,
                    "factor": 2.0,
                    "max_delay": 5.0,
                    "jitter": "equal",
                    "timeout": 10.0,
                    "max_duration": 60.0,
                },
                "circuit_breaker": {
                    "enabled": True,
                    "failure_threshold": 5,
                    "cooldown": 30.0,
                },
                "benchmark": {
                    "iterations": 10000,
                    "warmup": 1000,
                    "retries": [0, 1, 3, 5],
                },
            }
        },
    )
