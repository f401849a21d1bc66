"""Circuit breaker configuration model."""

from pydantic import BaseModel, Field


class CircuitBreakerConfig(BaseModel):
    """Configuration for the circuit breaker guard.

    Attributes:
        enabled: Whether retry options built from config carry a breaker
        failure_threshold: Consecutive failures before the breaker opens
        cooldown: Seconds the breaker stays open before allowing a probe
    """

    enabled: bool = False
    failure_threshold: int = Field(5, gt=0)
    cooldown: float = Field(30.0, ge=0.0)
