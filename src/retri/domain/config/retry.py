"""Retry policy configuration model."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class RetryConfig(BaseModel):
    """Declarative retry policy, loadable from ``.retri.yml``.

    Attributes:
        retries: Retries beyond the initial attempt
        delay: Initial delay in seconds
        factor: Exponential backoff multiplier
        max_delay: Upper bound on any single wait in seconds (None = unbounded)
        jitter: Jitter mode (none, full, equal)
        timeout: Per-attempt timeout in seconds (None = no timeout)
        max_duration: Overall budget in seconds (None = unbounded)
    """

    retries: int = Field(3, ge=0, le=100)
    delay: float = Field(0.1, ge=0.0)
    factor: float = Field(2.0, gt=0.0, le=10.0)
    max_delay: Optional[float] = Field(None, ge=0.0)
    jitter: Literal["none", "full", "equal"] = "none"
    timeout: Optional[float] = Field(None, gt=0.0)
    max_duration: Optional[float] = Field(None, ge=0.0)
