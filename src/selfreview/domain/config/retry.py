"""Analyzer retry configuration model."""

from pydantic import BaseModel, Field


class RetryConfig(BaseModel):
    """Configuration for retrying a failed chunk analysis.

    Attributes:
        max_attempts: Analyzer calls per chunk, including the first one
        initial_delay: Seconds to wait before the first retry
        backoff_multiplier: Factor applied to the delay after every retry
        max_delay: Upper bound for a single wait in seconds
        jitter: Random extra delay as a fraction of initial_delay (0.0-1.0)
    """

    max_attempts: int = Field(2, gt=0, le=10)
    initial_delay: float = Field(1.0, ge=0.0)  # 0 disables waiting
    backoff_multiplier: float = Field(2.0, ge=1.0, le=10.0)
    max_delay: float = Field(60.0, gt=0.0)
    jitter: float = Field(0.1, ge=0.0, le=1.0)
