"""Analyzer configuration model."""

from typing import List, Literal

from pydantic import BaseModel, Field


class AnalyzerConfig(BaseModel):
    """Configuration for the analysis collaborator.

    Attributes:
        provider: Analyzer implementation (mock or external command)
        command: Argument vector of the external analyzer (command provider only)
        timeout: Seconds to wait for one chunk's analysis
    """

    provider: Literal["mock", "command"] = "mock"
    command: List[str] = Field(default_factory=list)
    timeout: float = Field(300.0, gt=0.0)
