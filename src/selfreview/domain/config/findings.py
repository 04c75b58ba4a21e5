"""Findings configuration model."""

from typing import List, Literal

from pydantic import BaseModel, Field


class FindingsConfig(BaseModel):
    """Configuration for reported findings.

    Attributes:
        severity_threshold: Minimum severity to report
        max_findings: Maximum findings kept after deduplication
        categories: Review categories passed to the analyzer
    """

    severity_threshold: Literal["blocker", "high", "medium", "low", "nit"] = "low"
    max_findings: int = Field(50, gt=0)
    categories: List[
        Literal["security", "performance", "correctness", "maintainability", "testing", "style", "other"]
    ] = Field(
        default_factory=lambda: [
            "security",
            "performance",
            "correctness",
            "maintainability",
            "testing",
            "style",
        ]
    )
