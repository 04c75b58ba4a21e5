"""Ignore patterns configuration model."""

from typing import List

from pydantic import BaseModel, Field


class IgnoreConfig(BaseModel):
    """Configuration for file filtering.

    Attributes:
        patterns: Glob patterns to exclude from review
    """

    patterns: List[str] = Field(
        default_factory=lambda: [
            "vendor/**",
            "node_modules/**",
            "db/schema.rb",
        ]
    )
