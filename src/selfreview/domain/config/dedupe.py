"""Deduplication configuration model."""

from pydantic import BaseModel, Field


class DedupeConfig(BaseModel):
    """Configuration for finding deduplication.

    Attributes:
        similarity_threshold: Title Jaccard similarity at which overlapping findings collapse
    """

    similarity_threshold: float = Field(0.6, ge=0.0, le=1.0)
