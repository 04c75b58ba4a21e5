"""Processing limits configuration model."""

from pydantic import BaseModel, Field


class LimitsConfig(BaseModel):
    """Configuration for chunking limits.

    Attributes:
        token_budget: Maximum estimated tokens per review chunk
        max_files_per_chunk: Maximum number of files in one chunk
        context_lines: Unchanged lines shown around each hunk
        chars_per_token: Characters per token used for size estimates
    """

    token_budget: int = Field(40000, gt=0)
    max_files_per_chunk: int = Field(5, gt=0)
    context_lines: int = Field(10, ge=0, le=200)
    chars_per_token: float = Field(3.5, gt=0.0)
