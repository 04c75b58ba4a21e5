"""Review target configuration model."""

from pydantic import BaseModel


class ReviewConfig(BaseModel):
    """Configuration for what gets reviewed.

    Attributes:
        base_branch: Branch to compare against
        target_branch: Branch under review (empty = HEAD + working tree)
        include_uncommitted: Include working tree changes when target is the current checkout
        custom_instructions: Free-text instructions passed to the analyzer
    """

    base_branch: str = "develop"
    target_branch: str = ""
    include_uncommitted: bool = True
    custom_instructions: str = ""
