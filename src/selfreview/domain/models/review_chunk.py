"""ReviewChunk model - a budget-bounded batch of files for one analysis pass"""

from dataclasses import dataclass, field
from typing import List

from selfreview.domain.models.file_change import FileChange

CHUNK_SEPARATOR = "\n\n---\n\n"


@dataclass
class ReviewChunk:
    """Batch of files submitted together for analysis"""

    files: List[FileChange] = field(default_factory=list)
    token_estimate: int = 0
    contexts: List[str] = field(default_factory=list)  # Rendered context per file, same order

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    @property
    def file_count(self) -> int:
        return len(self.files)

    def render(self) -> str:
        """Full context text handed to the analysis collaborator"""
        return CHUNK_SEPARATOR.join(self.contexts)
