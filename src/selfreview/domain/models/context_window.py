"""ContextWindow model - a merged, renderable span of a file"""

from dataclasses import dataclass, field
from typing import List, Set

from selfreview.domain.models.file_change import Hunk


@dataclass
class ContextWindow:
    """Span of source lines shown around one or more hunks

    start is a 0-based inclusive index, end is 0-based exclusive.
    """

    start: int
    end: int
    hunks: List[Hunk] = field(default_factory=list)

    @property
    def added_lines(self) -> Set[int]:
        """1-based line numbers added by the hunks in this window"""
        return {line for hunk in self.hunks for line in hunk.added_lines}

    @property
    def first_line(self) -> int:
        return self.start + 1

    @property
    def last_line(self) -> int:
        return self.end

    @property
    def line_count(self) -> int:
        return max(0, self.end - self.start)

    def contains(self, line_number: int) -> bool:
        """Check if a 1-based line number falls inside the window"""
        return self.first_line <= line_number <= self.last_line
