"""FileChange model - represents changes in a file"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Hunk:
    """Represents a hunk (block of changes) in a file"""

    old_start: int  # Starting line number in old file
    old_count: int  # Number of lines in old file
    new_start: int  # Starting line number in new file
    new_count: int  # Number of lines in new file
    header: str = ""  # Function/context label after the closing @@
    lines: List[str] = field(default_factory=list)  # Body lines (with +/-/space prefixes)
    added_lines: List[int] = field(default_factory=list)  # New-file line numbers
    removed_lines: List[int] = field(default_factory=list)  # Old-file line numbers
    raw_header: str = ""  # The @@ line exactly as it appeared in the diff

    @property
    def header_line(self) -> str:
        """The @@ header line for this hunk"""
        if self.raw_header:
            return self.raw_header
        line = f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"
        if self.header:
            line += f" {self.header}"
        return line

    @property
    def content(self) -> str:
        """Raw hunk text: header line followed by body lines"""
        return "\n".join([self.header_line] + self.lines)

    @property
    def has_changes(self) -> bool:
        """Check if hunk adds or removes at least one line"""
        return bool(self.added_lines or self.removed_lines)


@dataclass
class FileChange:
    """Represents changes in a single file"""

    path: str  # File path (new side of the diff)
    is_new: bool = False
    is_deleted: bool = False
    is_binary: bool = False
    hunks: List[Hunk] = field(default_factory=list)
    new_content: Optional[str] = None  # Full content at target revision (filled in later)

    def __post_init__(self):
        if self.is_binary:
            self.hunks = []

    @property
    def status(self) -> str:
        """Change status: added, deleted, binary or modified"""
        if self.is_binary:
            return "binary"
        if self.is_new:
            return "added"
        if self.is_deleted:
            return "deleted"
        return "modified"

    @property
    def is_reviewable(self) -> bool:
        """Check if file has anything to analyze"""
        return bool(self.hunks) and not self.is_binary

    @property
    def total_lines_changed(self) -> int:
        """Calculate total number of lines added and removed"""
        return sum(len(hunk.added_lines) + len(hunk.removed_lines) for hunk in self.hunks)

    def get_line_type(self, line_number: int) -> str:
        """Determine line type (new/unchanged) for a given line number

        Args:
            line_number: Line number in the new file (1-based)

        Returns:
            Line type: "new" or "unchanged"
        """
        for hunk in self.hunks:
            if line_number in hunk.added_lines:
                return "new"
        return "unchanged"
