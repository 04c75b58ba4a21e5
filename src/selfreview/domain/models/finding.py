"""Finding model - represents one issue reported by an analysis pass"""

import random
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Severity(str, Enum):
    """Severity level of a finding (ordered)"""

    BLOCKER = "blocker"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NIT = "nit"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]

    def meets(self, threshold: "Severity") -> bool:
        """Check if this severity is at or above threshold"""
        return self.rank >= Severity.parse(threshold).rank

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """Parse severity, falling back to MEDIUM for unknown values"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.MEDIUM


_SEVERITY_RANKS = {
    Severity.BLOCKER: 5,
    Severity.HIGH: 4,
    Severity.MEDIUM: 3,
    Severity.LOW: 2,
    Severity.NIT: 1,
}


class Category(str, Enum):
    """Category tag of a finding"""

    SECURITY = "security"
    PERFORMANCE = "performance"
    CORRECTNESS = "correctness"
    MAINTAINABILITY = "maintainability"
    TESTING = "testing"
    STYLE = "style"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


class FindingStatus(str, Enum):
    """Lifecycle status of a finding (changed by users only)"""

    OPEN = "open"
    SKIPPED = "skipped"
    FIXED = "fixed"
    IN_PROGRESS = "in-progress"

    @classmethod
    def parse(cls, value: Any) -> "FindingStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OPEN


def next_finding_id() -> str:
    """Generate a unique finding ID"""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"sr-{int(time.time() * 1000)}-{suffix}"


@dataclass
class Finding:
    """Represents a single reported issue"""

    file: str  # File path this finding refers to
    start_line: int  # 1-based, inclusive
    end_line: int  # 1-based, inclusive
    title: str
    severity: Severity = Severity.MEDIUM
    description: str = ""
    suggested_fix: Optional[str] = None
    category: Category = Category.OTHER
    status: FindingStatus = FindingStatus.OPEN
    id: str = field(default_factory=next_finding_id)

    def __post_init__(self):
        """Validate finding data"""
        self.severity = Severity.parse(self.severity)
        self.category = Category.parse(self.category)
        self.status = FindingStatus.parse(self.status)
        if self.start_line < 1:
            raise ValueError("Start line must be >= 1")
        if self.end_line < self.start_line:
            raise ValueError("Invalid line range")

    def overlaps(self, other: "Finding") -> bool:
        """Check if both findings are in the same file and their line ranges intersect"""
        return (
            self.file == other.file
            and self.start_line <= other.end_line
            and self.end_line >= other.start_line
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON wire format"""
        return {
            "id": self.id,
            "file": self.file,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "suggestedFix": self.suggested_fix,
            "category": self.category.value,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Finding":
        """Build a finding from the JSON wire format

        Raises:
            KeyError: If file, startLine or title is missing
            ValueError: If the line range is invalid
        """
        start_line = int(data["startLine"])
        end_line = data.get("endLine")
        kwargs: Dict[str, Any] = {}
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return cls(
            file=str(data["file"]),
            start_line=start_line,
            end_line=int(end_line) if end_line else start_line,
            title=str(data["title"]),
            severity=data.get("severity") or Severity.MEDIUM,
            description=data.get("description") or "",
            suggested_fix=data.get("suggestedFix"),
            category=data.get("category") or Category.OTHER,
            status=data.get("status") or FindingStatus.OPEN,
            **kwargs,
        )

    @property
    def location(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.file}:{self.start_line}"
        return f"{self.file}:{self.start_line}-{self.end_line}"

    def to_markdown(self) -> str:
        """Format finding as markdown"""
        parts = [
            f"**[{self.severity.value.upper()}]** {self.title}",
            f"\n\n**Location:** {self.location} | **Category:** {self.category.value}",
        ]
        if self.description:
            parts.append(f"\n\n{self.description}")
        if self.suggested_fix:
            parts.append(f"\n\n**Suggested fix:**\n```\n{self.suggested_fix}\n```")
        return "".join(parts)
