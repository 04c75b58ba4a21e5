"""ReviewRun model - represents the result of a branch review"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from selfreview.domain.models.finding import Finding, FindingStatus
from selfreview.domain.models.review_chunk import ReviewChunk


@dataclass
class ReviewRun:
    """Outcome of analyzing all chunks of a diff"""

    findings: List[Finding] = field(default_factory=list)
    chunks: List[ReviewChunk] = field(default_factory=list)
    completed_chunks: int = 0
    failed_chunks: List[Tuple[int, str]] = field(default_factory=list)  # (chunk index, error)
    cancelled: bool = False
    raw_finding_count: int = 0  # Findings returned before deduplication/filtering

    @property
    def is_successful(self) -> bool:
        """Check if every chunk was analyzed"""
        return not self.failed_chunks and not self.cancelled

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "total_findings": len(self.findings),
            "open_count": sum(1 for f in self.findings if f.status == FindingStatus.OPEN),
            "file_count": len({f.file for f in self.findings}),
        }
