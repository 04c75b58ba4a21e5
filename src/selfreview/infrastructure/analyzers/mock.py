"""Mock analyzer for testing and dry runs"""

import time
from typing import Any, Dict, List

from selfreview.domain.models.finding import Finding
from selfreview.domain.models.review_chunk import ReviewChunk
from selfreview.infrastructure.analyzers.base import Analyzer
from selfreview.infrastructure.finding_parser import parse_findings


class MockAnalyzer(Analyzer):
    """Analyzer that returns predefined or synthesized findings"""

    def __init__(self, config: Dict[str, Any] = None):
        """Initialize mock analyzer
        
        Args:
            config: Optional configuration with:
                - delay: Simulated analysis delay in seconds (default: 0)
                - responses: Dict mapping file paths to JSON responses
                - flag_added_lines: Report the first added line of each file (default: True)
        """
        if config is None:
            config = {}
        super().__init__(config)
        self.delay = config.get("delay", 0)
        self.responses = config.get("responses", {})
        self.flag_added_lines = config.get("flag_added_lines", True)
        self.calls = 0

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate mock analyzer configuration"""
        if "delay" in config and not isinstance(config["delay"], (int, float)):
            raise ValueError("delay must be a number")
        if "delay" in config and config["delay"] < 0:
            raise ValueError("delay must be non-negative")

    def analyze(self, chunk: ReviewChunk, instructions: str = "") -> List[Finding]:
        """Return canned findings for the chunk's files"""
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)

        findings: List[Finding] = []
        for file_change in chunk.files:
            if file_change.path in self.responses:
                findings.extend(parse_findings(self.responses[file_change.path]))
                continue
            if not self.flag_added_lines:
                continue
            added = [line for hunk in file_change.hunks for line in hunk.added_lines]
            if added:
                findings.append(
                    Finding(
                        file=file_change.path,
                        start_line=added[0],
                        end_line=added[0],
                        title=f"Review new code in {file_change.path}",
                        severity="low",
                        category="other",
                        description="Mock finding for the first added line.",
                    )
                )
        return findings
