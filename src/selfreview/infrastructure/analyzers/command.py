"""Analyzer that delegates to an external command"""

import json
import logging
import subprocess
from typing import Any, Dict, List

from selfreview.domain.models.finding import Finding
from selfreview.domain.models.review_chunk import ReviewChunk
from selfreview.infrastructure.analyzers.base import Analyzer, AnalyzerError
from selfreview.infrastructure.finding_parser import parse_findings

logger = logging.getLogger(__name__)


class CommandAnalyzer(Analyzer):
    """Pipes each chunk to an external program and reads findings JSON from stdout

    The program receives a JSON object on stdin:
        {"instructions": "...", "files": ["a.py", ...], "context": "..."}
    and must print a JSON array of findings.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.command: List[str] = list(config["command"])
        self.timeout = float(config.get("timeout", 300.0))

    def _validate_config(self, config: Dict[str, Any]) -> None:
        command = config.get("command")
        if not command or not isinstance(command, (list, tuple)):
            raise ValueError("command analyzer requires a non-empty 'command' list")

    def analyze(self, chunk: ReviewChunk, instructions: str = "") -> List[Finding]:
        payload = json.dumps(
            {
                "instructions": instructions,
                "files": chunk.paths,
                "context": chunk.render(),
            }
        )
        logger.debug(f"Running analyzer {self.command[0]} for {chunk.file_count} files")
        try:
            completed = subprocess.run(
                self.command,
                input=payload,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise AnalyzerError(f"Analyzer timed out after {self.timeout:g}s") from e
        except OSError as e:
            raise AnalyzerError(
                f"Failed to start analyzer {self.command[0]}: {e}", retryable=False
            ) from e

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            raise AnalyzerError(
                f"Analyzer exited with status {completed.returncode}: {stderr[:500]}"
            )
        return parse_findings(completed.stdout)
