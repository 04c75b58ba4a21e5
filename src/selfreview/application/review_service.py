"""Review service - orchestrates chunking, analysis and deduplication"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from selfreview.application.chunker import Chunker
from selfreview.application.deduplicator import FindingDeduplicator
from selfreview.domain.config.dedupe import DedupeConfig
from selfreview.domain.config.findings import FindingsConfig
from selfreview.domain.config.limits import LimitsConfig
from selfreview.domain.config.retry import RetryConfig
from selfreview.domain.models.file_change import FileChange
from selfreview.domain.models.finding import Finding, Severity
from selfreview.domain.models.review_chunk import ReviewChunk
from selfreview.domain.models.review_run import ReviewRun
from selfreview.infrastructure.analyzers.base import Analyzer
from selfreview.infrastructure.retry import retry_analysis

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[int, ReviewChunk, List[Finding]], None]


class ReviewService:
    """Service for reviewing a parsed diff"""

    def __init__(
        self,
        analyzer: Analyzer,
        limits: Optional[LimitsConfig] = None,
        findings_config: Optional[FindingsConfig] = None,
        dedupe_config: Optional[DedupeConfig] = None,
        retry_config: Optional[RetryConfig] = None,
        custom_instructions: str = "",
    ):
        """Initialize review service

        Args:
            analyzer: Analysis collaborator called once per chunk
            limits: Chunking limits
            findings_config: Severity threshold and finding cap
            dedupe_config: Deduplication settings
            retry_config: Retry settings for analyzer calls (no retries if None)
            custom_instructions: Free-text instructions passed to the analyzer
        """
        self.analyzer = analyzer
        self.limits = limits or LimitsConfig()
        self.findings_config = findings_config or FindingsConfig()
        self.dedupe_config = dedupe_config or DedupeConfig()
        self.retry_config = retry_config or RetryConfig(max_attempts=1, initial_delay=0.0)
        self.custom_instructions = custom_instructions
        self.chunker = Chunker(self.limits)
        self.deduplicator = FindingDeduplicator(self.dedupe_config.similarity_threshold)

    def build_chunks(self, files: List[FileChange]) -> List[ReviewChunk]:
        """Split files into review chunks"""
        return self.chunker.chunk(files)

    def build_instructions(self) -> str:
        """Instructions sent along with every chunk"""
        parts = [
            f"Review categories: {', '.join(self.findings_config.categories)}",
            f"Minimum severity: {self.findings_config.severity_threshold}",
            "Focus on lines marked with +; unmarked lines are context.",
        ]
        if self.custom_instructions:
            parts.append(self.custom_instructions)
        return "\n".join(parts)

    def review_files(
        self,
        files: List[FileChange],
        cancel_event: Optional[threading.Event] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> ReviewRun:
        """Analyze every chunk of the given files

        A failing chunk is logged and recorded; it never aborts the run.
        When cancel_event is set, remaining chunks are skipped and the
        findings already collected are still deduplicated and returned.

        Args:
            files: Parsed file changes with full text attached where available
            cancel_event: Optional cancellation flag checked between chunks and
                before each retry
            on_chunk: Optional callback invoked after each successful chunk

        Returns:
            ReviewRun with deduplicated findings
        """
        chunks = self.build_chunks(files)
        run = ReviewRun(chunks=chunks)
        if not chunks:
            logger.info("Nothing to review")
            return run

        instructions = self.build_instructions()
        collected: List[Finding] = []

        for index, chunk in enumerate(chunks):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Review cancelled after {run.completed_chunks}/{len(chunks)} chunks")
                run.cancelled = True
                break

            label = f"chunk {index + 1}/{len(chunks)}"
            logger.info(f"Analyzing {label} ({chunk.file_count} files, ~{chunk.token_estimate} tokens)")
            analyze = retry_analysis(self.retry_config, label, cancel_event)(self.analyzer.analyze)
            try:
                findings = analyze(chunk, instructions)
            except Exception as e:
                logger.error(f"Analysis of {label} failed: {e}", exc_info=True)
                run.failed_chunks.append((index, str(e)))
                if cancel_event is not None and cancel_event.is_set():
                    logger.info(f"Review cancelled during {label}")
                    run.cancelled = True
                    break
                continue

            collected.extend(findings)
            run.completed_chunks += 1
            if on_chunk is not None:
                on_chunk(index, chunk, findings)

        run.raw_finding_count = len(collected)
        run.findings = self.finalize_findings(collected)
        logger.info(
            f"Review completed: {len(run.findings)} findings from "
            f"{run.completed_chunks}/{len(chunks)} chunks"
        )
        return run

    def finalize_findings(self, findings: List[Finding]) -> List[Finding]:
        """Deduplicate, apply the severity threshold and cap the count"""
        unique = self.deduplicator.dedupe(findings)
        threshold = Severity.parse(self.findings_config.severity_threshold)
        kept = [f for f in unique if f.severity.meets(threshold)]
        if len(kept) < len(unique):
            logger.debug(f"Dropped {len(unique) - len(kept)} findings below {threshold.value}")
        return kept[: self.findings_config.max_findings]
