"""Priority chunker - packs changed files into budget-sized review chunks"""

from __future__ import annotations

import logging
import math
import re
from typing import List, Optional

from selfreview.application.context_builder import build_file_context
from selfreview.domain.config.limits import LimitsConfig
from selfreview.domain.models.file_change import FileChange
from selfreview.domain.models.review_chunk import ReviewChunk

logger = logging.getLogger(__name__)

DEFAULT_CHARS_PER_TOKEN = 3.5

TEST_PRIORITY = 6
DEFAULT_PRIORITY = 5

_TEST_TOKENS = {"test", "tests", "spec", "specs"}

# Evaluated in order; the first matching class wins (lower = reviewed first)
_PRIORITY_RULES = [
    (0, {"controller", "controllers", "auth", "authorization", "authentication", "security", "session", "sessions"}),
    (1, {"route", "routes", "routing", "config", "configs", "settings"}),
    (2, {"model", "models", "service", "services", "job", "jobs"}),
    (3, {"migration", "migrations", "db", "database"}),
    (4, {"view", "views", "template", "templates", "erb", "html"}),
]

_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")


def tokenize_path(path: str) -> List[str]:
    """Split a path into lower-case word tokens on separators and punctuation"""
    normalized = path.lower().replace("\\", "/")
    tokens: List[str] = []
    for segment in normalized.split("/"):
        tokens.extend(t for t in _TOKEN_SPLIT_RE.split(segment) if t)
    return tokens


def file_priority(path: str) -> int:
    """Priority rank of a file path (lower number = reviewed earlier)

    0 - security-sensitive (controllers, auth)
    1 - routing / configuration
    2 - domain logic (models, services, jobs)
    3 - database (migrations, db/)
    4 - views / templates
    5 - everything else
    6 - tests / specs, regardless of other matches
    """
    tokens = set(tokenize_path(path))
    if tokens & _TEST_TOKENS:
        return TEST_PRIORITY
    for rank, keywords in _PRIORITY_RULES:
        if tokens & keywords:
            return rank
    return DEFAULT_PRIORITY


def estimate_tokens(text: str, chars_per_token: float = DEFAULT_CHARS_PER_TOKEN) -> int:
    """Estimate the token count of text from its length"""
    if chars_per_token <= 0:
        raise ValueError("chars_per_token must be positive")
    return math.ceil(len(text) / chars_per_token)


def sort_by_priority(files: List[FileChange]) -> List[FileChange]:
    """Stable sort of files by priority rank"""
    return sorted(files, key=lambda f: file_priority(f.path))


def chunk_files(
    files: List[FileChange],
    token_budget: int,
    max_files_per_chunk: int,
    context_lines: int = 0,
    chars_per_token: float = DEFAULT_CHARS_PER_TOKEN,
) -> List[ReviewChunk]:
    """Group files into review chunks that fit the token budget

    Strategy:
    - Drop files with no hunks and binary files
    - Sort by priority (security-sensitive first, tests last)
    - Greedily fill chunks in that order; a file that alone exceeds the
      budget is flushed into a chunk of its own and never split

    Args:
        files: Parsed file changes (full text attached where available)
        token_budget: Maximum estimated tokens per chunk
        max_files_per_chunk: Maximum files per chunk
        context_lines: Unchanged lines rendered around each hunk
        chars_per_token: Characters per token for size estimates

    Returns:
        Chunks in review order
    """
    if token_budget <= 0:
        raise ValueError("token_budget must be positive")
    if max_files_per_chunk <= 0:
        raise ValueError("max_files_per_chunk must be positive")

    reviewable = [f for f in files if f.is_reviewable]
    skipped = len(files) - len(reviewable)
    if skipped:
        logger.debug(f"Skipping {skipped} files without reviewable hunks")

    chunks: List[ReviewChunk] = []
    current = ReviewChunk()

    def flush() -> None:
        nonlocal current
        if current.files:
            chunks.append(current)
        current = ReviewChunk()

    for file_change in sort_by_priority(reviewable):
        context = build_file_context(file_change, context_lines)
        tokens = estimate_tokens(context, chars_per_token)

        if tokens > token_budget:
            logger.debug(
                f"{file_change.path} needs ~{tokens} tokens (budget {token_budget}), isolating it"
            )
            flush()
            chunks.append(ReviewChunk(files=[file_change], token_estimate=tokens, contexts=[context]))
            continue

        if (
            current.token_estimate + tokens > token_budget
            or current.file_count >= max_files_per_chunk
        ):
            flush()

        current.files.append(file_change)
        current.contexts.append(context)
        current.token_estimate += tokens

    flush()

    logger.info(f"Packed {len(reviewable)} files into {len(chunks)} review chunks")
    return chunks


class Chunker:
    """Chunks file changes using configured limits"""

    def __init__(self, limits: Optional[LimitsConfig] = None):
        self.limits = limits or LimitsConfig()

    def chunk(self, files: List[FileChange]) -> List[ReviewChunk]:
        return chunk_files(
            files,
            token_budget=self.limits.token_budget,
            max_files_per_chunk=self.limits.max_files_per_chunk,
            context_lines=self.limits.context_lines,
            chars_per_token=self.limits.chars_per_token,
        )
