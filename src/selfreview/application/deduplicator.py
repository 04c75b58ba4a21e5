"""Finding deduplicator - collapses exact and near-duplicate findings"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Set, Tuple

from selfreview.domain.models.finding import Finding

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.6

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]+")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_title(title: str) -> List[str]:
    """Lower-case, strip punctuation, collapse whitespace and split into tokens"""
    cleaned = _NON_ALNUM_RE.sub(" ", (title or "").lower())
    return _WHITESPACE_RE.sub(" ", cleaned).strip().split()


def jaccard_similarity(a: Iterable[str], b: Iterable[str]) -> float:
    """Intersection over union of two token sets (0.0 if either is empty)"""
    set_a, set_b = set(a), set(b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


class FindingDeduplicator:
    """Removes duplicate findings, keeping the first occurrence"""

    def __init__(self, similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD):
        """Initialize deduplicator

        Args:
            similarity_threshold: Minimum title similarity for overlapping
                findings in the same file to count as duplicates
        """
        if not 0.0 <= similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be between 0.0 and 1.0")
        self.similarity_threshold = similarity_threshold
        self.last_stats: Dict[str, int] = {}

    def dedupe(self, findings: List[Finding]) -> List[Finding]:
        """Deduplicate findings

        A finding is dropped when an already accepted finding has the same
        (file, start, end, normalized title) key, or is in the same file with
        an overlapping line range and a title similarity at or above the
        threshold.

        Args:
            findings: Findings in collection order

        Returns:
            Accepted findings in original order
        """
        seen: Set[Tuple[str, int, int, str]] = set()
        accepted: List[Tuple[Finding, Set[str]]] = []
        exact = near = 0

        for finding in findings:
            tokens = normalize_title(finding.title)
            key = (finding.file, finding.start_line, finding.end_line, " ".join(tokens))
            if key in seen:
                exact += 1
                continue

            token_set = set(tokens)
            if self._is_near_duplicate(finding, token_set, accepted):
                near += 1
                continue

            seen.add(key)
            accepted.append((finding, token_set))

        self.last_stats = {
            "total": len(findings),
            "exact_duplicates": exact,
            "near_duplicates": near,
            "kept": len(accepted),
        }
        if exact or near:
            logger.info(
                f"Deduplicated findings: {len(accepted)} unique of {len(findings)} "
                f"({exact} exact, {near} near duplicates)"
            )
        return [finding for finding, _ in accepted]

    def _is_near_duplicate(
        self, finding: Finding, tokens: Set[str], accepted: List[Tuple[Finding, Set[str]]]
    ) -> bool:
        for other, other_tokens in accepted:
            if not finding.overlaps(other):
                continue
            similarity = jaccard_similarity(tokens, other_tokens)
            if similarity >= self.similarity_threshold:
                logger.debug(
                    f"Dropping near duplicate at {finding.location} "
                    f"(similarity {similarity:.2f} with {other.id})"
                )
                return True
        return False


def dedupe_findings(
    findings: List[Finding], similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
) -> List[Finding]:
    """Deduplicate findings with a one-off deduplicator"""
    return FindingDeduplicator(similarity_threshold).dedupe(findings)
