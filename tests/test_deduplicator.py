"""Tests for finding deduplication"""

import pytest

from selfreview.application.deduplicator import (
    FindingDeduplicator,
    dedupe_findings,
    jaccard_similarity,
    normalize_title,
)
from selfreview.domain.models.finding import Finding


def make_finding(file: str, start: int, end: int, title: str, **kwargs) -> Finding:
    return Finding(file=file, start_line=start, end_line=end, title=title, **kwargs)


class TestTitleHelpers:
    """Tests for title normalization and similarity"""

    def test_normalize_title(self):
        assert normalize_title("  Null-check: MISSING! ") == ["null", "check", "missing"]

    def test_normalize_empty_title(self):
        assert normalize_title("") == []
        assert normalize_title("???") == []

    def test_jaccard(self):
        assert jaccard_similarity(["a", "b", "c"], ["a", "b", "d"]) == 0.5
        assert jaccard_similarity(["a", "b"], ["b", "a"]) == 1.0

    def test_jaccard_empty(self):
        assert jaccard_similarity([], ["a"]) == 0.0
        assert jaccard_similarity([], []) == 0.0


class TestFindingDeduplicator:
    """Tests for FindingDeduplicator"""

    def test_empty_input(self):
        assert FindingDeduplicator().dedupe([]) == []

    def test_near_duplicates_collapse(self):
        """Test overlapping findings with similar titles collapse to the first"""
        first = make_finding("a.x", 10, 12, "Null check missing")
        second = make_finding("a.x", 11, 13, "Missing null check")

        result = FindingDeduplicator().dedupe([first, second])

        assert result == [first]
        assert result[0] is first

    def test_different_files_kept(self):
        first = make_finding("a.x", 10, 12, "X")
        second = make_finding("b.x", 10, 12, "X")
        assert FindingDeduplicator().dedupe([first, second]) == [first, second]

    def test_exact_duplicates_ignore_case_and_punctuation(self):
        first = make_finding("a.x", 5, 5, "Unused variable!")
        second = make_finding("a.x", 5, 5, "unused   variable")

        deduplicator = FindingDeduplicator()
        assert deduplicator.dedupe([first, second]) == [first]
        assert deduplicator.last_stats["exact_duplicates"] == 1

    def test_non_overlapping_same_title_kept(self):
        """Test identical titles on separate line ranges are distinct findings"""
        first = make_finding("a.x", 10, 12, "Missing null check")
        second = make_finding("a.x", 20, 22, "Missing null check")
        assert len(FindingDeduplicator().dedupe([first, second])) == 2

    def test_dissimilar_titles_kept(self):
        first = make_finding("a.x", 10, 12, "SQL injection in query")
        second = make_finding("a.x", 10, 12, "Missing null check")
        assert len(FindingDeduplicator().dedupe([first, second])) == 2

    def test_threshold_boundary(self):
        """Test similarity equal to the threshold counts as duplicate"""
        first = make_finding("a.x", 1, 3, "alpha beta gamma")
        second = make_finding("a.x", 2, 4, "alpha beta delta")

        assert len(FindingDeduplicator(0.5).dedupe([first, second])) == 1
        assert len(FindingDeduplicator(0.6).dedupe([first, second])) == 2

    def test_order_preserved(self):
        findings = [
            make_finding("c.x", 1, 1, "Third file"),
            make_finding("a.x", 1, 1, "First file"),
            make_finding("c.x", 1, 1, "third file"),
            make_finding("b.x", 1, 1, "Second file"),
        ]
        result = FindingDeduplicator().dedupe(findings)
        assert [f.title for f in result] == ["Third file", "First file", "Second file"]

    def test_idempotent(self):
        """Test deduplicating twice changes nothing"""
        findings = [
            make_finding("a.x", 10, 12, "Null check missing"),
            make_finding("a.x", 11, 13, "Missing null check"),
            make_finding("a.x", 12, 20, "Missing null check here"),
            make_finding("a.x", 30, 31, "Slow loop"),
            make_finding("b.x", 10, 12, "Null check missing"),
            make_finding("a.x", 30, 31, "slow loop."),
        ]
        deduplicator = FindingDeduplicator()
        once = deduplicator.dedupe(findings)
        assert deduplicator.dedupe(once) == once

    def test_stats(self):
        findings = [
            make_finding("a.x", 10, 12, "Null check missing"),
            make_finding("a.x", 10, 12, "Null check missing"),
            make_finding("a.x", 11, 13, "Missing null check"),
            make_finding("b.x", 1, 1, "Other"),
        ]
        deduplicator = FindingDeduplicator()
        deduplicator.dedupe(findings)
        assert deduplicator.last_stats == {
            "total": 4,
            "exact_duplicates": 1,
            "near_duplicates": 1,
            "kept": 2,
        }

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_invalid_threshold(self, threshold):
        with pytest.raises(ValueError):
            FindingDeduplicator(threshold)

    def test_dedupe_findings_helper(self):
        first = make_finding("a.x", 10, 12, "Null check missing")
        second = make_finding("a.x", 11, 13, "Missing null check")
        assert dedupe_findings([first, second]) == [first]
        assert dedupe_findings([first, second], similarity_threshold=1.0) == [first]
