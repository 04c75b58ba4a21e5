"""Unified diff parser for git-style multi-file diffs"""

import logging
import re
from typing import Iterable, List, Optional

from selfreview.domain.models.file_change import FileChange, Hunk
from selfreview.infrastructure.path_matcher import PathMatcher

logger = logging.getLogger(__name__)

_FILE_BOUNDARY_RE = re.compile(r"^diff --git ", re.MULTILINE)
_HEADER_RE = re.compile(r"a/(.*?) b/(.*)")
_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)")

_BINARY_MARKERS = ("Binary files ", "GIT binary patch")


def parse_diff(
    raw_diff: str,
    exclude_patterns: Optional[Iterable[str]] = None,
    matcher: Optional[PathMatcher] = None,
) -> List[FileChange]:
    """Parse unified diff text into FileChange records

    Supports the format produced by `git diff`:
    diff --git a/file.py b/file.py
    index 1234567..89abcde 100644
    --- a/file.py
    +++ b/file.py
    @@ -start,count +start,count @@ optional label
    -old line
    +new line

    Args:
        raw_diff: Diff content as string
        exclude_patterns: Glob patterns of paths to drop entirely
        matcher: Path matcher used for exclusions (a fresh one if None)

    Returns:
        List of FileChange objects in diff order
    """
    patterns = list(exclude_patterns or [])
    matcher = matcher or PathMatcher()
    files: List[FileChange] = []

    for segment in _FILE_BOUNDARY_RE.split(raw_diff):
        if not segment.strip():
            continue

        lines = segment.split("\n")
        match = _HEADER_RE.match(lines[0])
        if not match:
            logger.debug(f"Skipping diff segment with unrecognized header: {lines[0][:80]!r}")
            continue

        path = match.group(2).strip()
        if patterns and matcher.matches_any(path, patterns):
            logger.debug(f"Excluding {path}: matches exclude pattern")
            continue

        files.append(_parse_segment(path, lines[1:]))

    logger.debug(f"Parsed {len(files)} files from diff")
    return files


def _parse_segment(path: str, lines: List[str]) -> FileChange:
    """Parse one file's portion of the diff (header line already removed)"""
    preamble = _preamble(lines)
    is_new = any(line.startswith("new file mode") for line in preamble)
    is_deleted = any(line.startswith("deleted file mode") for line in preamble)

    if any(line.startswith(_BINARY_MARKERS) for line in preamble):
        return FileChange(path=path, is_new=is_new, is_deleted=is_deleted, is_binary=True)

    hunks: List[Hunk] = []
    current: Optional[Hunk] = None
    old_line = new_line = 0
    old_left = new_left = 0

    for line in lines:
        header = _HUNK_HEADER_RE.match(line)
        if header:
            _close_hunk(current, hunks, path)
            old_start = int(header.group(1))
            new_start = int(header.group(3))
            current = Hunk(
                old_start=old_start,
                old_count=int(header.group(2)) if header.group(2) is not None else 1,
                new_start=new_start,
                new_count=int(header.group(4)) if header.group(4) is not None else 1,
                header=header.group(5).strip(),
                raw_header=line.rstrip(),
            )
            old_line, new_line = old_start, new_start
            old_left, new_left = current.old_count, current.new_count
            continue

        if current is None:
            # Metadata before the first hunk is never content
            continue

        if line.startswith("\\"):
            # "\ No newline at end of file"
            current.lines.append(line)
            continue

        if old_left <= 0 and new_left <= 0:
            # Hunk body complete; anything else is trailing noise
            continue

        if line.startswith("+"):
            if new_left <= 0:
                continue
            current.added_lines.append(new_line)
            new_line += 1
            new_left -= 1
        elif line.startswith("-"):
            if old_left <= 0:
                continue
            current.removed_lines.append(old_line)
            old_line += 1
            old_left -= 1
        elif line.startswith(" ") or line == "":
            # Some tools strip the single space from blank context lines
            old_line += 1
            new_line += 1
            old_left -= 1
            new_left -= 1
        else:
            continue
        current.lines.append(line)

    _close_hunk(current, hunks, path)

    return FileChange(path=path, is_new=is_new, is_deleted=is_deleted, hunks=hunks)


def _preamble(lines: List[str]) -> List[str]:
    """Lines before the first hunk header"""
    result = []
    for line in lines:
        if _HUNK_HEADER_RE.match(line):
            break
        result.append(line)
    return result


def _close_hunk(hunk: Optional[Hunk], hunks: List[Hunk], path: str) -> None:
    if hunk is None:
        return
    if not hunk.has_changes:
        logger.debug(f"Dropping hunk without changes in {path} at line {hunk.new_start}")
        return
    hunks.append(hunk)
