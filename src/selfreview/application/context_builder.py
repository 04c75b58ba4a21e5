"""Context builder - renders changed files as annotated source windows"""

from __future__ import annotations

import logging
from typing import List, Optional

from selfreview.domain.models.context_window import ContextWindow
from selfreview.domain.models.file_change import FileChange

logger = logging.getLogger(__name__)

LINE_NUMBER_WIDTH = 5
ADDED_MARKER = "+"
CONTEXT_MARKER = " "


def split_lines(text: str) -> List[str]:
    """Split file text into lines, ignoring the final newline"""
    if text.endswith("\n"):
        text = text[:-1]
    return text.split("\n")


def compute_windows(file_change: FileChange, line_count: int, margin: int) -> List[ContextWindow]:
    """Compute merged context windows for every hunk of a file

    Each hunk gets the candidate window
    [new_start - 1 - margin, new_start - 1 + new_count + margin), clamped to
    [0, line_count). Windows that overlap or touch are merged, so no source
    line is ever rendered twice.

    Args:
        file_change: File whose hunks to cover
        line_count: Number of lines in the file's full text
        margin: Unchanged lines to include around each hunk

    Returns:
        Disjoint, non-touching windows in file order
    """
    if margin < 0:
        raise ValueError("Context margin must be non-negative")

    candidates = []
    for hunk in file_change.hunks:
        start = max(0, hunk.new_start - 1 - margin)
        end = min(line_count, hunk.new_start - 1 + hunk.new_count + margin)
        candidates.append(ContextWindow(start=start, end=max(start, end), hunks=[hunk]))
    candidates.sort(key=lambda w: w.start)

    merged: List[ContextWindow] = []
    for i in range(len(candidates)):
        window = candidates[i]
        if merged and window.start <= merged[-1].end:
            last = merged[-1]
            last.end = max(last.end, window.end)
            last.hunks.extend(window.hunks)
        else:
            merged.append(ContextWindow(start=window.start, end=window.end, hunks=list(window.hunks)))
    return merged


def render_window(window: ContextWindow, file_lines: List[str]) -> List[str]:
    """Render one window as a heading plus a fenced, annotated code block"""
    if len(window.hunks) == 1:
        hunk = window.hunks[0]
        label = f"line {hunk.new_start} {hunk.header}".rstrip()
    else:
        label = ", ".join(f"line {h.new_start}" for h in window.hunks)

    added = window.added_lines
    parts = [f"\n### Hunk at {label}", "```"]
    for index in range(window.start, window.end):
        line_number = index + 1
        marker = ADDED_MARKER if line_number in added else CONTEXT_MARKER
        parts.append(f"{marker}{str(line_number).rjust(LINE_NUMBER_WIDTH)} | {file_lines[index]}")
    parts.append("```")
    return parts


def build_file_context(
    file_change: FileChange, margin: int = 0, full_text: Optional[str] = None
) -> str:
    """Build the rendered context for one file

    Uses the file's full text when available (explicit argument first, then
    file_change.new_content); otherwise falls back to the raw hunk text with
    one block per hunk.

    Args:
        file_change: File change to render
        margin: Unchanged lines shown around each hunk
        full_text: Full file text at the target revision (optional)

    Returns:
        Rendered context text
    """
    text = full_text if full_text is not None else file_change.new_content
    title = f"## File: {file_change.path}"
    if file_change.is_new:
        title += " (new)"
    if file_change.is_deleted:
        title += " (deleted)"
    parts = [title]

    if text is not None and not file_change.is_deleted:
        file_lines = split_lines(text)
        for window in compute_windows(file_change, len(file_lines), margin):
            parts.extend(render_window(window, file_lines))
    else:
        logger.debug(f"No full text for {file_change.path}, rendering raw hunks")
        for hunk in file_change.hunks:
            parts.append(f"\n### Diff hunk at line {hunk.new_start}")
            parts.append("```diff")
            parts.append(hunk.content)
            parts.append("```")

    return "\n".join(parts)

