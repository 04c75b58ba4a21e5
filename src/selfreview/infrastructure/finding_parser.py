"""Parse analyzer output into Finding objects"""

import json
import logging
from typing import Any, List, Optional

from selfreview.domain.models.finding import Finding

logger = logging.getLogger(__name__)


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _load_array(text: str) -> Optional[List[Any]]:
    """Load a JSON array, falling back to the outermost [...] span"""
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("[")
        end = text.rfind("]")
        if start == -1 or end <= start:
            return None
        try:
            data = json.loads(text[start : end + 1])
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse analyzer response: {e}")
            return None
    if isinstance(data, dict) and isinstance(data.get("findings"), list):
        return data["findings"]
    return data if isinstance(data, list) else None


def parse_findings(response: str) -> List[Finding]:
    """Parse a JSON array of findings

    Accepts a bare array, an array wrapped in markdown fences, an array
    surrounded by prose, or an object with a "findings" array. Entries without
    file, startLine or title are dropped; an endLine before startLine is
    replaced by startLine. Never raises.

    Args:
        response: Raw analyzer output

    Returns:
        List of Finding objects
    """
    if not response or not response.strip():
        return []

    raw = _load_array(_strip_fences(response))
    if raw is None:
        logger.debug(f"No JSON array in analyzer response (first 200 chars): {response[:200]!r}")
        return []

    findings: List[Finding] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        if not entry.get("file") or entry.get("startLine") is None or not entry.get("title"):
            logger.debug(f"Dropping incomplete finding: {entry!r}")
            continue
        try:
            start = int(entry["startLine"])
            end = int(entry.get("endLine") or start)
            normalized = dict(entry, startLine=max(1, start), endLine=max(end, start, 1))
            findings.append(Finding.from_dict(normalized))
        except (TypeError, ValueError) as e:
            logger.debug(f"Dropping malformed finding {entry!r}: {e}")
    return findings
