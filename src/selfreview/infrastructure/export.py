"""Export findings as Markdown or JSON"""

import json
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from selfreview.domain.models.finding import Finding, FindingStatus

_STATUS_ICONS = {
    FindingStatus.OPEN: "[ ]",
    FindingStatus.IN_PROGRESS: "[~]",
    FindingStatus.FIXED: "[x]",
    FindingStatus.SKIPPED: "[-]",
}


def build_markdown(
    findings: List[Finding],
    base_branch: str,
    target_branch: str = "",
    generated_at: Optional[datetime] = None,
) -> str:
    """Render findings as a Markdown report

    Args:
        findings: Deduplicated findings
        base_branch: Base branch of the review
        target_branch: Target branch ("" = HEAD + working tree)
        generated_at: Report timestamp (now if None)

    Returns:
        Markdown document
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    target = target_branch or "HEAD + working tree"
    lines = [
        f"# Self Review: {base_branch}..{target}",
        "",
        f"> Generated {generated_at.isoformat()}",
        "",
        "## Summary",
        "",
        "| Status | Count |",
        "|--------|-------|",
    ]
    for status in FindingStatus:
        count = sum(1 for f in findings if f.status == status)
        lines.append(f"| {status.value.replace('-', ' ').title()} | {count} |")
    lines.append(f"| **Total** | **{len(findings)}** |")
    lines.append("")

    by_file: Dict[str, List[Finding]] = OrderedDict()
    for finding in findings:
        by_file.setdefault(finding.file, []).append(finding)

    for path, file_findings in by_file.items():
        lines.append(f"## {path}")
        lines.append("")
        for finding in file_findings:
            lines.append(f"### {_STATUS_ICONS[finding.status]} {finding.title}")
            lines.append("")
            lines.append(
                f"**Severity:** {finding.severity.value.upper()} | "
                f"**Category:** {finding.category.value} | "
                f"**Lines:** {finding.start_line}-{finding.end_line} | "
                f"**Status:** {finding.status.value}"
            )
            lines.append("")
            # Blockquote keeps headings or rules in the description from breaking the document
            for text_line in (finding.description or "").split("\n"):
                lines.append(f"> {text_line}")
            lines.append("")
            if finding.suggested_fix:
                lines.append("<details><summary>Suggested Fix</summary>")
                lines.append("")
                lines.append("```")
                lines.append(finding.suggested_fix)
                lines.append("```")
                lines.append("")
                lines.append("</details>")
                lines.append("")

    return "\n".join(lines)


def build_json(findings: List[Finding]) -> str:
    """Render findings as a JSON array"""
    return json.dumps([f.to_dict() for f in findings], indent=2)
