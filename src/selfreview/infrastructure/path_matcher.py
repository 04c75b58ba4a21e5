"""Glob matching for diff-relative file paths"""

import fnmatch
import logging
import re
from typing import Dict, Iterable, Optional, Pattern, Set

logger = logging.getLogger(__name__)

MAX_WARNED_PATTERNS = 100


class PathMatcher:
    """Match file paths against glob-style exclusion patterns

    Supported syntax:
        *    any characters except "/"
        **   any characters including "/" ("**/" also matches zero directories)
        ?    a single character except "/"
        [..] character classes (fnmatch syntax)

    Brace expansion is not supported. Patterns containing "{" are matched
    literally; the first use of each one is reported once per matcher.
    Patterns without a "/" also match the file's basename.
    """

    def __init__(self, warned: Optional[Set[str]] = None):
        """Initialize matcher

        Args:
            warned: Set of patterns already warned about (owned by the caller)
        """
        self.warned: Set[str] = warned if warned is not None else set()
        self._limit_warned = False
        self._cache: Dict[str, Pattern[str]] = {}

    def reset_warnings(self) -> None:
        """Forget which patterns were already reported"""
        self.warned.clear()
        self._limit_warned = False

    def matches(self, file_path: str, pattern: str) -> bool:
        """Check if file path matches pattern

        Args:
            file_path: File path to check
            pattern: Glob pattern

        Returns:
            True if matches
        """
        pattern = pattern.replace("\\", "/")
        file_path = file_path.replace("\\", "/")
        self._warn_unsupported(pattern)

        if self._compile(pattern).match(file_path):
            return True
        if "/" not in pattern and "{" not in pattern:
            # Basename contains no "/", so plain fnmatch semantics apply
            return fnmatch.fnmatchcase(file_path.rsplit("/", 1)[-1], pattern)
        return False

    def matches_any(self, file_path: str, patterns: Iterable[str]) -> bool:
        """Check if file path matches any pattern"""
        return any(self.matches(file_path, pattern) for pattern in patterns)

    def _warn_unsupported(self, pattern: str) -> None:
        if "{" not in pattern or pattern in self.warned:
            return
        if len(self.warned) < MAX_WARNED_PATTERNS:
            self.warned.add(pattern)
            logger.warning(
                f'Glob pattern "{pattern}" contains "{{" which looks like brace expansion. '
                f"Brace expansion is not supported, the pattern is matched literally."
            )
        elif not self._limit_warned:
            self._limit_warned = True
            logger.warning(
                f"Further brace-expansion warnings suppressed "
                f"(more than {MAX_WARNED_PATTERNS} distinct patterns seen)"
            )

    def _compile(self, pattern: str) -> Pattern[str]:
        cached = self._cache.get(pattern)
        if cached is not None:
            return cached

        parts = []
        i = 0
        while i < len(pattern):
            if pattern.startswith("**/", i):
                parts.append("(?:.*/)?")
                i += 3
            elif pattern.startswith("**", i):
                parts.append(".*")
                i += 2
            elif pattern[i] == "*":
                parts.append("[^/]*")
                i += 1
            elif pattern[i] == "?":
                parts.append("[^/]")
                i += 1
            elif pattern[i] == "[" and "]" in pattern[i + 2 :]:
                close = pattern.index("]", i + 2)
                body = pattern[i + 1 : close].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^/" + body[1:]
                parts.append(f"[{body}]")
                i = close + 1
            else:
                parts.append(re.escape(pattern[i]))
                i += 1

        compiled = re.compile("^" + "".join(parts) + "$")
        self._cache[pattern] = compiled
        return compiled
