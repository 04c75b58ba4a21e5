"""Analysis collaborators"""

from selfreview.infrastructure.analyzers.base import Analyzer, AnalyzerError
from selfreview.infrastructure.analyzers.command import CommandAnalyzer
from selfreview.infrastructure.analyzers.mock import MockAnalyzer

__all__ = ["Analyzer", "AnalyzerError", "CommandAnalyzer", "MockAnalyzer"]
