"""Base analyzer interface"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from selfreview.domain.models.finding import Finding
from selfreview.domain.models.review_chunk import ReviewChunk


class AnalyzerError(RuntimeError):
    """Analysis of a chunk failed

    retryable is False when another attempt would fail the same way.
    """

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class Analyzer(ABC):
    """Abstract base class for analysis collaborators"""

    def __init__(self, config: Dict[str, Any]):
        """Initialize analyzer with configuration

        Args:
            config: Analyzer configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        self.config = config
        self._validate_config(config)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate analyzer configuration

        Args:
            config: Configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        # Override in subclasses for specific validation
        pass

    @abstractmethod
    def analyze(self, chunk: ReviewChunk, instructions: str = "") -> List[Finding]:
        """Analyze one review chunk

        Args:
            chunk: Review chunk (use chunk.render() for its text)
            instructions: Free-text review instructions

        Returns:
            Findings reported for the chunk (possibly empty)

        Raises:
            AnalyzerError: If analysis fails
        """
        pass
