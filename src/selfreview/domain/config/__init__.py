"""Configuration models with Pydantic validation."""

from selfreview.domain.config.analyzer import AnalyzerConfig
from selfreview.domain.config.app import AppConfig
from selfreview.domain.config.dedupe import DedupeConfig
from selfreview.domain.config.findings import FindingsConfig
from selfreview.domain.config.ignore import IgnoreConfig
from selfreview.domain.config.limits import LimitsConfig
from selfreview.domain.config.retry import RetryConfig
from selfreview.domain.config.review import ReviewConfig

__all__ = [
    "AppConfig",
    "ReviewConfig",
    "IgnoreConfig",
    "LimitsConfig",
    "DedupeConfig",
    "FindingsConfig",
    "AnalyzerConfig",
    "RetryConfig",
]
