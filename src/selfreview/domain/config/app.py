"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from selfreview.domain.config.analyzer import AnalyzerConfig
from selfreview.domain.config.dedupe import DedupeConfig
from selfreview.domain.config.findings import FindingsConfig
from selfreview.domain.config.ignore import IgnoreConfig
from selfreview.domain.config.limits import LimitsConfig
from selfreview.domain.config.retry import RetryConfig
from selfreview.domain.config.review import ReviewConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        review: Branch selection and custom instructions
        ignore: File filtering configuration
        limits: Chunking limits configuration
        dedupe: Finding deduplication configuration
        findings: Finding filtering configuration
        analyzer: Analysis collaborator configuration
        retry: Retry logic configuration
    """

    review: ReviewConfig = Field(default_factory=ReviewConfig)
    ignore: IgnoreConfig = Field(default_factory=IgnoreConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    dedupe: DedupeConfig = Field(default_factory=DedupeConfig)
    findings: FindingsConfig = Field(default_factory=FindingsConfig)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "review": {
                    "base_branch": "develop",
                    "target_branch": "",
                    "include_uncommitted": True,
                    "custom_instructions": "Pay attention to authorization rules.",
                },
                "ignore": {
                    "patterns": ["vendor/**", "node_modules/**", "*.min.js"],
                },
                "limits": {
                    "token_budget": 40000,
                    "max_files_per_chunk": 5,
                    "context_lines": 10,
                    "chars_per_token": 3.5,
                },
                "dedupe": {
                    "similarity_threshold": 0.6,
                },
                "findings": {
                    "severity_threshold": "low",
                    "max_findings": 50,
                },
                "analyzer": {
                    "provider": "command",
                    "command": ["my-analyzer", "--json"],
                    "timeout": 300,
                },
                "retry": {
                    "max_attempts": 2,
                    "initial_delay": 1.0,
                    "backoff_multiplier": 2.0,
                    "max_delay": 60.0,
                    "jitter": 0.1,
                },
            }
        },
    )
