"""Configuration manager for loading and validating .self-review.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from selfreview.domain.config import (
    AnalyzerConfig,
    AppConfig,
    DedupeConfig,
    FindingsConfig,
    IgnoreConfig,
    LimitsConfig,
    RetryConfig,
    ReviewConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".self-review.yml"
INSTRUCTIONS_FILENAME = ".self-review-instructions.md"

# Environment variable -> (section, key); values are validated by pydantic
ENV_OVERRIDES = {
    "SELF_REVIEW_BASE_BRANCH": ("review", "base_branch"),
    "SELF_REVIEW_TOKEN_BUDGET": ("limits", "token_budget"),
    "SELF_REVIEW_ANALYZER": ("analyzer", "provider"),
}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .self-review.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .self-review.yml file (searched from current directory upwards)
    3. Environment variables (SELF_REVIEW_*)
    4. CLI arguments (handled by CLI layer)

    Contents of .self-review-instructions.md (next to the config file, or in
    the current directory) are appended to review.custom_instructions.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .self-review.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            raise ConfigurationError(_format_validation_error(e)) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .self-review.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        cwd = Path.cwd()
        for directory in (cwd, *cwd.parents):
            config_file = directory / CONFIG_FILENAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILENAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
        """
        config_dict: Dict[str, Any] = copy.deepcopy(AppConfig().model_dump())

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
                if not isinstance(file_config, dict):
                    raise ConfigurationError(f"{self.config_path} must contain a mapping")
                config_dict = _deep_merge(config_dict, file_config)
                logger.info(f"Loaded configuration from {self.config_path}")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

        config_dict = _apply_env_overrides(config_dict)
        config_dict = self._apply_instructions_file(config_dict)

        return AppConfig(**config_dict)

    def _apply_instructions_file(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Append the instructions markdown file to custom instructions"""
        search_dirs: List[Path] = []
        if self.config_path:
            search_dirs.append(self.config_path.parent)
        search_dirs.append(Path.cwd())

        for directory in search_dirs:
            instructions_file = directory / INSTRUCTIONS_FILENAME
            if not instructions_file.exists():
                continue
            try:
                text = instructions_file.read_text(encoding="utf-8").strip()
            except OSError as e:
                logger.warning(f"Failed to read {instructions_file}: {e}")
                break
            review = config.get("review")
            if not isinstance(review, dict):
                break
            existing = review.get("custom_instructions") or ""
            review["custom_instructions"] = "\n\n".join(p for p in (existing, text) if p)
            logger.debug(f"Loaded review instructions from {instructions_file}")
            break
        return config

    def get_review_config(self) -> ReviewConfig:
        """Get review target configuration"""
        return self.config.review

    def get_ignore_config(self) -> IgnoreConfig:
        """Get ignore configuration"""
        return self.config.ignore

    def get_ignore_patterns(self) -> list:
        """Get ignore patterns"""
        return self.config.ignore.patterns

    def get_limits_config(self) -> LimitsConfig:
        """Get limits configuration"""
        return self.config.limits

    def get_dedupe_config(self) -> DedupeConfig:
        """Get deduplication configuration"""
        return self.config.dedupe

    def get_findings_config(self) -> FindingsConfig:
        """Get findings configuration"""
        return self.config.findings

    def get_analyzer_config(self) -> AnalyzerConfig:
        """Get analyzer configuration"""
        return self.config.analyzer

    def get_retry_config(self) -> RetryConfig:
        """Get retry configuration"""
        return self.config.retry

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "limits.token_budget" or "limits")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value


def _format_validation_error(error: ValidationError) -> str:
    """One "section.key: message" line per failed field"""
    lines = ["Configuration validation failed:"]
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        lines.append(f"  - {location}: {item['msg']}")
    return "\n".join(lines)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into base; nested mappings are merged key by key

    An empty section (None) keeps the base section.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if value is None and isinstance(current, dict):
            continue
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    for name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(name)
        values = config.get(section)
        # Non-mapping sections are reported by validation
        if value and isinstance(values, dict):
            values[key] = value
            logger.debug(f"{section}.{key} overridden by {name}")
    return config


def sample_config() -> str:
    """Sample .self-review.yml with every section documented"""
    return """# Self Review configuration

review:
  # Branch to compare against
  base_branch: develop
  # Branch under review (empty = current HEAD + working tree)
  target_branch: ""
  # Include uncommitted changes when the target is the current checkout
  include_uncommitted: true
  # Free-text instructions passed to the analyzer
  custom_instructions: ""

ignore:
  # Glob patterns excluded from review
  patterns:
    - vendor/**
    - node_modules/**
    - db/schema.rb
    - "*.min.js"

limits:
  # Estimated tokens per review chunk
  token_budget: 40000
  max_files_per_chunk: 5
  # Unchanged lines shown around each change
  context_lines: 10
  chars_per_token: 3.5

dedupe:
  # Title similarity at which overlapping findings are merged
  similarity_threshold: 0.6

findings:
  # Minimum severity to report: blocker, high, medium, low, nit
  severity_threshold: low
  max_findings: 50

analyzer:
  # mock or command
  provider: mock
  # command: ["my-analyzer", "--json"]
  timeout: 300

retry:
  max_attempts: 2
  initial_delay: 1.0
  backoff_multiplier: 2.0
  max_delay: 60.0
  jitter: 0.1
"""
