"""Builds the analyzer selected in the configuration"""

import logging
from typing import get_args

from selfreview.domain.config.analyzer import AnalyzerConfig
from selfreview.infrastructure.analyzers.base import Analyzer
from selfreview.infrastructure.analyzers.command import CommandAnalyzer
from selfreview.infrastructure.analyzers.mock import MockAnalyzer

logger = logging.getLogger(__name__)

ANALYZER_NAMES = get_args(AnalyzerConfig.model_fields["provider"].annotation)


def create_analyzer(config: AnalyzerConfig) -> Analyzer:
    """Create the analyzer named by config.provider

    Raises:
        ValueError: If the command analyzer has no command configured
    """
    if config.provider == "command":
        logger.info(f"Creating command analyzer: {' '.join(config.command) or '<none>'}")
        return CommandAnalyzer({"command": config.command, "timeout": config.timeout})
    logger.info("Creating mock analyzer")
    return MockAnalyzer()
