"""Retry utilities using tenacity.

A chunk whose analysis fails transiently (timeout, crashed analyzer) is
retried with exponential backoff; errors that will fail the same way again
are raised immediately.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from tenacity import (
    RetryCallState,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    stop_when_event_set,
    wait_exponential,
    wait_random,
)

from selfreview.domain.config.retry import RetryConfig
from selfreview.infrastructure.analyzers.base import AnalyzerError

logger = logging.getLogger(__name__)


def is_retryable(exception: BaseException) -> bool:
    """Check if a failed analysis is worth another attempt."""
    if isinstance(exception, AnalyzerError):
        return exception.retryable
    # Bad input or a bug; repeating the call changes nothing
    if isinstance(exception, (ValueError, TypeError, KeyError)):
        return False
    return isinstance(exception, Exception)


def create_retry_decorator(
    retry_config: RetryConfig,
    retry_condition: Callable[[BaseException], bool] = is_retryable,
    before_sleep: Optional[Callable[[RetryCallState], None]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Callable[[Callable], Callable]:
    """Create a retry decorator with tenacity.

    Args:
        retry_config: Retry configuration
        retry_condition: Returns True if the exception should be retried
        before_sleep: Optional callback before sleep (defaults to logging)
        cancel_event: Optional flag; once set, a failed attempt is not retried

    Returns:
        Retry decorator; the last exception is re-raised unchanged
    """
    # initial_delay, initial_delay * multiplier, ... capped at max_delay
    wait = wait_exponential(
        multiplier=retry_config.initial_delay,
        exp_base=retry_config.backoff_multiplier,
        min=retry_config.initial_delay,
        max=retry_config.max_delay,
    )
    if retry_config.jitter > 0 and retry_config.initial_delay > 0:
        wait = wait + wait_random(0, retry_config.initial_delay * retry_config.jitter)

    if before_sleep is None:
        before_sleep = before_sleep_log(logger, logging.WARNING)

    stop = stop_after_attempt(retry_config.max_attempts)
    if cancel_event is not None:
        stop = stop | stop_when_event_set(cancel_event)

    def decorator(func: Callable) -> Callable:
        return retry(
            stop=stop,
            wait=wait,
            retry=retry_if_exception(retry_condition),
            reraise=True,
            before_sleep=before_sleep,
        )(func)

    return decorator


def retry_analysis(
    retry_config: RetryConfig,
    label: str = "chunk",
    cancel_event: Optional[threading.Event] = None,
) -> Callable[[Callable], Callable]:
    """Create a retry decorator for one chunk's analyzer call.

    Args:
        retry_config: Retry configuration
        label: Chunk description used in log messages (e.g. "chunk 2/5")
        cancel_event: Optional flag that stops further attempts once set
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        if retry_state.outcome is None:
            return
        logger.warning(
            f"Analysis of {label} failed (attempt {retry_state.attempt_number}/"
            f"{retry_config.max_attempts}): {retry_state.outcome.exception()}. Retrying..."
        )

    return create_retry_decorator(retry_config, is_retryable, _log_retry, cancel_event)
