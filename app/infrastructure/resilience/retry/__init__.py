"""Retry policy for outbound operations.

Architecture:
- RetryConfig: Backoff parameters and named profiles
- RetryPolicy: Retryability classification and delay computation

Usage:
    from infrastructure.resilience.retry import RetryConfig, RetryPolicy

    policy = RetryPolicy(RetryConfig.lightweight())
    if policy.should_retry(error):
        await asyncio.sleep(policy.delay_for_attempt(attempt))
"""

from infrastructure.resilience.retry.config import RetryConfig
from infrastructure.resilience.retry.policy import (
    DEFAULT_RETRYABLE_EXCEPTIONS,
    DEFAULT_RETRYABLE_STATUS_CODES,
    RetryPolicy,
)

__all__ = [
    "RetryConfig",
    "RetryPolicy",
    "DEFAULT_RETRYABLE_EXCEPTIONS",
    "DEFAULT_RETRYABLE_STATUS_CODES",
]
