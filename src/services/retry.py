"""Retry policy with exponential backoff for API calls."""

import asyncio
import random
from dataclasses import dataclass
from functools import wraps

import structlog

from .error_mapper import ApiError, to_api_error

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Which failures are retried, how often, and how long to wait."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff: float = 2.0
    jitter_ratio: float = 0.25
    retry_on_network_error: bool = True
    retry_on_timeout: bool = True
    retry_on_server_error: bool = True
    retry_on_rate_limit: bool = True
    retry_on_client_error: bool = False

    def should_retry(self, error: ApiError, attempt: int) -> bool:
        """``attempt`` counts retries already made, starting at 0."""
        if attempt >= self.max_attempts:
            return False
        if not error.retryable:
            return False
        if error.code == "client_error":
            return self.retry_on_client_error
        if error.code == "timeout":
            return self.retry_on_timeout
        if error.code == "server_error":
            return self.retry_on_server_error
        if error.code == "rate_limited":
            return self.retry_on_rate_limit
        return self.retry_on_network_error

    def delay_for(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.backoff**attempt), self.max_delay)
        if self.jitter_ratio > 0:
            spread = delay * self.jitter_ratio
            delay = max(0.0, delay + random.uniform(-spread, spread))
        return delay


DEFAULT = RetryPolicy()
NO_RETRY = RetryPolicy(
    max_attempts=0,
    retry_on_network_error=False,
    retry_on_timeout=False,
    retry_on_server_error=False,
    retry_on_rate_limit=False,
)
QUICK = RetryPolicy(max_attempts=2, base_delay=0.5, max_delay=2.0)
AGGRESSIVE = RetryPolicy(max_attempts=5, base_delay=2.0, max_delay=60.0)


def retry_on_failure(policy_attr: str = "retry_policy"):
    """Retry an async method under ``getattr(self, policy_attr)``.

    Failures are normalized to ``ApiError`` before the policy is consulted.
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(self, *args, **kwargs):
            policy: RetryPolicy = getattr(self, policy_attr, NO_RETRY)
            attempt = 0
            while True:
                try:
                    return await func(self, *args, **kwargs)
                except Exception as e:
                    error = to_api_error(e)
                    if not policy.should_retry(error, attempt):
                        if attempt:
                            logger.error(
                                f"{func.__name__} failed after {attempt + 1} attempts",
                                error_code=error.code,
                            )
                        if error is e:
                            raise
                        raise error from e
                    sleep_for = policy.delay_for(attempt)
                    logger.warning(
                        f"{func.__name__} attempt {attempt + 1} failed, retrying in {sleep_for:.2f}s",
                        error_code=error.code,
                    )
                    await asyncio.sleep(sleep_for)
                    attempt += 1

        return wrapper

    return decorator
