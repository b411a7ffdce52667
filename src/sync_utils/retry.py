"""
Retry with exponential backoff for establishing store connections

Only connection setup is retried. Batch runs never retry rows
internally; a failed row is picked up by the next run's window.

Usage:
    from sync_utils.retry import retry_database_operation

    @retry_database_operation(max_retries=3, base_delay=2.0)
    def connect():
        return psycopg2.connect(**config)
"""

import logging
import random
import time
from functools import wraps
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

TRANSIENT_ERROR_PATTERNS = (
    "connection",
    "timeout",
    "timed out",
    "deadlock",
    "server closed the connection",
    "could not connect",
    "connection refused",
    "connection reset",
    "broken pipe",
    "communication link failure",
    "login timeout expired",
)

TRANSIENT_ERROR_TYPES = (
    "connectionerror",
    "timeouterror",
    "operationalerror",
    "interfaceerror",
)


def is_retryable_db_exception(exception: Exception) -> bool:
    """
    Decide whether a database exception is transient

    Connection, timeout and deadlock failures are retryable; syntax
    errors, permission errors and constraint violations are not.
    """
    exception_type = type(exception).__name__.lower()
    if exception_type in TRANSIENT_ERROR_TYPES:
        return True

    message = str(exception).lower()
    return any(pattern in message for pattern in TRANSIENT_ERROR_PATTERNS)


def compute_backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float = 60.0,
    jitter: bool = True,
) -> float:
    """Delay before retry number ``attempt`` (0-based), with +/-25% jitter."""
    delay = min(base_delay * (2.0 ** attempt), max_delay)
    if jitter:
        spread = delay * 0.25
        delay = max(0.1, delay + random.uniform(-spread, spread))
    return delay


def retry_database_operation(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
):
    """
    Decorator retrying transient database failures with exponential backoff

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Upper bound for a single delay
        jitter: Randomize delays by +/-25%
        on_retry: Callback(attempt, exception, delay) invoked before sleeping
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            func_name = getattr(func, "__name__", "function")

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable_db_exception(e):
                        logger.error(
                            f"Non-retryable database error in {func_name}: "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    if attempt == max_retries:
                        logger.error(
                            f"Max retries ({max_retries}) exceeded for {func_name}: "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    delay = compute_backoff_delay(attempt, base_delay, max_delay, jitter)
                    logger.warning(
                        f"Retryable database error in {func_name} "
                        f"(attempt {attempt + 1}/{max_retries}): "
                        f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                    )

                    if on_retry:
                        on_retry(attempt + 1, e, delay)

                    time.sleep(delay)

        return wrapper
    return decorator
