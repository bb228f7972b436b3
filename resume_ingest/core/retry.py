import logging
import time
from typing import Callable, Optional, TypeVar

from resume_ingest.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(
    fn: Callable[[], T],
    *,
    attempts: int = 3,
    initial_delay: float = 0.5,
    max_delay: float = 4.0,
    multiplier: float = 2.0,
    deadline: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `fn`, retrying retryable ExternalServiceErrors with exponential backoff.

    Non-retryable service errors and every other exception propagate on the
    first failure. `deadline` is a time.monotonic() value; no backoff sleep
    runs past it.
    """
    delay = initial_delay
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except ExternalServiceError as e:
            if not e.retryable or attempt >= attempts:
                raise
            if deadline is not None and time.monotonic() + delay >= deadline:
                logger.warning(f"Not retrying {e.service} call: backoff would pass the deadline")
                raise
            logger.warning(f"{e.service} call failed ({e.code}), retry {attempt}/{attempts - 1} in {delay:.2f}s")
            sleep(delay)
            delay = min(delay * multiplier, max_delay)
    raise AssertionError("unreachable")
