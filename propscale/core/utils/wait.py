"""
Generic poll-until-condition helper.

Every wait in propscale goes through :func:`poll_until`. The condition owns
its error policy: returning a falsy value means "not yet", raising aborts
the wait immediately. ``poll_until`` itself never swallows an exception.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from propscale.core.errors import WaitTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]
Sleeper = Callable[[float], None]


def poll_until(
    condition: Callable[[], Optional[T]],
    *,
    interval: float,
    timeout: float,
    description: str = "condition",
    clock: Clock = time.monotonic,
    sleep: Sleeper = time.sleep,
) -> T:
    """
    Call ``condition`` now and then every ``interval`` seconds until it
    returns a truthy value, which is returned.

    Raises:
        WaitTimeoutError: if ``timeout`` elapses first. The final attempt is
            made no later than the deadline.
        Exception: whatever ``condition`` raises, unchanged.
    """
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")
    if timeout < 0:
        raise ValueError(f"timeout must be non-negative, got {timeout}")

    started = clock()
    deadline = started + timeout
    attempts = 0
    while True:
        attempts += 1
        result = condition()
        if result:
            logger.debug("%s satisfied after %s attempt(s)", description, attempts)
            return result

        remaining = deadline - clock()
        if remaining <= 0:
            raise WaitTimeoutError(description, attempts=attempts, waited=clock() - started)
        sleep(min(interval, remaining))
