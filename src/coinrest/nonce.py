"""Strictly increasing nonces for authenticated requests.

Every supported exchange rejects a nonce that does not exceed the last one
it accepted. Each adapter therefore owns a private `NonceGenerator`; no
state is shared between adapter instances.
"""

import threading
import time
from collections.abc import Callable
from typing import Final

from loguru import logger

Clock = Callable[[], float]
NonceScale = Callable[[float], int]

MICROSECONDS_PER_SECOND: Final[int] = 1_000_000


def centiseconds_of_whole_second(now: float) -> int:
    """Whole seconds multiplied by 100; leaves room for 99 extra nonces per second."""
    return int(now) * 100


def milliseconds(now: float) -> int:
    """Milliseconds since the Unix epoch."""
    return int(now * 1000)


def microseconds(now: float) -> int:
    """Microseconds since the Unix epoch."""
    return int(now * MICROSECONDS_PER_SECOND)


def format_microseconds_as_seconds(nonce: int) -> str:
    """Renders a microsecond nonce as a decimal seconds string.

    Example: ``1700000000000001`` -> ``"1700000000.000001"``. The rendering
    preserves ordering, so a strictly increasing integer sequence stays
    strictly increasing on the wire.
    """
    seconds, fraction = divmod(nonce, MICROSECONDS_PER_SECOND)
    return f"{seconds}.{fraction:06d}"


class NonceGenerator:
    """Issues a strictly increasing sequence of integer nonces.

    The candidate for each nonce comes from the clock, converted by an
    exchange-specific scale. When the candidate does not exceed the last
    issued value (same clock tick, or a clock that moved backwards) the
    previous value plus one is issued instead.

    `issue()` is safe to call from several threads sharing one adapter.
    """

    def __init__(
        self,
        scale: NonceScale = milliseconds,
        clock: Clock = time.time,
        start: int = 0,
    ) -> None:
        """Initializes the generator.

        Args:
            scale: Converts a clock reading (float seconds) to a nonce candidate.
            clock: Returns the current time in seconds; injectable for tests.
            start: Baseline below which no nonce is issued, e.g. the last
                nonce the exchange is known to have accepted.
        """
        if start < 0:
            err_msg = "Nonce baseline must not be negative."
            raise ValueError(err_msg)
        self._scale = scale
        self._clock = clock
        self._last_issued = start
        self._lock = threading.Lock()

    @property
    def last_issued(self) -> int:
        """The most recently issued nonce (or the baseline if none yet)."""
        with self._lock:
            return self._last_issued

    def issue(self) -> int:
        """Returns the next nonce, strictly greater than any issued before."""
        with self._lock:
            candidate = self._scale(self._clock())
            if candidate <= self._last_issued:
                if candidate < self._last_issued:
                    logger.trace(
                        f"Nonce candidate {candidate} is behind {self._last_issued}; "
                        "bumping."
                    )
                candidate = self._last_issued + 1
            self._last_issued = candidate
            return candidate
