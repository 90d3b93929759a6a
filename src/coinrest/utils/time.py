import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from loguru import logger

# A heuristic to determine the unit of a numeric timestamp.
# If a timestamp (in seconds) is greater than this, it's likely in milliseconds.
# This corresponds to a date in the year 2286.
MILLISECONDS_THRESHOLD = 10**10
# If a timestamp (in seconds) is greater than this, it's likely in microseconds.
MICROSECONDS_THRESHOLD = 10**13


def local_timestamp(clock: Callable[[], float] = time.time) -> int:
    """Returns the local time as whole seconds since the Unix epoch.

    This is the ``ltimestamp`` stamped on every canonical entity: the moment
    the response was normalised on this machine, as opposed to any time the
    exchange itself reports.
    """
    return int(clock())


def to_epoch_seconds(timestamp: Any) -> int:
    """Normalizes an exchange timestamp to whole seconds since the Unix epoch.

    This function can handle:
    - int: Unix timestamps in seconds, milliseconds or microseconds. The unit
      is guessed from the magnitude.
    - str: Either a numeric string (treated like int) or ISO 8601, with or
      without a 'Z' suffix. Naive values are assumed to be UTC.
    - datetime: Naive datetimes are assumed to be UTC.

    Args:
        timestamp: The timestamp to normalize.

    Returns:
        Whole seconds since the Unix epoch.

    Raises:
        ValueError: If the timestamp format is unrecognized or invalid.
    """
    if isinstance(timestamp, str) and timestamp.strip().isdigit():
        timestamp = int(timestamp.strip())

    if isinstance(timestamp, datetime):
        dt_obj = timestamp
        if dt_obj.tzinfo is None:
            dt_obj = dt_obj.replace(tzinfo=timezone.utc)
        return int(dt_obj.timestamp())

    if isinstance(timestamp, int) and not isinstance(timestamp, bool):
        if timestamp > MICROSECONDS_THRESHOLD:
            return timestamp // 1_000_000
        if timestamp > MILLISECONDS_THRESHOLD:
            return timestamp // 1_000
        return timestamp

    if isinstance(timestamp, str):
        text = timestamp.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt_obj = datetime.fromisoformat(text)
        except ValueError as e:
            logger.warning(f"Could not parse timestamp string '{timestamp}': {e}")
            err_msg = f"Invalid or unrecognized timestamp string format: {timestamp}"
            raise ValueError(err_msg) from e
        if dt_obj.tzinfo is None:
            dt_obj = dt_obj.replace(tzinfo=timezone.utc)
        return int(dt_obj.timestamp())

    err_msg = f"Unsupported timestamp type: {type(timestamp).__name__}"
    raise ValueError(err_msg)
