from datetime import datetime, timedelta, timezone

import pytest

from coinrest.utils.time import local_timestamp, to_epoch_seconds

EPOCH = 1_700_000_000  # 2023-11-14T22:13:20Z


def test_local_timestamp_truncates() -> None:
    assert local_timestamp(lambda: 1_700_000_000.99) == EPOCH


@pytest.mark.parametrize(
    "value",
    [
        EPOCH,
        1_700_000_000_123,
        1_700_000_000_123_456,
        "1700000000",
        "2023-11-14T22:13:20Z",
        "2023-11-14T22:13:20.000Z",
        "2023-11-15T07:13:20+09:00",
        datetime(2023, 11, 14, 22, 13, 20),
        datetime(2023, 11, 15, 7, 13, 20, tzinfo=timezone(timedelta(hours=9))),
    ],
)
def test_to_epoch_seconds(value) -> None:
    assert to_epoch_seconds(value) == EPOCH


def test_invalid_string_raises() -> None:
    with pytest.raises(ValueError, match="Invalid or unrecognized"):
        to_epoch_seconds("yesterday")


@pytest.mark.parametrize("value", [1.5, None, True])
def test_unsupported_type_raises(value) -> None:
    with pytest.raises(ValueError, match="Unsupported timestamp type"):
        to_epoch_seconds(value)
