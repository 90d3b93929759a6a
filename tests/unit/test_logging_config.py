import logging
import sys
from pathlib import Path

import pytest
from loguru import logger

from coinrest.logging_config import (
    REDACTED,
    _sensitive_data_filter,
    redact,
    register_secret,
    setup_logging,
)


@pytest.fixture
def captured():
    messages: list[str] = []
    sink_id = logger.add(
        messages.append, level="DEBUG", format="{message} {extra}", filter=_sensitive_data_filter
    )
    yield messages
    logger.remove(sink_id)


def test_registered_secret_is_masked_in_message(captured: list[str]) -> None:
    register_secret("s3cr3t-value-abc")
    logger.info("signing with s3cr3t-value-abc now")

    assert "s3cr3t-value-abc" not in captured[0]
    assert REDACTED in captured[0]


def test_sensitive_extra_keys_are_masked(captured: list[str]) -> None:
    logger.bind(api_key="plain-key", signature="deadbeef", venue="zaif").debug("request")

    line = captured[0]
    assert "plain-key" not in line
    assert "deadbeef" not in line
    assert "zaif" in line


def test_empty_secret_is_ignored() -> None:
    register_secret("")
    register_secret(None)
    assert redact("nothing to hide") == "nothing to hide"


def test_longer_secret_wins_over_its_prefix() -> None:
    register_secret("abc-prefix")
    register_secret("abc-prefix-and-more")
    assert redact("x abc-prefix-and-more y") == f"x {REDACTED} y"


def test_setup_logging_creates_file_sink_and_intercepts_stdlib(tmp_path: Path) -> None:
    try:
        setup_logging(console_level="warning", log_dir=tmp_path / "logs")
        assert any((tmp_path / "logs").iterdir())
        assert any(
            type(h).__name__ == "InterceptHandler" for h in logging.getLogger().handlers
        )
    finally:
        logger.remove()
        logger.add(sys.stderr)
