from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import pytest

from shimport.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def _restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    try:
        yield
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)


@pytest.mark.usefixtures("_restore_root_logger")
def test_progress_goes_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(force=True)

    logging.getLogger("shimport.test").info("Importing 1/1: export.json")

    captured = capsys.readouterr()
    assert "INFO [shimport.test] Importing 1/1: export.json" in captured.out
    assert captured.err == ""


@pytest.mark.usefixtures("_restore_root_logger")
def test_debug_level_can_be_forced() -> None:
    configure_logging(level=logging.DEBUG, force=True)

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(getattr(handler, "stream", None) is sys.stdout for handler in root.handlers)
