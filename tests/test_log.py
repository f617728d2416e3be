from __future__ import annotations

import logging
from collections.abc import Iterator
from io import StringIO

import pytest
from rich.console import Console
from rich.logging import RichHandler

from reclaim.log import LOGGER_NAME, setup_logging


@pytest.fixture(autouse=True)
def _restore_logger() -> Iterator[None]:
    logger = logging.getLogger(LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def _console() -> Console:
    return Console(file=StringIO(), force_terminal=False, width=200)


class TestSetupLogging:
    def test_attaches_rich_handler(self) -> None:
        logger = setup_logging("DEBUG", console=_console())
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.propagate is False

    def test_repeated_setup_replaces_handler(self) -> None:
        setup_logging(console=_console())
        logger = setup_logging("warning", console=_console())
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_unknown_level_defaults_to_info(self) -> None:
        assert setup_logging("chatty", console=_console()).level == logging.INFO

    def test_child_loggers_reach_console(self) -> None:
        console = _console()
        setup_logging("INFO", console=console)
        logging.getLogger("reclaim.services.cleanup").info("moved %s", "/tmp/x")
        out = console.file.getvalue()  # type: ignore[attr-defined]
        assert "moved /tmp/x" in out
