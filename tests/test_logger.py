from __future__ import annotations

import logging

import pytest

from risk_swap import logger as logger_module
from risk_swap.adapters.price_feeds import coingecko
from risk_swap.logger import TRACE, get_logger, resolve_level, setup_logging
from risk_swap.notifications import queue, telegram
from risk_swap.processors import sizing


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    web3_level = logging.getLogger("web3").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("web3").setLevel(web3_level)


@pytest.mark.parametrize("module", [coingecko, queue, telegram, sizing])
def test_module_loggers_come_from_get_logger(module):
    assert module.logger is get_logger(module.__name__)
    assert module.logger.name.startswith("risk_swap.")
    assert "logging" not in vars(module)


def test_resolve_level():
    assert resolve_level("trace") == TRACE
    assert resolve_level("warning") == logging.WARNING
    assert resolve_level("bogus") == logging.INFO


def test_debug_keeps_web3_quiet():
    setup_logging("debug")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("web3").level == logging.WARNING
    assert isinstance(
        logging.getLogger().handlers[0].formatter, logger_module.ColoredFormatter
    )
