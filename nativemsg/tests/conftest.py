"""Shared test fixtures for nativemsg test suite."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from nativemsg.log import LOGGER_NAME

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(params=["big", "little", "native"])
def byte_order_policy(request: pytest.FixtureRequest) -> str:
    """Each supported byte-order policy in turn."""
    return request.param  # type: ignore[no-any-return]


@pytest.fixture
def clean_logger() -> Iterator[logging.Logger]:
    """Package logger with handlers detached, restored afterwards."""
    logger = logging.getLogger(LOGGER_NAME)
    saved_handlers = logger.handlers[:]
    saved_level = logger.level
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)
