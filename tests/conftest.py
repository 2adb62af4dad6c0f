"""Shared test fixtures for the test suite."""

import pytest
from loguru import logger

from wordflow.application.adapter import ExecutionContext


@pytest.fixture
def ctx() -> ExecutionContext:
    """A fresh, uncancelled execution context."""
    return ExecutionContext()


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
