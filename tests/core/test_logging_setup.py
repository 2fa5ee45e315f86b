"""Tests for structlog configuration."""

from __future__ import annotations

import logging

import pytest
import structlog

from asyncinit.core.logging import bind_context, configure_logging, get_logger, unbind_context


@pytest.fixture(autouse=True)
def reset_structlog():
    root_level = logging.getLogger().level
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    logging.getLogger().setLevel(root_level)


@pytest.mark.parametrize("json_format", [True, False])
def test_configure_and_log(json_format, caplog):
    configure_logging(level="INFO", json_format=json_format, service="test-init")
    get_logger("asyncinit.test").info("init.test.event", answer=42)
    assert "init.test.event" in caplog.text
    assert "42" in caplog.text


def test_json_carries_service_and_logger(caplog):
    configure_logging(level="INFO", json_format=True, service="test-init")
    get_logger("asyncinit.test").info("init.test.meta")
    assert '"service": "test-init"' in caplog.text
    assert '"logger": "asyncinit.test"' in caplog.text


def test_level_filters_lower_events(caplog):
    configure_logging(level="WARNING", json_format=True)
    get_logger("asyncinit.test").info("init.test.hidden")
    assert "init.test.hidden" not in caplog.text


def test_bound_context_is_merged(caplog):
    configure_logging(level="INFO", json_format=True)
    bind_context(session_id="s-1")
    get_logger("asyncinit.test").info("init.test.bound")
    unbind_context("session_id")
    assert '"session_id": "s-1"' in caplog.text
