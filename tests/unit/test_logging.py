"""Tests for logging setup."""

from __future__ import annotations

import logging

from stepgate.core.logging import configure_logging


def test_configure_logging_sets_level():
    logger = configure_logging("debug")
    assert logger.name == "stepgate"
    assert logger.level == logging.DEBUG


def test_configure_logging_is_idempotent():
    configure_logging("INFO")
    before = len(logging.getLogger("stepgate").handlers)
    configure_logging("WARNING")
    assert len(logging.getLogger("stepgate").handlers) == before


def test_unknown_level_falls_back_to_info():
    assert configure_logging("chatty").level == logging.INFO
