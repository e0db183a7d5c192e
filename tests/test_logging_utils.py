"""Tests for logging configuration."""

from __future__ import annotations

import logging

import pytest

from deal_pipeline.logging_utils import configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_explicit_level(restore_root_logger):
    configure_logging("warning")

    assert restore_root_logger.level == logging.WARNING


def test_level_from_environment(restore_root_logger, monkeypatch):
    monkeypatch.setenv("DEAL_PIPELINE_LOG_LEVEL", "DEBUG")

    configure_logging()

    assert restore_root_logger.level == logging.DEBUG


def test_unknown_level_falls_back_to_info(restore_root_logger):
    configure_logging("chatty")

    assert restore_root_logger.level == logging.INFO


def test_force_replaces_handlers(restore_root_logger):
    configure_logging(logging.ERROR, force=True)

    assert restore_root_logger.level == logging.ERROR
    assert len(restore_root_logger.handlers) == 1
