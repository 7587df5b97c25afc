"""Tests for configure_logging."""

from __future__ import annotations

import logging

from hackmatch.infra.logging_setup import configure_logging


def test_sets_root_level_and_quiets_httpx():
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging("debug")
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.setLevel(previous)
