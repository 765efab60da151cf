"""Shared fixtures for the pixdiff test suite."""

from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep worker count and log level independent of the caller's shell."""
    monkeypatch.delenv("PIXDIFF_WORKERS", raising=False)
    logging.getLogger("pixdiff").setLevel(logging.NOTSET)
