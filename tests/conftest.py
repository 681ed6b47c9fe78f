"""Shared test fixtures and configuration."""

import logging
import os

import pytest


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Isolate tests from FUZZYDEX_* variables and any .env in the working directory."""
    for key in list(os.environ):
        if key.upper().startswith("FUZZYDEX_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def report_records():
    """Structured records used across the engine tests."""
    return [
        {"title": "Quarterly Report", "tags": ["finance"]},
        {"title": "Annual Summary", "tags": ["finance", "year"]},
    ]


@pytest.fixture
def report_keys():
    return [{"name": "title", "weight": 2}, {"name": "tags", "weight": 1}]


@pytest.fixture
def books():
    return [
        {"title": "Old Man's War", "author": {"name": "John Scalzi", "tags": ["fiction"]}},
        {"title": "The Lock Artist", "author": {"name": "Steve Hamilton", "tags": ["thriller"]}},
        {"title": "HTML5", "author": {"name": "Remy Sharp", "tags": ["web development", "nonfiction"]}},
        {"title": "Right Ho Jeeves", "author": {"name": "P.D. Woodhouse", "tags": ["comedy", "classic"]}},
        {"title": "The Code of the Wooster", "author": {"name": "P.D. Woodhouse", "tags": ["comedy"]}},
    ]


@pytest.fixture
def restore_root_logger():
    """Undo handler and level changes made by configure_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
