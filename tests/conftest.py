"""Pytest fixtures for ghprojects tests."""

import logging
from pathlib import Path
from typing import Generator

import pytest
import structlog

from ghprojects.api.memory import InMemoryRemoteAPI
from ghprojects.cli.helpers import reset_cli_state
from ghprojects.core.config import AppSettings, PreferenceStore, RetryPolicy
from ghprojects.core.logging import clear_context


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging and CLI state before and after each test.

    This ensures test isolation for logging configuration.
    """
    reset_cli_state()
    clear_context()
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    reset_cli_state()
    clear_context()
    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def fast_settings(tmp_path: Path) -> AppSettings:
    """Settings whose retries wait only milliseconds."""
    return AppSettings(
        retry=RetryPolicy(max_attempts=3, base_delay=0.001, max_delay=0.004, jitter=False),
        preferences_path=tmp_path / "config.json",
    )


@pytest.fixture
def preferences(tmp_path: Path) -> PreferenceStore:
    return PreferenceStore.open(tmp_path / "config.json")


@pytest.fixture
def api() -> InMemoryRemoteAPI:
    """An in-memory backend with one user project holding one draft."""
    api = InMemoryRemoteAPI("octocat")
    api.add_user("hubot")
    project = api.add_project("octocat", "Roadmap")
    api.add_item(project.id, "Write docs", "Explain the retry policy.")
    api.add_repository("octocat", "dotfiles", "Personal configuration")
    return api
