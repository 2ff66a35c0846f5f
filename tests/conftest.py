"""Shared pytest fixtures for store-probe tests.

Test doubles live in ``tests/mocks.py`` and helper functions in
``tests/helpers.py``; this module only holds fixtures that every test needs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Undo handler and level changes made by ``setup_logging`` in a test."""
    root = logging.getLogger()
    package_logger = logging.getLogger("storeprobe")
    handlers = root.handlers[:]
    root_level = root.level
    package_level = package_logger.level

    yield

    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(root_level)
    package_logger.setLevel(package_level)
