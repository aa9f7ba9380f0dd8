from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """CLI runs attach a handler and stop propagation; undo that between tests."""
    yield
    package_logger = logging.getLogger("pathscan")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
