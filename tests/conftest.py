import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_root_handlers():
    """Keep handlers installed by setup_logging from leaking between tests."""
    root = logging.getLogger()
    before = list(root.handlers)
    yield
    root.handlers[:] = before
