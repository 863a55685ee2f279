from __future__ import annotations

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Keep structlog's global config from leaking between tests (e.g. a
    CliRunner stderr stream that is closed once the CLI test finishes)."""
    yield
    structlog.reset_defaults()
