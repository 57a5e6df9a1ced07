from __future__ import annotations

import pytest


@pytest.fixture
def anyio_backend() -> str:
    """The app runs on asyncio (uvicorn); run anyio-marked tests on it only."""

    return "asyncio"
