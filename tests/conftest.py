# ruff: noqa: INP001
"""Pytest configuration shared across client tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
TESTS = Path(__file__).resolve().parent
if str(TESTS) not in sys.path:
    sys.path.insert(0, str(TESTS))

# Settings are read at import time; pin deterministic defaults regardless of shell env.
os.environ["API_BASE_URL"] = "http://testserver"
os.environ["TOKEN_STORE"] = "memory"
os.environ["POLL_INTERVAL_SECONDS"] = "10"
os.environ["LOG_LEVEL"] = "DEBUG"

from fake_backend import FakeState, build_app  # noqa: E402

from pricing_desk.client import PricingDeskClient  # noqa: E402
from pricing_desk.services.token_store import MemoryTokenStore  # noqa: E402


@pytest.fixture
def backend() -> FakeState:
    return FakeState()


@pytest.fixture
def make_client(backend: FakeState):
    """Factory for clients wired to the in-memory backend."""

    app = build_app(backend)

    def _make(token_store: MemoryTokenStore | None = None) -> PricingDeskClient:
        return PricingDeskClient(
            "http://testserver",
            token_store=token_store or MemoryTokenStore(),
            http_transport=httpx.ASGITransport(app=app),
            poll_interval=0.01,
        )

    return _make
