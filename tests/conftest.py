"""
Test configuration - ensures repo root is in sys.path + determinism guards.

This allows tests to import from top-level packages (agenda, api).
Live HTTP is blocked: anything reaching the real backend must be mocked by
patching agenda.store.rest_store.httpx.request.
"""

import sys
from datetime import date
from pathlib import Path

import httpx
import pytest

# Add repo root to sys.path so tests can import agenda.*, api.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tests.fixtures import MemoryStore  # noqa: E402

# =============================================================================
# DETERMINISM GUARD: Block live backend access
# =============================================================================


def _blocked_request(method, url, *args, **kwargs):
    raise RuntimeError(
        f"DETERMINISM VIOLATION: live HTTP {method} {url}\n"
        "Tests must patch agenda.store.rest_store.httpx.request or use MemoryStore."
    )


@pytest.fixture(autouse=True)
def guard_live_http(monkeypatch):
    """Automatically guard all tests against live backend calls."""
    monkeypatch.setattr(httpx, "request", _blocked_request)


# =============================================================================
# SHARED FIXTURES
# =============================================================================


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def monday():
    """2024-03-04, a Monday."""
    return date(2024, 3, 4)
