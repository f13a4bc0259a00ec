"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It points configuration at the testing environment and an in-memory
store so no test touches the real database or legacy file.
"""

from __future__ import annotations

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timezone
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from lead_api.adapters.duplicates import SnapshotDuplicateDetector
from lead_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from lead_api.adapters.storage.in_memory import InMemorySnapshotBackend
from lead_api.core.app_factory import create_app
from lead_api.core.config import AppSettings
from lead_api.services.intake_service import LeadIntakeService
from lead_api.services.record_store import RecordStore

# 2025-01-15T12:00:00Z
BASE_TIME = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc).timestamp()


class FakeClock:
    """Manually advanced UNIX clock."""

    def __init__(self, start: float = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> InMemorySnapshotBackend:
    return InMemorySnapshotBackend()


@pytest.fixture
def store(backend: InMemorySnapshotBackend) -> Iterator[RecordStore]:
    record_store = RecordStore(backend, SnapshotDuplicateDetector(window_seconds=600))
    yield record_store
    record_store.close()


@pytest.fixture
def make_service(store: RecordStore, clock: FakeClock) -> Callable[..., LeadIntakeService]:
    """Build a service over the shared store with a fake clock."""

    def _make(**overrides) -> LeadIntakeService:
        app_settings = AppSettings(timezone="UTC", **overrides)  # type: ignore[call-arg]
        limiter = None
        if app_settings.rate_limit_enabled:
            limiter = InMemoryFixedWindowRateLimiter(
                limit=app_settings.rate_limit_requests,
                window_seconds=app_settings.rate_limit_window_seconds,
                clock=clock,
            )
        return LeadIntakeService(store, limiter, clock=clock, app_settings=app_settings)

    return _make


@pytest.fixture
def service(make_service: Callable[..., LeadIntakeService]) -> LeadIntakeService:
    return make_service()


@pytest.fixture
def client(service: LeadIntakeService) -> Iterator[TestClient]:
    with TestClient(create_app(service=service)) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-API-Key": "test-api-key-123"}


def consultation_body(**overrides) -> dict:
    body = {
        "name": "Zhang San",
        "phone": "13800138000",
        "intentionProducts": ["A"],
        "sourcePage": "home",
    }
    body.update(overrides)
    return body
