"""Shared fixtures: a controllable clock, configs and a sleep recorder."""

from __future__ import annotations

import asyncio

import pytest

import core.retry
from core.models import CachingConfig, FilterRules, ServerConfig
from tests.fakes import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def caching() -> CachingConfig:
    return CachingConfig(enabled=True, ttl_minutes=1)


@pytest.fixture
def rules() -> FilterRules:
    return FilterRules(exclude_keywords=[])


@pytest.fixture
def server_config() -> ServerConfig:
    return ServerConfig()


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    """Record every retry backoff instead of actually waiting."""
    recorded: list[float] = []
    real_sleep = asyncio.sleep

    async def fake_sleep(seconds):
        recorded.append(seconds)
        await real_sleep(0)

    monkeypatch.setattr(core.retry.asyncio, "sleep", fake_sleep)
    return recorded
