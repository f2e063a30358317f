"""Shared fixtures for delaykit tests."""

import importlib

import pytest

from delaykit import TimeoutRegistry


@pytest.fixture
def registry():
    """Fresh registry, torn down after the test."""
    reg = TimeoutRegistry()
    yield reg
    reg.teardown_all("test finished")


@pytest.fixture
def sleeps(monkeypatch):
    """Record retry sleeps instead of actually waiting."""
    recorded: list[float] = []

    async def fake_wait(ms):
        recorded.append(ms)

    # delaykit.utils re-exports the retry function under the module's name.
    retry_module = importlib.import_module("delaykit.utils.retry")
    monkeypatch.setattr(retry_module, "wait", fake_wait)
    return recorded
