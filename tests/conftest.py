"""Shared pytest fixtures for taskinfo tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_decode_env(monkeypatch):
    """Keep the host environment from changing the decode policy.

    TASKS_DECODE_STRICT and TASKS_LOG_LEVEL are read when decoders and
    loggers are built; tests that need them set them explicitly.
    """
    monkeypatch.delenv("TASKS_DECODE_STRICT", raising=False)
    monkeypatch.delenv("TASKS_LOG_LEVEL", raising=False)


@pytest.fixture
def search_body() -> dict:
    """Body of a plain search task as the API lists it."""
    return {
        "type": "search",
        "action": "indices:data/read/search",
        "start_time_in_millis": 1000,
        "running_time_in_nanos": 500000,
        "cancellable": True,
    }
