"""Integration fixtures: tests run only when a local Redis answers."""

import os
import socket

import pytest

REDIS_HOST = os.environ.get("COPILOT_TEST_REDIS_HOST", "localhost")
REDIS_PORT = int(os.environ.get("COPILOT_TEST_REDIS_PORT", "6379"))


def redis_reachable() -> bool:
    try:
        with socket.create_connection((REDIS_HOST, REDIS_PORT), timeout=2):
            return True
    except OSError:
        return False


@pytest.fixture
def skip_if_no_redis():
    if not redis_reachable():
        pytest.skip(f"Redis not available at {REDIS_HOST}:{REDIS_PORT}")


@pytest.fixture
def redis_address(skip_if_no_redis):
    """(host, port) of the Redis used by integration tests."""
    return REDIS_HOST, REDIS_PORT
