"""pytest fixtures for testing."""

import logging
from contextlib import contextmanager
from unittest.mock import MagicMock

import fakeredis
import pytest
import redis


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo setup_logging() so handlers do not leak between tests."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake_redis():
    """In-memory Redis client backed by its own fakeredis server."""
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    client.close()


@pytest.fixture
def subscribe(fake_redis):
    """Subscribe to a channel; returns a callable listing payloads received so far."""
    pubsubs = []

    def _subscribe(channel):
        pubsub = fake_redis.pubsub()
        pubsub.subscribe(channel)
        pubsubs.append(pubsub)

        def received():
            payloads = []
            message = pubsub.get_message()
            while message is not None:
                if message["type"] == "message":
                    payloads.append(message["data"])
                message = pubsub.get_message()
            return payloads

        return received

    yield _subscribe

    for pubsub in pubsubs:
        pubsub.close()


@pytest.fixture
def client_factory(fake_redis):
    """Client factory yielding factory.client, recording the URLs it was opened with."""
    opened = []

    @contextmanager
    def factory(url, timeout):
        opened.append((url, timeout))
        try:
            yield factory.client
        finally:
            factory.closed = True

    factory.client = fake_redis
    factory.opened = opened
    factory.closed = False
    return factory


@pytest.fixture
def broken_redis(client_factory):
    """Mock client whose every command fails with a connection error.

    Also installed as the client handed out by client_factory.
    """
    error = redis.ConnectionError("Connection refused")
    client = MagicMock()
    client.publish.side_effect = error
    client.zrange.side_effect = error
    client.pipeline.return_value.__enter__.return_value.execute.side_effect = error
    client_factory.client = client
    return client


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every ipstash-related variable from the environment."""
    for key in (
        "IP_FETCH_URL",
        "IPSTASH_MODE",
        "IPSTASH_CHANNEL",
        "IPSTASH_HISTORY_KEY",
        "IPSTASH_HISTORY_MAX",
        "REDIS_URL",
        "REDIS_ADDR",
        "FETCH_TIMEOUT",
        "REDIS_TIMEOUT",
        "DRY_RUN",
        "VERBOSE",
    ):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def sample_config(clean_env):
    """Default configuration with a fixed broker URL."""
    from ipstash.config import Config

    clean_env.setenv("REDIS_URL", "redis://broker.internal:6379/0")
    return Config.from_env()
