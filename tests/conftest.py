"""
Shared pytest fixtures for authapi tests.

This module provides common fixtures including:
- FakeRedis: in-memory async Redis double that reads back what it writes
- Signing keypairs generated per test session
- A fully wired AuthStack and FastAPI test client
"""

import fnmatch
from typing import Dict, List, Set
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from authapi.main import create_app
from authapi.modules.auth.factory import AuthFactory
from authapi.modules.auth.keys import KeyManager, SignatureAlgorithm, generate_keypair_pem
from authapi.modules.auth.password import CredentialHasher
from authapi.modules.storage import RedisUserStore

# Minimal Argon2 cost keeps the suite fast; production uses the defaults
TEST_HASH_COST = {"time_cost": 1, "memory_cost": 64, "parallelism": 1}


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================


class FakePipeline:
    """
    Pipeline double mirroring redis.asyncio semantics.

    After watch() commands run immediately; after multi() (or without a
    watch) they are queued until execute().
    """

    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._queue = []
        self._immediate = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self._queue = []
        return False

    async def watch(self, *keys):
        self._immediate = True

    async def exists(self, *keys):
        return await self._redis.exists(*keys)

    def multi(self):
        self._immediate = False

    def _queue_call(self, name, *args, **kwargs):
        self._queue.append((name, args, kwargs))
        return self

    def hset(self, *args, **kwargs):
        return self._queue_call("hset", *args, **kwargs)

    def sadd(self, *args, **kwargs):
        return self._queue_call("sadd", *args, **kwargs)

    def srem(self, *args, **kwargs):
        return self._queue_call("srem", *args, **kwargs)

    def delete(self, *args, **kwargs):
        return self._queue_call("delete", *args, **kwargs)

    async def execute(self):
        results = []
        for name, args, kwargs in self._queue:
            results.append(await getattr(self._redis, name)(*args, **kwargs))
        self._queue = []
        return results


class FakeRedis:
    """In-memory async Redis for tests that read back what they write."""

    def __init__(self):
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.sets: Dict[str, Set[str]] = {}
        self.lists: Dict[str, List[str]] = {}

    def pipeline(self, transaction: bool = True):
        return FakePipeline(self)

    async def hset(self, key, field=None, value=None, mapping=None):
        data = self.hashes.setdefault(key, {})
        before = len(data)
        if field is not None:
            data[field] = value
        if mapping:
            data.update({k: str(v) for k, v in mapping.items()})
        return len(data) - before

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    async def exists(self, *keys):
        return sum(1 for k in keys if k in self.hashes or k in self.sets or k in self.lists)

    async def delete(self, *keys):
        count = 0
        for key in keys:
            for store in (self.hashes, self.sets, self.lists):
                if key in store:
                    del store[key]
                    count += 1
        return count

    async def sadd(self, key, *members):
        data = self.sets.setdefault(key, set())
        before = len(data)
        data.update(members)
        return len(data) - before

    async def srem(self, key, *members):
        data = self.sets.get(key, set())
        removed = len(data & set(members))
        data.difference_update(members)
        return removed

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def lpush(self, key, *values):
        data = self.lists.setdefault(key, [])
        for value in values:
            data.insert(0, value)
        return len(data)

    async def ltrim(self, key, start, end):
        data = self.lists.get(key, [])
        self.lists[key] = data[start:] if end == -1 else data[start:end + 1]
        return True

    async def lrange(self, key, start, end):
        data = self.lists.get(key, [])
        return data[start:] if end == -1 else data[start:end + 1]

    async def keys(self, pattern="*"):
        all_keys = list(self.hashes) + list(self.sets) + list(self.lists)
        return [k for k in all_keys if fnmatch.fnmatch(k, pattern)]


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def mock_redis():
    """AsyncMock Redis for tests that only assert on calls."""
    redis = AsyncMock()
    redis.lpush = AsyncMock()
    redis.ltrim = AsyncMock()
    return redis


# =============================================================================
# Key Material
# =============================================================================


@pytest.fixture(scope="session")
def rsa_keypair():
    """(private_pem, public_pem) for RS256."""
    return generate_keypair_pem(SignatureAlgorithm.RS256)


@pytest.fixture(scope="session")
def other_rsa_keypair():
    """An unrelated RSA keypair."""
    return generate_keypair_pem(SignatureAlgorithm.RS256)


@pytest.fixture(scope="session")
def ec_keypair():
    """(private_pem, public_pem) on P-256 for ES256."""
    return generate_keypair_pem(SignatureAlgorithm.ES256)


@pytest.fixture
def key_files(tmp_path, rsa_keypair, other_rsa_keypair):
    """Write the test keypairs to disk like deployed key files."""
    private_pem, public_pem = rsa_keypair
    paths = {
        "private": tmp_path / "jwtRS256.key",
        "public": tmp_path / "jwtRS256.key.pub",
        "invalid_public": tmp_path / "invalid.key.pub",
    }
    paths["private"].write_bytes(private_pem)
    paths["public"].write_bytes(public_pem)
    paths["invalid_public"].write_bytes(other_rsa_keypair[1])
    return paths


@pytest.fixture
def key_manager(rsa_keypair):
    """KeyManager initialized with the RS256 test keypair."""
    manager = KeyManager("RS256")
    manager.initialize(*rsa_keypair)
    return manager


# =============================================================================
# Wired Stack
# =============================================================================


@pytest.fixture
def hasher():
    return CredentialHasher(**TEST_HASH_COST)


@pytest.fixture
def user_store(fake_redis):
    return RedisUserStore(fake_redis)


@pytest.fixture
def auth_stack(key_manager, hasher, user_store, fake_redis):
    return AuthFactory.build_with(
        key_manager=key_manager,
        hasher=hasher,
        store=user_store,
        redis_client=fake_redis,
    )


@pytest.fixture
def client(auth_stack):
    """FastAPI TestClient over the wired stack."""
    with TestClient(create_app(stack=auth_stack)) as test_client:
        yield test_client


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Tests exercising the HTTP API end to end"
    )
