"""Shared fixtures: environment, in-memory Redis, PDF builders, API client."""

import asyncio
import io
import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("ALLOWED_ORIGIN", "http://localhost:3000")

import fitz
import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from redis.exceptions import WatchError

from config import cache


def _b(v) -> bytes:
    if isinstance(v, (bytes, bytearray)):
        return bytes(v)
    return str(v).encode("utf-8")


class InMemoryRedis:
    """The slice of redis.asyncio.Redis the repositories use, bytes in / bytes out."""

    def __init__(self):
        self.values = {}
        self.sets = {}
        self.ttls = {}
        # WATCH compares these; every write to a key bumps it
        self.versions = {}

    def _bump(self, k):
        self.versions[k] = self.versions.get(k, 0) + 1

    async def ping(self):
        return True

    async def aclose(self):
        return None

    async def get(self, key):
        value = self.values.get(_b(key))
        # hand control back like a network round trip would
        await asyncio.sleep(0)
        return value

    async def set(self, key, value, ex=None, get=False):
        k = _b(key)
        previous = self.values.get(k)
        self.values[k] = _b(value)
        self._bump(k)
        if ex is not None:
            self.ttls[k] = ex
        return previous if get else True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            k = _b(key)
            if self.values.pop(k, None) is not None or self.sets.pop(k, None) is not None:
                removed += 1
            self.ttls.pop(k, None)
            self._bump(k)
        return removed

    async def expire(self, key, seconds):
        k = _b(key)
        if k in self.values or k in self.sets:
            self.ttls[k] = seconds
            self._bump(k)
            return True
        return False

    async def sadd(self, key, *members):
        s = self.sets.setdefault(_b(key), set())
        before = len(s)
        s.update(_b(m) for m in members)
        return len(s) - before

    async def srem(self, key, *members):
        s = self.sets.get(_b(key), set())
        removed = 0
        for m in members:
            if _b(m) in s:
                s.discard(_b(m))
                removed += 1
        return removed

    async def smembers(self, key):
        return set(self.sets.get(_b(key), set()))

    async def sismember(self, key, member):
        return _b(member) in self.sets.get(_b(key), set())

    def pipeline(self, transaction=True):
        return InMemoryPipeline(self)


class InMemoryPipeline:
    """WATCH / MULTI / EXEC over InMemoryRedis, enough for optimistic updates."""

    def __init__(self, store):
        self.store = store
        self.watched = {}
        self.queued = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.reset()

    async def reset(self):
        self.watched.clear()
        self.queued.clear()

    async def watch(self, *keys):
        for key in keys:
            k = _b(key)
            self.watched[k] = self.store.versions.get(k, 0)

    async def get(self, key):
        return await self.store.get(key)

    def multi(self):
        self.queued.clear()

    def set(self, key, value, ex=None):
        self.queued.append(("set", (key, value), {"ex": ex}))
        return self

    def delete(self, *keys):
        self.queued.append(("delete", keys, {}))
        return self

    async def execute(self):
        stale = [k for k, v in self.watched.items() if self.store.versions.get(k, 0) != v]
        if stale:
            await self.reset()
            raise WatchError("Watched variable changed.")
        results = [
            await getattr(self.store, name)(*args, **kwargs)
            for name, args, kwargs in self.queued
        ]
        await self.reset()
        return results


@pytest.fixture
def redis_store():
    store = InMemoryRedis()
    cache.use_redis(store)
    yield store
    cache.use_redis(None)


@pytest.fixture
def client(redis_store):
    from main import app
    from controller.controller_dependencies import rate_limiter

    app.dependency_overrides[rate_limiter] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def build_pdf(pages) -> bytes:
    """One PDF page per string; an empty string makes a blank page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def build_xlsx(header, rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(list(header))
    for row in rows:
        ws.append(list(row))
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def make_xlsx():
    return build_xlsx
