"""
In-memory stand-ins for the Motor database and the asyncio Redis client.
They implement only the calls the repositories and services make.
"""
import copy
from types import SimpleNamespace

import pytest
from pymongo.errors import PyMongoError


def _matches(doc, filt):
    for key, cond in (filt or {}).items():
        if isinstance(cond, dict) and "$in" in cond:
            if doc.get(key) not in cond["$in"]:
                return False
        elif doc.get(key) != cond:
            return False
    return True


def _project(doc, projection):
    out = copy.deepcopy(doc)
    if projection and projection.get("_id") == 0:
        out.pop("_id", None)
    return out


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def __aiter__(self):
        self._it = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._it)
        except StopIteration:
            raise StopAsyncIteration

    async def to_list(self, length=None):
        return list(self._docs)


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.docs = []
        self.bulk_calls = 0
        self.fail_writes = False
        self._next_id = 0

    def _apply(self, filt, update, upsert):
        for doc in self.docs:
            if _matches(doc, filt):
                doc.update(copy.deepcopy(update.get("$set", {})))
                return "modified"
        if not upsert:
            return None
        self._next_id += 1
        new = {"_id": self._next_id}
        new.update({k: v for k, v in filt.items() if not isinstance(v, dict)})
        new.update(copy.deepcopy(update.get("$setOnInsert", {})))
        new.update(copy.deepcopy(update.get("$set", {})))
        self.docs.append(new)
        return "upserted"

    def find(self, filt=None, projection=None):
        return FakeCursor([_project(d, projection) for d in self.docs if _matches(d, filt)])

    async def find_one(self, filt=None, projection=None):
        for d in self.docs:
            if _matches(d, filt):
                return _project(d, projection)
        return None

    async def count_documents(self, filt):
        return sum(1 for d in self.docs if _matches(d, filt))

    async def update_one(self, filt, update, upsert=False):
        if self.fail_writes:
            raise PyMongoError("write refused")
        outcome = self._apply(filt, update, upsert)
        return SimpleNamespace(
            matched_count=1 if outcome == "modified" else 0,
            modified_count=1 if outcome == "modified" else 0,
            upserted_id=self._next_id if outcome == "upserted" else None,
        )

    async def bulk_write(self, ops, ordered=True):
        self.bulk_calls += 1
        if self.fail_writes:
            raise PyMongoError("bulk write refused")
        upserted = modified = 0
        for op in ops:
            # pymongo UpdateOne keeps its arguments on these attributes
            outcome = self._apply(op._filter, op._doc, op._upsert)
            upserted += outcome == "upserted"
            modified += outcome == "modified"
        return SimpleNamespace(upserted_count=upserted, modified_count=modified)

    async def create_index(self, *args, **kwargs):
        return "ok"


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    async def command(self, *args, **kwargs):
        return {"ok": 1}


class FakeScript:
    """Only the lock's compare-and-delete script is emulated."""

    def __init__(self, redis, source):
        self.redis = redis
        self.source = source
        self.calls = 0

    async def __call__(self, keys=None, args=None):
        self.calls += 1
        key, token = keys[0], args[0]
        if self.redis.store.get(key) == token:
            return await self.redis.delete(key)
        return 0


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.scripts = []

    def register_script(self, source):
        script = FakeScript(self, source)
        self.scripts.append(script)
        return script

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        n = 0
        for k in keys:
            if self.store.pop(k, None) is not None:
                n += 1
        return n

    async def exists(self, key):
        return int(key in self.store)

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def fake_redis():
    return FakeRedis()
