"""Shared fixtures: an in-memory stand-in for the Motor client surface used by DataService."""

import copy
from types import SimpleNamespace

import pytest
from pymongo.errors import OperationFailure

from docstore.db import data_service as data_service_module
from docstore.db.data_service import DataService, reset_data_service

DB_NAME = "testdb"


def _get_path(doc, dotted):
    cur = doc
    for part in dotted.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _set_path(doc, dotted, value):
    parts = dotted.split(".")
    cur = doc
    for part in parts[:-1]:
        cur = cur.setdefault(part, {})
    cur[parts[-1]] = value


def _matches(doc, query):
    return all(_get_path(doc, k) == v for k, v in query.items())


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._limit = None

    def limit(self, n):
        self._limit = n
        return self

    async def __aiter__(self):
        docs = self._docs if self._limit is None else self._docs[: self._limit]
        for doc in docs:
            yield copy.deepcopy(doc)


class FakeCollection:
    def __init__(self, client, db_name, name):
        self._client = client
        self._db_name = db_name
        self.name = name

    @property
    def _docs(self):
        return self._client.data.setdefault(self._db_name, {}).setdefault(self.name, {})

    def _log(self, op, session):
        self._client.calls.append((op, self.name, session))

    def find(self, query=None):
        self._log("find", None)
        query = query or {}
        return FakeCursor([d for d in self._docs.values() if _matches(d, query)])

    async def find_one(self, query, session=None):
        self._log("find_one", session)
        doc = self._docs.get(query["_id"])
        return copy.deepcopy(doc) if doc is not None else None

    async def replace_one(self, query, replacement, upsert=False, session=None):
        self._log("replace_one", session)
        _id = query["_id"]
        if _id in self._docs or upsert:
            self._docs[_id] = {"_id": _id, **copy.deepcopy(replacement)}

    async def update_one(self, query, update, session=None):
        self._log("update_one", session)
        doc = self._docs.get(query["_id"])
        if doc is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        for field, value in update.get("$set", {}).items():
            _set_path(doc, field, copy.deepcopy(value))
        for field, spec in update.get("$addToSet", {}).items():
            current = _get_path(doc, field) or []
            for v in spec["$each"]:
                if v not in current:
                    current.append(v)
            _set_path(doc, field, current)
        for field, values in update.get("$pullAll", {}).items():
            current = _get_path(doc, field) or []
            _set_path(doc, field, [v for v in current if v not in values])
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def delete_one(self, query, session=None):
        self._log("delete_one", session)
        self._docs.pop(query["_id"], None)


class FakeDatabase:
    def __init__(self, client, name):
        self._client = client
        self.name = name

    def __getitem__(self, name):
        return FakeCollection(self._client, self.name, name)


class FakeTransaction:
    def __init__(self, session):
        self._client = session.client

    async def __aenter__(self):
        self._snapshot = copy.deepcopy(self._client.data)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None and self._client.fail_commit:
            self._rollback()
            raise OperationFailure("Transaction commit failed", code=251)
        if exc_type is not None:
            self._rollback()
        else:
            self._client.commits += 1
        return False

    def _rollback(self):
        self._client.data.clear()
        self._client.data.update(self._snapshot)


class FakeSession:
    def __init__(self, client):
        self.client = client

    def start_transaction(self):
        return FakeTransaction(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeMotorClient:
    def __init__(self):
        self.data = {}
        self.calls = []
        self.commits = 0
        self.fail_commit = False
        self.closed = False

    def __getitem__(self, name):
        return FakeDatabase(self, name)

    async def start_session(self):
        return FakeSession(self)

    def close(self):
        self.closed = True

    def seed(self, collection, docs):
        store = self.data.setdefault(DB_NAME, {}).setdefault(collection, {})
        for _id, doc in docs.items():
            store[_id] = {"_id": _id, **copy.deepcopy(doc)}

    def stored(self, collection, _id):
        return self.data.get(DB_NAME, {}).get(collection, {}).get(_id)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_client():
    return FakeMotorClient()


@pytest.fixture
def service(fake_client):
    return DataService(fake_client, DB_NAME)


@pytest.fixture
def patched_client_factory(monkeypatch):
    """Make credential-based construction hand out fake clients instead of Motor ones."""
    created = []

    def _factory(creds):
        client = FakeMotorClient()
        created.append((creds, client))
        return client

    monkeypatch.setattr(data_service_module, "create_async_mongo_client", _factory)
    reset_data_service()
    yield created
    reset_data_service()
