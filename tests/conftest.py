import copy
import os
import sys
from datetime import datetime, timedelta, timezone

# Allow running pytest from the repo root or from within `tests/`.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from cashier_codes import CashierCodeFlow, get_cashier_code_flow
from database import get_store
from errors import StoreError
from main import app


class MemoryStore:
    """In-memory stand-in for MongoStore; filters are plain field equality."""

    def __init__(self):
        self.collections = {}
        self.failing = set()

    def _docs(self, collection):
        return self.collections.setdefault(collection, [])

    def _check(self, op):
        if op in self.failing:
            raise StoreError(error=f"{op} failed: connection refused")

    @staticmethod
    def _matches(doc, filter):
        return all(doc.get(key) == value for key, value in (filter or {}).items())

    @staticmethod
    def _sorted(docs, sort):
        docs = list(docs)
        for field, direction in reversed(list(sort or [])):
            docs.sort(key=lambda d: d.get(field), reverse=direction < 0)
        return docs

    def find(self, collection, filter=None, sort=None):
        self._check("find")
        docs = [d for d in self._docs(collection) if self._matches(d, filter)]
        return copy.deepcopy(self._sorted(docs, sort))

    def find_one(self, collection, filter, sort=None):
        self._check("find_one")
        docs = self._sorted([d for d in self._docs(collection) if self._matches(d, filter)], sort)
        return copy.deepcopy(docs[0]) if docs else None

    def upsert(self, collection, filter, fields, on_insert=None):
        self._check("upsert")
        for doc in self._docs(collection):
            if self._matches(doc, filter):
                doc.update(copy.deepcopy(fields))
                return copy.deepcopy(doc)
        doc = {"_id": ObjectId(), **filter, **(on_insert or {}), **copy.deepcopy(fields)}
        self._docs(collection).append(doc)
        return copy.deepcopy(doc)

    def delete_one(self, collection, filter):
        self._check("delete_one")
        docs = self._docs(collection)
        for i, doc in enumerate(docs):
            if self._matches(doc, filter):
                del docs[i]
                return 1
        return 0

    def update_one(self, collection, filter, fields):
        self._check("update_one")
        for doc in self._docs(collection):
            if self._matches(doc, filter):
                doc.update(copy.deepcopy(fields))
                return 1
        return 0

    def insert_one(self, collection, document):
        self._check("insert_one")
        doc = {"_id": ObjectId(), **copy.deepcopy(document)}
        self._docs(collection).append(doc)
        return str(doc["_id"])

    def count(self, collection, filter=None):
        self._check("count")
        return sum(1 for d in self._docs(collection) if self._matches(d, filter))

    def collection_names(self):
        self._check("collection_names")
        return sorted(self.collections)


class FakeClock:

    def __init__(self, start=datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


class SequenceCodes:
    """Hands out the given codes in order, repeating the last one."""

    def __init__(self, *codes):
        self.codes = list(codes)

    def __call__(self):
        if len(self.codes) > 1:
            return self.codes.pop(0)
        return self.codes[0]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def codes():
    return SequenceCodes("482913", "551027", "730044")


@pytest.fixture
def flow(store, clock, codes):
    return CashierCodeFlow(store, now=clock, code_generator=codes)


@pytest.fixture
def client(store, flow):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_cashier_code_flow] = lambda: flow
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
