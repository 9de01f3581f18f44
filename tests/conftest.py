"""Test fixtures: in-memory collections and canned Firebase tokens.

The real guard, access policy, handlers and MongoDBService run in every API
test. Only the two external collaborators are replaced:

1. The Mongo database is a small in-memory double that understands the
   operations MongoDBService issues (equality and $or filters, sort, limit,
   $set updates and $setOnInsert upserts).
2. firebase_admin.auth.verify_id_token is patched to map a few known tokens
   to claims and reject everything else the way Firebase does.
"""

import copy
from types import SimpleNamespace

import pytest
import pytest_asyncio
from bson import ObjectId
from firebase_admin import auth
from httpx import ASGITransport, AsyncClient

from main import app
from rentwheels.api.deps import get_auth_service, get_db_service
from rentwheels.core.config import Settings, get_settings
from rentwheels.services.auth_service import FirebaseAuthService
from rentwheels.services.database_service import MongoDBService


ADMIN_EMAIL = "admin@rentwheels.io"
RENTER_EMAIL = "renter@rentwheels.io"
PROVIDER_EMAIL = "provider@rentwheels.io"

TOKENS = {
    "admin-token": {"uid": "uid-admin", "email": ADMIN_EMAIL},
    "renter-token": {"uid": "uid-renter", "email": RENTER_EMAIL},
    "provider-token": {"uid": "uid-provider", "email": PROVIDER_EMAIL},
    "phone-only-token": {"uid": "uid-phone", "phone_number": "+15550100"},
}


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


# ═══════════════════════════════════════════════════════════
# In-memory Mongo double
# ═══════════════════════════════════════════════════════════


def _matches(document, query):
    for key, expected in query.items():
        if key == "$or":
            if not any(_matches(document, clause) for clause in expected):
                return False
        elif document.get(key) != expected:
            return False
    return True


def _sort_key(field):
    # Missing values sort first, as in MongoDB
    return lambda doc: (doc.get(field) is not None, doc.get(field))


class FakeCursor:
    def __init__(self, documents):
        self._documents = documents
        self._limit = None

    def sort(self, key_or_list, direction=None):
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction or 1)]
        for field, order in reversed(keys):
            self._documents.sort(key=_sort_key(field), reverse=order < 0)
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        documents = self._documents[: self._limit] if self._limit else self._documents
        return [copy.deepcopy(doc) for doc in documents]


class FakeCollection:
    def __init__(self):
        self.documents = []
        self.indexes = []
        self.fail_with = None

    def seed(self, **fields):
        document = {"_id": ObjectId(), **fields}
        self.documents.append(document)
        return str(document["_id"])

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def find(self, query=None):
        self._check()
        return FakeCursor([doc for doc in self.documents if _matches(doc, query or {})])

    async def find_one(self, query):
        self._check()
        for doc in self.documents:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, document):
        self._check()
        stored = copy.deepcopy(document)
        stored.setdefault("_id", ObjectId())
        self.documents.append(stored)
        return SimpleNamespace(acknowledged=True, inserted_id=stored["_id"])

    async def update_one(self, query, update, upsert=False):
        self._check()
        for doc in self.documents:
            if _matches(doc, query):
                changes = {k: v for k, v in update.get("$set", {}).items() if doc.get(k, object()) != v}
                doc.update(changes)
                return SimpleNamespace(
                    acknowledged=True, matched_count=1, modified_count=1 if changes else 0, upserted_id=None
                )
        if upsert:
            stored = {k: v for k, v in query.items() if not k.startswith("$")}
            stored.update(copy.deepcopy(update.get("$setOnInsert", {})))
            stored.update(copy.deepcopy(update.get("$set", {})))
            stored["_id"] = ObjectId()
            self.documents.append(stored)
            return SimpleNamespace(acknowledged=True, matched_count=0, modified_count=0, upserted_id=stored["_id"])
        return SimpleNamespace(acknowledged=True, matched_count=0, modified_count=0, upserted_id=None)

    async def create_index(self, keys, unique=False):
        self.indexes.append((keys, unique))
        return f"{keys}_1"

    async def delete_one(self, query):
        self._check()
        for index, doc in enumerate(self.documents):
            if _matches(doc, query):
                del self.documents[index]
                return SimpleNamespace(acknowledged=True, deleted_count=1)
        return SimpleNamespace(acknowledged=True, deleted_count=0)


class FakeDatabase:
    name = "rentWheelsTest"

    def __init__(self):
        self.collections = {}
        self.ping_error = None

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())

    async def command(self, name):
        if self.ping_error is not None:
            raise self.ping_error
        return {"ok": 1.0}


# ═══════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════


def _fake_verify_id_token(token, app=None, check_revoked=False):
    if token not in TOKENS:
        raise auth.InvalidIdTokenError("Could not verify token signature.")
    return dict(TOKENS[token])


@pytest.fixture(autouse=True)
def fake_firebase(monkeypatch):
    monkeypatch.setattr(auth, "verify_id_token", _fake_verify_id_token)


@pytest.fixture()
def settings():
    return Settings(LOG_RICH=False, FEATURED_CARS_LIMIT=6, ENFORCE_CAR_OWNERSHIP=False)


@pytest.fixture()
def fake_db():
    return FakeDatabase()


@pytest.fixture()
def db_service(fake_db):
    return MongoDBService(fake_db)


@pytest_asyncio.fixture()
async def client(db_service, settings):
    """HTTP client running the real app against the in-memory database."""
    app.dependency_overrides[get_db_service] = lambda: db_service
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_auth_service] = lambda: FirebaseAuthService(settings)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
