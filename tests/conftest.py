import copy
import itertools
import operator
from types import SimpleNamespace
from unittest.mock import MagicMock, Mock

import pytest
from fastapi.testclient import TestClient
from google.api_core import exceptions as gapi_exceptions

from app.main import app
from app.dependencies import get_travel_repository
from app.services.auth_service import AuthService, get_auth_service
from app.services.travel_repository import TravelRepository

TEST_SECRET = "test-secret"

_OPS = {
    "==": operator.eq,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


# ---------------------------
# In-memory Firestore
# ---------------------------
class FakeSnapshot:
    def __init__(self, ref, data, update_time=None):
        self.reference = ref
        self.id = ref.id
        self._data = data
        self.update_time = update_time

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, db, collection, doc_id):
        self._db = db
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self):
        return self._db.data.setdefault(self._collection, {})

    def get(self, field_paths=None):
        data = self._docs.get(self.id)
        if data is not None and field_paths is not None:
            data = {k: v for k, v in data.items() if k in field_paths}
        return FakeSnapshot(self, data, self._db.update_times.get((self._collection, self.id)))

    def _write(self, data):
        self._docs[self.id] = copy.deepcopy(data)
        self._db.update_times[(self._collection, self.id)] = next(self._db.clock)

    def create(self, data):
        if self.id in self._docs:
            raise gapi_exceptions.AlreadyExists(f"Document already exists: {self._collection}/{self.id}")
        self._write(data)

    def set(self, data, merge=False):
        if merge and self.id in self._docs:
            data = {**self._docs[self.id], **data}
        self._write(data)

    def update(self, data, option=None):
        if self.id not in self._docs:
            raise gapi_exceptions.NotFound(f"No document to update: {self._collection}/{self.id}")
        current = self._db.update_times.get((self._collection, self.id))
        if option is not None and option.last_update_time != current:
            raise gapi_exceptions.FailedPrecondition("the stored version does not match the required base version")
        self._write({**self._docs[self.id], **data})


class FakeQuery:
    def __init__(self, db, collection, filters=()):
        self._db = db
        self._collection = collection
        self._filters = tuple(filters)

    def where(self, *, filter):
        return FakeQuery(self._db, self._collection, self._filters + (filter,))

    def _matches(self, data):
        for f in self._filters:
            if f.field_path not in data:
                return False
            try:
                if not _OPS[f.op_string](data[f.field_path], f.value):
                    return False
            except TypeError:
                return False
        return True

    def stream(self):
        docs = self._db.data.get(self._collection, {})
        for doc_id in sorted(docs):
            if self._matches(docs[doc_id]):
                yield FakeDocumentRef(self._db, self._collection, doc_id).get()


class FakeCollection(FakeQuery):
    def document(self, doc_id):
        if not doc_id:
            raise ValueError("A document must have an even number of path elements")
        return FakeDocumentRef(self._db, self._collection, doc_id)


class FakeBatch:
    def __init__(self):
        self.writes = []
        self.commits = 0

    def set(self, ref, data):
        self.writes.append((ref, data))

    def commit(self):
        for ref, data in self.writes:
            ref.set(data)
        self.writes = []
        self.commits += 1


class FakeFirestore:
    def __init__(self):
        self.data = {}
        self.update_times = {}
        self.clock = itertools.count(1)
        self.batches = []

    def collection(self, name):
        return FakeCollection(self, name)

    def get_all(self, refs, field_paths=None):
        for ref in refs:
            yield ref.get(field_paths=field_paths)

    def write_option(self, **kwargs):
        return SimpleNamespace(**kwargs)

    def batch(self):
        batch = FakeBatch()
        self.batches.append(batch)
        return batch

    def seed(self, collection, docs):
        for doc_id, data in docs.items():
            self.collection(collection).document(doc_id).set(data)


# ---------------------------
# Fixtures
# ---------------------------
@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def fake_es():
    es = MagicMock()
    es.search.return_value = {"hits": {"hits": []}}
    return es


@pytest.fixture
def repository(fake_db, fake_es):
    return TravelRepository(fake_db, fake_es)


@pytest.fixture
def auth_service():
    return AuthService(secret=TEST_SECRET, algorithm="HS256")


@pytest.fixture
def mock_repo():
    return Mock(spec=TravelRepository)


@pytest.fixture
def client(mock_repo, auth_service):
    app.dependency_overrides[get_travel_repository] = lambda: mock_repo
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(auth_service):
    return {"Authorization": f"Bearer {auth_service.create_token('test_user')}"}
