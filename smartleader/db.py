# smartleader/db.py
"""Backing-store access.

Two interchangeable stores share one small document contract:

    add(collection, data) -> key
    get(collection, key) -> dict | None
    update(collection, key, patch)
    delete(collection, key)
    stream(collection, where=None, order_by=None, descending=False)
        -> iterator of (key, dict); `where` is a (field, value) equality
    batch() -> object with set/update/delete/commit, all-or-nothing
    next_id(name) -> int, unique and increasing per name

`FirestoreStore` talks to Cloud Firestore. `MemoryStore` keeps everything in
process and is used when no project is configured, and by the tests.
"""
import copy
import threading
import uuid
from contextlib import contextmanager

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore import FieldFilter

from . import config
from .errors import NotFoundError, StoreError
from .utils import logger


@contextmanager
def _translate_errors():
    try:
        yield
    except gcp_exceptions.NotFound as e:
        raise NotFoundError(str(e)) from e
    except gcp_exceptions.GoogleAPICallError as e:
        raise StoreError(str(e)) from e


class FirestoreBatch:
    def __init__(self, client):
        self.client = client
        self._batch = client.batch()

    def _ref(self, collection, key=None):
        coll = self.client.collection(collection)
        return coll.document(key) if key else coll.document()

    def set(self, collection, key, data):
        ref = self._ref(collection, key)
        self._batch.set(ref, data)
        return ref.id

    def update(self, collection, key, patch):
        self._batch.update(self._ref(collection, key), patch)

    def delete(self, collection, key):
        self._batch.delete(self._ref(collection, key))

    def commit(self):
        with _translate_errors():
            self._batch.commit()


class FirestoreStore:
    """Document store on top of `google.cloud.firestore.Client`."""

    def __init__(self, client=None, project=None):
        self.client = client or firestore.Client(project=project)

    def add(self, collection, data):
        with _translate_errors():
            _, ref = self.client.collection(collection).add(data)
        return ref.id

    def get(self, collection, key):
        with _translate_errors():
            snapshot = self.client.collection(collection).document(key).get()
        return snapshot.to_dict() if snapshot.exists else None

    def update(self, collection, key, patch):
        with _translate_errors():
            self.client.collection(collection).document(key).update(patch)

    def delete(self, collection, key):
        with _translate_errors():
            self.client.collection(collection).document(key).delete()

    def stream(self, collection, where=None, order_by=None, descending=False):
        query = self.client.collection(collection)
        if where:
            field, value = where
            query = query.where(filter=FieldFilter(field, "==", value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        with _translate_errors():
            for snapshot in query.stream():
                yield snapshot.id, snapshot.to_dict()

    def batch(self):
        return FirestoreBatch(self.client)

    def next_id(self, name):
        ref = self.client.collection(config.COUNTERS_COLLECTION).document(name)

        @firestore.transactional
        def _increment(transaction):
            snapshot = ref.get(transaction=transaction)
            value = (snapshot.to_dict() or {}).get("value", 0) + 1
            transaction.set(ref, {"value": value})
            return value

        with _translate_errors():
            return _increment(self.client.transaction())


class MemoryBatch:
    def __init__(self, store):
        self.store = store
        self._ops = []

    def set(self, collection, key, data):
        key = key or uuid.uuid4().hex
        self._ops.append(("set", collection, key, copy.deepcopy(data)))
        return key

    def update(self, collection, key, patch):
        self._ops.append(("update", collection, key, copy.deepcopy(patch)))

    def delete(self, collection, key):
        self._ops.append(("delete", collection, key, None))

    def commit(self):
        with self.store._lock:
            # validate everything before applying anything
            for op, collection, key, _ in self._ops:
                if op == "update" and key not in self.store._collection(collection):
                    raise NotFoundError(f"No document to update: {collection}/{key}")
            for op, collection, key, data in self._ops:
                docs = self.store._collection(collection)
                if op == "set":
                    docs[key] = data
                elif op == "update":
                    docs[key].update(data)
                else:
                    docs.pop(key, None)
        self._ops = []


class MemoryStore:
    """Process-local store with the same contract as `FirestoreStore`."""

    def __init__(self):
        self._data = {}
        self._counters = {}
        self._lock = threading.RLock()

    def _collection(self, collection):
        return self._data.setdefault(collection, {})

    def add(self, collection, data):
        key = uuid.uuid4().hex
        with self._lock:
            self._collection(collection)[key] = copy.deepcopy(data)
        return key

    def get(self, collection, key):
        with self._lock:
            data = self._collection(collection).get(key)
            return copy.deepcopy(data) if data is not None else None

    def update(self, collection, key, patch):
        with self._lock:
            docs = self._collection(collection)
            if key not in docs:
                raise NotFoundError(f"No document to update: {collection}/{key}")
            docs[key].update(copy.deepcopy(patch))

    def delete(self, collection, key):
        with self._lock:
            self._collection(collection).pop(key, None)

    def stream(self, collection, where=None, order_by=None, descending=False):
        with self._lock:
            items = [(k, copy.deepcopy(v)) for k, v in self._collection(collection).items()]
        if where:
            field, value = where
            items = [(k, v) for k, v in items if v.get(field) == value]
        if order_by:
            # Firestore leaves out documents lacking the ordering field
            items = [(k, v) for k, v in items if v.get(order_by) is not None]
            items.sort(key=lambda item: item[1][order_by], reverse=descending)
        yield from items

    def batch(self):
        return MemoryBatch(self)

    def next_id(self, name):
        with self._lock:
            value = self._counters.get(name, 0) + 1
            self._counters[name] = value
            return value


_store = None


def create_store(backend=None):
    backend = (backend or config.STORE_BACKEND).lower()
    if backend == "memory":
        logger.warning("Using in-memory store; data will not survive a restart")
        return MemoryStore()
    if backend == "firestore":
        if not config.FIRESTORE_PROJECT_ID:
            raise RuntimeError("FIRESTORE_PROJECT_ID not set")
        logger.info("Firestore client initialized for project: %s", config.FIRESTORE_PROJECT_ID)
        return FirestoreStore(project=config.FIRESTORE_PROJECT_ID)
    raise RuntimeError(f"Unknown STORE_BACKEND {backend!r}")


def get_store():
    global _store
    if _store is None:
        _store = create_store()
    return _store


def get_db():
    yield get_store()
