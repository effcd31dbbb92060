"""Document persistence.

The service layer reads and writes plain JSON-compatible dictionaries
grouped into named collections, the same shape Firestore uses. Two
backends implement the interface:

* ``MemoryStore`` keeps everything in process memory. State resets
  whenever the server restarts; it is what local development and the
  test-suite run on.
* ``FirestoreStore`` talks to Cloud Firestore through ``firebase_admin``.

Both support batched writes. A batch collects ``set``/``update``/
``delete`` operations and applies them together on ``commit()``: either
every operation lands or none does. A batch may also ``require`` that a
document field still holds one of a set of values; the requirement is
checked as part of the commit, so a concurrent writer that got there
first makes the commit fail with ``PreconditionFailed`` instead of
being overwritten.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
import uuid
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from .config import Settings

logger = logging.getLogger(__name__)

PROJECTS = "projects"
INVOICES = "invoices"
PAYMENTS = "payments"
MESSAGES = "messages"
PROJECT_REQUESTS = "project_requests"
TEAM_MEMBERS = "team_members"
EVENTS = "events"
SITE_CONTENT = "site_content"
SERVICES = "services"
PRICING_TIERS = "pricing_tiers"
PORTFOLIO_ITEMS = "portfolio_items"

Filter = Tuple[str, str, Any]

SUPPORTED_OPERATORS = ("==", "in")


class DocumentNotFound(KeyError):
    """Raised when an update or batch targets a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id}")
        self.collection = collection
        self.doc_id = doc_id


class PreconditionFailed(Exception):
    """Raised when a batch requirement no longer holds at commit time."""

    def __init__(self, collection: str, doc_id: str, field: str, actual: Any):
        super().__init__(f"{collection}/{doc_id}: {field} is {actual!r}")
        self.collection = collection
        self.doc_id = doc_id
        self.field = field
        self.actual = actual


Check = Tuple[str, str, str, FrozenSet[Any]]


class WriteBatch:
    """Collects write operations to be applied atomically."""

    def __init__(self):
        self._ops: List[Tuple[str, str, str, Optional[Dict[str, Any]]]] = []
        self._checks: List[Check] = []

    def require(self, collection: str, doc_id: str, field: str, allowed: Iterable[Any]) -> "WriteBatch":
        """Only commit if ``field`` of the document is one of ``allowed``."""
        self._checks.append((collection, doc_id, field, frozenset(allowed)))
        return self

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        self._ops.append(("set", collection, doc_id, data))
        return self

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> "WriteBatch":
        self._ops.append(("update", collection, doc_id, fields))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self._ops.append(("delete", collection, doc_id, None))
        return self

    def __len__(self) -> int:
        return len(self._ops)

    def commit(self) -> None:
        raise NotImplementedError


class DocumentStore:
    """Interface shared by the storage backends."""

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def list(
        self,
        collection: str,
        where: Optional[Sequence[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        """Return matching documents, each with its ``id`` merged in."""
        raise NotImplementedError

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError

    def batch(self) -> WriteBatch:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# In-memory backend


def _matches(doc: Dict[str, Any], where: Iterable[Filter]) -> bool:
    for field, op, value in where:
        if op == "==":
            if doc.get(field) != value:
                return False
        elif op == "in":
            if doc.get(field) not in value:
                return False
        else:
            raise ValueError(f"Unsupported operator: {op}")
    return True


def _sort_key(value: Any):
    # Missing values sort first, like Firestore ordering nulls before strings
    return (value is not None, value if value is not None else "")


class _MemoryBatch(WriteBatch):
    def __init__(self, store: "MemoryStore"):
        super().__init__()
        self._store = store

    def commit(self) -> None:
        self._store._apply(self._ops, self._checks)


class MemoryStore(DocumentStore):
    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def get(self, collection, doc_id):
        with self._lock:
            doc = self._collection(collection).get(doc_id)
            if doc is None:
                return None
            return {"id": doc_id, **copy.deepcopy(doc)}

    def list(self, collection, where=None, order_by=None, descending=False):
        with self._lock:
            docs = [
                {"id": doc_id, **copy.deepcopy(doc)}
                for doc_id, doc in self._collection(collection).items()
                if _matches(doc, where or [])
            ]
        if order_by:
            docs.sort(key=lambda d: _sort_key(d.get(order_by)), reverse=descending)
        return docs

    def add(self, collection, data):
        doc_id = uuid.uuid4().hex[:20]
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection, doc_id, data):
        with self._lock:
            self._collection(collection)[doc_id] = _strip_id(data)

    def update(self, collection, doc_id, fields):
        self._apply([("update", collection, doc_id, fields)])

    def delete(self, collection, doc_id):
        with self._lock:
            self._collection(collection).pop(doc_id, None)

    def batch(self) -> WriteBatch:
        return _MemoryBatch(self)

    def _apply(self, ops, checks=()) -> None:
        with self._lock:
            # Validate first so a failing operation leaves nothing half-written
            for collection, doc_id, field, allowed in checks:
                doc = self._collection(collection).get(doc_id)
                if doc is None:
                    raise DocumentNotFound(collection, doc_id)
                if doc.get(field) not in allowed:
                    raise PreconditionFailed(collection, doc_id, field, doc.get(field))
            for kind, collection, doc_id, _ in ops:
                if kind == "update" and doc_id not in self._collection(collection):
                    raise DocumentNotFound(collection, doc_id)
            for kind, collection, doc_id, data in ops:
                docs = self._collection(collection)
                if kind == "set":
                    docs[doc_id] = _strip_id(data)
                elif kind == "update":
                    docs[doc_id].update(_strip_id(data))
                else:
                    docs.pop(doc_id, None)


def _strip_id(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in data.items() if k != "id"}


# ---------------------------------------------------------------------------
# Firestore backend


class _FirestoreBatch(WriteBatch):
    def __init__(self, client):
        super().__init__()
        self._client = client

    def commit(self) -> None:
        try:
            if self._checks:
                self._commit_in_transaction()
            else:
                batch = self._client.batch()
                self._stage(batch)
                batch.commit()
        except google_exceptions.NotFound as exc:
            raise DocumentNotFound("batch", str(exc)) from exc

    def _stage(self, writer) -> None:
        for kind, collection, doc_id, data in self._ops:
            ref = self._client.collection(collection).document(doc_id)
            if kind == "set":
                writer.set(ref, _strip_id(data))
            elif kind == "update":
                writer.update(ref, _strip_id(data))
            else:
                writer.delete(ref)

    def _commit_in_transaction(self) -> None:
        # Reads inside the transaction lock the documents until commit and
        # the whole function is retried on contention.
        @firestore.transactional
        def apply(transaction):
            for collection, doc_id, field, allowed in self._checks:
                snapshot = self._client.collection(collection).document(doc_id).get(transaction=transaction)
                if not snapshot.exists:
                    raise DocumentNotFound(collection, doc_id)
                actual = (snapshot.to_dict() or {}).get(field)
                if actual not in allowed:
                    raise PreconditionFailed(collection, doc_id, field, actual)
            self._stage(transaction)

        apply(self._client.transaction())


class FirestoreStore(DocumentStore):
    def __init__(self, client):
        self._client = client

    def get(self, collection, doc_id):
        snapshot = self._client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return {"id": snapshot.id, **(snapshot.to_dict() or {})}

    def list(self, collection, where=None, order_by=None, descending=False):
        query = self._client.collection(collection)
        for field, op, value in where or []:
            if op not in SUPPORTED_OPERATORS:
                raise ValueError(f"Unsupported operator: {op}")
            query = query.where(filter=FieldFilter(field, op, value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        return [{"id": snap.id, **(snap.to_dict() or {})} for snap in query.stream()]

    def add(self, collection, data):
        _, ref = self._client.collection(collection).add(_strip_id(data))
        return ref.id

    def set(self, collection, doc_id, data):
        self._client.collection(collection).document(doc_id).set(_strip_id(data))

    def update(self, collection, doc_id, fields):
        try:
            self._client.collection(collection).document(doc_id).update(_strip_id(fields))
        except google_exceptions.NotFound as exc:
            raise DocumentNotFound(collection, doc_id) from exc

    def delete(self, collection, doc_id):
        self._client.collection(collection).document(doc_id).delete()

    def batch(self) -> WriteBatch:
        return _FirestoreBatch(self._client)


def init_firestore_client(settings: Settings):
    """Initialise the default Firebase app and return a Firestore client.

    Credentials are taken from an inline JSON service account, a path to
    one, or Application Default Credentials, in that order.
    """
    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else {}
    if not firebase_admin._apps:
        if settings.firebase_credentials_json:
            creds = json.loads(settings.firebase_credentials_json)
            if not options and creds.get("project_id"):
                options = {"projectId": creds["project_id"]}
            firebase_admin.initialize_app(credentials.Certificate(creds), options)
        elif settings.firebase_credentials_path:
            firebase_admin.initialize_app(credentials.Certificate(settings.firebase_credentials_path), options)
        else:
            firebase_admin.initialize_app(credentials.ApplicationDefault(), options)
    client = firestore.client()
    logger.info("Firestore client initialized. project=%s", getattr(client, "project", None))
    return client


def create_store(settings: Settings) -> DocumentStore:
    if settings.store_backend == "firestore":
        try:
            return FirestoreStore(init_firestore_client(settings))
        except Exception:
            logger.exception("Firestore not configured or failed to initialize; using in-memory store")
            return MemoryStore()
    if settings.store_backend != "memory":
        logger.warning("Unknown store backend %r; using in-memory store", settings.store_backend)
    logger.warning("Using in-memory document store. All data resets when the process restarts.")
    return MemoryStore()
