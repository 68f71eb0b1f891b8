# packlist/storage.py
"""
Persistence gateway: CRUD over the `products`, `hsCodes` and
`packingLists` collections.

Two interchangeable backends share one contract:
  - JsonFileStore: a single `db.json`, rewritten whole on every mutation
    (local / offline mode).
  - SqlDocumentStore: one row per document in SQL via packlist.db.

Documents are plain JSON-serialisable dicts. Failures are raised as
StoreError subclasses; the HTTP layer maps them to status codes.
"""
import copy
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from . import config, db

logger = logging.getLogger(__name__)

COLLECTIONS = ("products", "hsCodes", "packingLists")

# Collections whose documents must be unique on one field
UNIQUE_FIELDS = {"hsCodes": "code"}


class StoreError(Exception):
    """Base class for persistence failures."""


class NotFoundError(StoreError):
    pass


class DuplicateError(StoreError):
    pass


class ConflictError(StoreError):
    """The stored document changed since the caller read it."""


def new_id() -> str:
    return uuid.uuid4().hex


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise NotFoundError(f"Unknown collection: {collection}")


def _check_unique(collection: str, doc: Dict[str, Any], existing: List[Dict[str, Any]]) -> None:
    field = UNIQUE_FIELDS.get(collection)
    if not field:
        return
    value = doc.get(field)
    for other in existing:
        if other.get(field) == value and other.get("id") != doc.get("id"):
            raise DuplicateError(f"{field} '{value}' already exists")


def _check_version(current: Dict[str, Any], expected_updated_at: Optional[str]) -> None:
    if expected_updated_at is None:
        return
    if current.get("updatedAt") != expected_updated_at:
        raise ConflictError("Document was modified by someone else")


class DocumentStore:
    """CRUD contract shared by the storage backends."""

    def get_all(self, collection: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def get_by_id(self, collection: str, doc_id: str) -> Dict[str, Any]:
        raise NotImplementedError

    def create(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def update(
        self,
        collection: str,
        doc_id: str,
        doc: Dict[str, Any],
        expected_updated_at: Optional[str] = None,
    ) -> Dict[str, Any]:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError


class JsonFileStore(DocumentStore):
    def __init__(self, path: Path):
        self.path = Path(path)
        self._data = self._load_from_file()

    def _load_from_file(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Load all collections from the JSON file. A missing or corrupted file
        starts empty collections.
        """
        data: Dict[str, Any] = {}
        if self.path.exists():
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError):
                logger.exception("Error reading %s; starting with empty collections", self.path)
                data = {}
        if not isinstance(data, dict):
            data = {}
        return {name: list(data.get(name) or []) for name in COLLECTIONS}

    def _commit(self, data: Dict[str, List[Dict[str, Any]]]) -> None:
        # Swap the in-memory copy only after the file write succeeded
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as exc:
            logger.error("Failed to write %s: %s", self.path, exc)
            raise StoreError("File operation failed") from exc
        self._data = data

    def _index_of(self, collection: str, doc_id: str) -> int:
        for idx, doc in enumerate(self._data[collection]):
            if doc.get("id") == doc_id:
                return idx
        raise NotFoundError(f"{collection}/{doc_id} not found")

    def get_all(self, collection: str) -> List[Dict[str, Any]]:
        _check_collection(collection)
        return copy.deepcopy(self._data[collection])

    def get_by_id(self, collection: str, doc_id: str) -> Dict[str, Any]:
        _check_collection(collection)
        return copy.deepcopy(self._data[collection][self._index_of(collection, doc_id)])

    def create(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        _check_collection(collection)
        doc = {**copy.deepcopy(doc), "id": doc.get("id") or new_id()}
        _check_unique(collection, doc, self._data[collection])

        data = copy.deepcopy(self._data)
        data[collection].append(doc)
        self._commit(data)
        return copy.deepcopy(doc)

    def update(
        self,
        collection: str,
        doc_id: str,
        doc: Dict[str, Any],
        expected_updated_at: Optional[str] = None,
    ) -> Dict[str, Any]:
        _check_collection(collection)
        idx = self._index_of(collection, doc_id)
        _check_version(self._data[collection][idx], expected_updated_at)

        doc = {**copy.deepcopy(doc), "id": doc_id}
        _check_unique(collection, doc, self._data[collection])

        data = copy.deepcopy(self._data)
        data[collection][idx] = doc
        self._commit(data)
        return copy.deepcopy(doc)

    def delete(self, collection: str, doc_id: str) -> None:
        _check_collection(collection)
        idx = self._index_of(collection, doc_id)
        data = copy.deepcopy(self._data)
        del data[collection][idx]
        self._commit(data)


class SqlDocumentStore(DocumentStore):
    def __init__(self, database_url: Optional[str] = None):
        db.init_db(database_url)

    def _save(self, collection: str, doc_id: str, doc: Dict[str, Any]) -> None:
        try:
            db.save_document(collection, doc_id, doc)
        except SQLAlchemyError as exc:
            logger.error("Failed to save %s/%s: %s", collection, doc_id, exc)
            raise StoreError("Database write failed") from exc

    def get_all(self, collection: str) -> List[Dict[str, Any]]:
        _check_collection(collection)
        return db.list_documents(collection)

    def get_by_id(self, collection: str, doc_id: str) -> Dict[str, Any]:
        _check_collection(collection)
        doc = db.load_document(collection, doc_id)
        if doc is None:
            raise NotFoundError(f"{collection}/{doc_id} not found")
        return doc

    def create(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        _check_collection(collection)
        doc = {**copy.deepcopy(doc), "id": doc.get("id") or new_id()}
        if collection in UNIQUE_FIELDS:
            _check_unique(collection, doc, db.list_documents(collection))
        self._save(collection, doc["id"], doc)
        return doc

    def update(
        self,
        collection: str,
        doc_id: str,
        doc: Dict[str, Any],
        expected_updated_at: Optional[str] = None,
    ) -> Dict[str, Any]:
        current = self.get_by_id(collection, doc_id)
        _check_version(current, expected_updated_at)

        doc = {**copy.deepcopy(doc), "id": doc_id}
        if collection in UNIQUE_FIELDS:
            _check_unique(collection, doc, db.list_documents(collection))
        self._save(collection, doc_id, doc)
        return doc

    def delete(self, collection: str, doc_id: str) -> None:
        _check_collection(collection)
        if not db.delete_document(collection, doc_id):
            raise NotFoundError(f"{collection}/{doc_id} not found")


def open_store() -> DocumentStore:
    """
    SQL when DATABASE_URL is configured, the local JSON file otherwise.
    """
    if config.DATABASE_URL:
        logger.info("Using SQL document store")
        return SqlDocumentStore(config.DATABASE_URL)
    logger.info("Using JSON file store at %s", config.DATA_FILE)
    return JsonFileStore(config.DATA_FILE)
