import copy
import logging
import threading
import typing as ty

import pymongo
from pymongo.database import Database

from issuetracker.models import Issue


class IssueStore(ty.Protocol):
    """Persistence used by the issue operations.

    Documents are the JSON form of `Issue` (identifier under `_id`). Every
    lookup is scoped by project.
    """

    def insert(self, document: dict) -> None:
        ...

    def find_many(self, predicate: dict) -> ty.List[dict]:
        ...

    def find_one(self, project: str, uuid: str) -> ty.Optional[dict]:
        ...

    def update_one(self, project: str, uuid: str, patch: dict) -> bool:
        ...

    def delete_one(self, project: str, uuid: str) -> bool:
        ...


class MongoIssueStore:
    def __init__(self, db: Database) -> None:
        self.collection = db[Issue.__name__]

    def ensure_indexes(self) -> None:
        self.collection.create_index([("project", pymongo.ASCENDING)])

    def insert(self, document: dict) -> None:
        # insert_one mutates its argument
        self.collection.insert_one(dict(document))

    def find_many(self, predicate: dict) -> ty.List[dict]:
        return list(self.collection.find(predicate))

    def find_one(self, project: str, uuid: str) -> ty.Optional[dict]:
        return self.collection.find_one({"_id": uuid, "project": project})

    def update_one(self, project: str, uuid: str, patch: dict) -> bool:
        update_report = self.collection.update_one(
            {"_id": uuid, "project": project}, {"$set": patch}
        )
        return update_report.matched_count > 0

    def delete_one(self, project: str, uuid: str) -> bool:
        delete_report = self.collection.delete_one({"_id": uuid, "project": project})
        return delete_report.deleted_count > 0


class MemoryIssueStore:
    """Process-local store, kept in insertion order."""

    def __init__(self) -> None:
        self._documents: ty.List[dict] = []
        self._lock = threading.Lock()

    def insert(self, document: dict) -> None:
        with self._lock:
            self._documents.append(copy.deepcopy(document))

    def find_many(self, predicate: dict) -> ty.List[dict]:
        with self._lock:
            return [
                copy.deepcopy(document)
                for document in self._documents
                if _matches(document, predicate)
            ]

    def find_one(self, project: str, uuid: str) -> ty.Optional[dict]:
        found = self.find_many({"_id": uuid, "project": project})
        return found[0] if found else None

    def update_one(self, project: str, uuid: str, patch: dict) -> bool:
        with self._lock:
            for document in self._documents:
                if _matches(document, {"_id": uuid, "project": project}):
                    document.update(copy.deepcopy(patch))
                    return True
        return False

    def delete_one(self, project: str, uuid: str) -> bool:
        with self._lock:
            for index, document in enumerate(self._documents):
                if _matches(document, {"_id": uuid, "project": project}):
                    del self._documents[index]
                    return True
        return False


_MISSING = object()


def _matches(document: dict, predicate: dict) -> bool:
    return all(
        document.get(field, _MISSING) == value for field, value in predicate.items()
    )


def create_store(kind: str, db: ty.Optional[Database] = None) -> IssueStore:
    if kind == "memory":
        logging.warning("Using in-memory issue storage, data is lost on restart")
        return MemoryIssueStore()
    if kind == "mongo":
        if db is None:
            raise ValueError("Mongo storage requires a database")
        store = MongoIssueStore(db)
        store.ensure_indexes()
        return store
    raise ValueError(f"Unknown storage kind: {kind}")
