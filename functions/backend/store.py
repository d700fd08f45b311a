"""
Remote document store abstraction for Firestore and an in-memory test implementation.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Dict, Optional, Protocol

import firebase_admin
from firebase_admin import firestore_async
from google.api_core import exceptions as google_exceptions

from backend.identity import FirebaseAnonymousAuth, Identity

logger = logging.getLogger(__name__)


class ReadSource(StrEnum):
    """Read consistency for list_documents."""

    # Always answered by the backend.
    SERVER = "SERVER"
    # Answered by the backend when reachable, otherwise by the local replica.
    DEFAULT = "DEFAULT"


@dataclass(frozen=True)
class StoreDocument:
    id: str
    fields: dict = field(default_factory=dict)


class RemoteStore(Protocol):
    """Interface for the hosted document store."""

    async def authenticate_anonymously(self) -> Identity:
        ...

    def current_identity(self) -> Optional[Identity]:
        ...

    def sign_out(self) -> None:
        ...

    async def list_documents(
        self, collection: str, source: ReadSource = ReadSource.SERVER
    ) -> list[StoreDocument]:
        ...

    async def add_document(self, collection: str, fields: dict) -> str:
        ...

    async def update_document(
        self, collection: str, doc_id: str, fields: dict
    ) -> None:
        ...


class InMemoryRemoteStore:
    """
    Dict-backed store for development and tests.

    Mirrors the Firestore behaviours the repository relies on: generated
    document ids, list results ordered by id, NotFound on updating a missing
    document, and DEFAULT reads served from the last server read while
    offline. Failures can be queued per operation with fail_next().
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self.replicas: Dict[str, list[StoreDocument]] = {}
        self.failures: Dict[str, list[BaseException]] = {}
        self.offline = False
        self.identity: Optional[Identity] = None
        self.sign_in_count = 0

    def fail_next(
        self, operation: str, error: BaseException, times: int = 1
    ) -> None:
        """Make the next `times` calls of `operation` raise `error`."""
        self.failures.setdefault(operation, []).extend([error] * times)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.collections.clear()
        self.replicas.clear()
        self.failures.clear()
        self.offline = False
        self.identity = None
        self.sign_in_count = 0

    def _raise_if_failing(self, operation: str) -> None:
        queued = self.failures.get(operation)
        if queued:
            raise queued.pop(0)

    def _raise_if_offline(self) -> None:
        if self.offline:
            raise google_exceptions.ServiceUnavailable("Store is offline")

    async def authenticate_anonymously(self) -> Identity:
        self._raise_if_failing("authenticate_anonymously")
        self._raise_if_offline()
        self.sign_in_count += 1
        uid = uuid.uuid4().hex
        self.identity = Identity(uid=uid, id_token=f"in-memory-token-{uid}")
        return self.identity

    def current_identity(self) -> Optional[Identity]:
        return self.identity

    def sign_out(self) -> None:
        self.identity = None

    async def list_documents(
        self, collection: str, source: ReadSource = ReadSource.SERVER
    ) -> list[StoreDocument]:
        self._raise_if_failing("list_documents")
        if self.offline:
            if source is ReadSource.DEFAULT and collection in self.replicas:
                return list(self.replicas[collection])
            self._raise_if_offline()

        stored = self.collections.get(collection, {})
        documents = [
            StoreDocument(id=doc_id, fields=copy.deepcopy(stored[doc_id]))
            for doc_id in sorted(stored)
        ]
        self.replicas[collection] = documents
        return list(documents)

    async def add_document(self, collection: str, fields: dict) -> str:
        self._raise_if_failing("add_document")
        self._raise_if_offline()
        doc_id = uuid.uuid4().hex
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(fields)
        return doc_id

    async def update_document(
        self, collection: str, doc_id: str, fields: dict
    ) -> None:
        self._raise_if_failing("update_document")
        self._raise_if_offline()
        stored = self.collections.get(collection, {})
        if doc_id not in stored:
            raise google_exceptions.NotFound(
                f"No document to update: {collection}/{doc_id}"
            )
        stored[doc_id].update(copy.deepcopy(fields))


def _firestore_client(project_id: Optional[str]):
    try:
        app = firebase_admin.get_app()
    except ValueError:
        options = {"projectId": project_id} if project_id else None
        app = firebase_admin.initialize_app(options=options)
    return firestore_async.client(app)


class FirestoreRemoteStore:
    """
    Firestore-backed implementation using the async admin client.

    The server client has no offline cache, so this keeps the documents of
    the last successful read per collection and answers DEFAULT reads from
    them when the backend can't be reached.

    The admin client authenticates with service credentials and bypasses
    security rules. The anonymous Identity from authenticate_anonymously()
    is tracked for current_identity() but is not attached to Firestore calls.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        auth: Optional[FirebaseAnonymousAuth] = None,
        client=None,
    ):
        self._client = client if client is not None else _firestore_client(project_id)
        self._auth = auth or FirebaseAnonymousAuth(api_key=None)
        self._replicas: Dict[str, list[StoreDocument]] = {}

    async def authenticate_anonymously(self) -> Identity:
        # requests is blocking; keep it off the event loop.
        return await asyncio.to_thread(self._auth.sign_in_anonymously)

    def current_identity(self) -> Optional[Identity]:
        return self._auth.current_identity()

    def sign_out(self) -> None:
        self._auth.sign_out()

    async def list_documents(
        self, collection: str, source: ReadSource = ReadSource.SERVER
    ) -> list[StoreDocument]:
        try:
            snapshots = await self._client.collection(collection).get()
        except Exception as exc:
            if source is ReadSource.DEFAULT and collection in self._replicas:
                logger.warning(
                    "Serving %s from local replica after read failure: %s",
                    collection,
                    exc,
                )
                return list(self._replicas[collection])
            raise

        documents = [
            StoreDocument(id=snapshot.id, fields=snapshot.to_dict() or {})
            for snapshot in snapshots
        ]
        self._replicas[collection] = documents
        return list(documents)

    async def add_document(self, collection: str, fields: dict) -> str:
        _, doc_ref = await self._client.collection(collection).add(fields)
        return doc_ref.id

    async def update_document(
        self, collection: str, doc_id: str, fields: dict
    ) -> None:
        await self._client.collection(collection).document(doc_id).update(fields)
