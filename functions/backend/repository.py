"""
Study spot repository: the only code that talks to the remote store.

Every method returns a RepositoryResult and never raises. A failed call still
yields False for writes and an empty list for reads, with a classified error
attached for callers that want it.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

from backend.errors import classify_exception, describe_exception
from backend.identity import Identity
from backend.store import ReadSource, RemoteStore, StoreDocument
from shared.firebase_constants import STUDY_SPOTS_COLLECTION
from shared.results import RepositoryResult
from shared.study_spot import (
    MalformedSpotDocument,
    StudySpot,
    new_spot_fields,
    status_update_fields,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 10.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SpotRepository:
    def __init__(
        self,
        store: RemoteStore,
        collection: str = STUDY_SPOTS_COLLECTION,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        seed_spot_names: Optional[list[str]] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.store = store
        self.collection = collection
        self.timeout_seconds = timeout_seconds
        self.seed_spot_names = list(seed_spot_names or [])
        self._clock = clock

    async def _call(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)

    def current_identity(self) -> Optional[Identity]:
        return self.store.current_identity()

    def is_authenticated(self) -> bool:
        authenticated = self.store.current_identity() is not None
        logger.debug("User authentication status: %s", authenticated)
        return authenticated

    def sign_out(self) -> None:
        self.store.sign_out()
        logger.info("Signed out anonymous identity")

    async def ensure_identity(self) -> RepositoryResult[bool]:
        """
        Establishes an anonymous identity unless one already exists.

        A failed sign-in is not fatal: callers should carry on without an
        identity and let the store's rules decide what is allowed.
        """
        if self.store.current_identity() is not None:
            return RepositoryResult.success(True)
        try:
            identity = await self._call(self.store.authenticate_anonymously())
        except Exception as exc:
            kind = classify_exception(exc)
            logger.warning("Anonymous auth failed (%s): %s", kind, exc)
            return RepositoryResult.failure(False, kind, describe_exception(exc))
        logger.info("Anonymous identity established: %s", identity.uid)
        return RepositoryResult.success(True)

    async def list_spots(self) -> RepositoryResult[list[StudySpot]]:
        """
        Reads every spot, preferring a server read over the local replica.

        Documents that can't be normalized are skipped. If both reads fail the
        value is an empty list and the error of the last attempt is attached.
        An empty read from either source seeds the collection when seed names
        are configured.
        """
        logger.info("Fetching study spots from %s", self.collection)
        try:
            documents = await self._call(
                self.store.list_documents(self.collection, ReadSource.SERVER)
            )
        except Exception as server_exc:
            logger.warning("SERVER read failed: %s; falling back to DEFAULT", server_exc)
            try:
                documents = await self._call(
                    self.store.list_documents(self.collection, ReadSource.DEFAULT)
                )
            except Exception as exc:
                kind = classify_exception(exc)
                logger.error("Failed to read study spots (%s): %s", kind, exc)
                return RepositoryResult.failure([], kind, describe_exception(exc))

        if not documents and self.seed_spot_names:
            await self._seed_collection()

        spots = self._normalize(documents)
        logger.info("Fetched %d study spots", len(spots))
        return RepositoryResult.success(spots)

    def _normalize(self, documents: list[StoreDocument]) -> list[StudySpot]:
        spots = []
        for document in documents:
            try:
                spots.append(StudySpot.from_document(document.id, document.fields))
            except MalformedSpotDocument as exc:
                logger.warning("Skipping document %s: %s", document.id, exc)
        return spots

    async def _seed_collection(self) -> None:
        # The empty read is still returned; seeded spots show up on the next fetch.
        logger.warning(
            "Collection %s is empty, seeding %d spots",
            self.collection,
            len(self.seed_spot_names),
        )
        for name in self.seed_spot_names:
            result = await self.create_spot(name)
            if not result:
                logger.error("Failed to seed spot %s: %s", name, result.error)

    async def create_spot(self, spot_name: str) -> RepositoryResult[bool]:
        fields = new_spot_fields(spot_name, self._clock())
        try:
            doc_id = await self._call(
                self.store.add_document(self.collection, fields)
            )
        except Exception as exc:
            kind = classify_exception(exc)
            logger.error("Failed to create study spot %s (%s): %s", spot_name, kind, exc)
            return RepositoryResult.failure(False, kind, describe_exception(exc))
        logger.info("Created study spot %s with id %s", spot_name, doc_id)
        return RepositoryResult.success(True)

    async def update_status(self, spot_id: str, status: str) -> RepositoryResult[bool]:
        """
        Writes a new status for an existing spot.

        The status is not checked against the known values. Updating a spot
        that doesn't exist fails with ErrorKind.NOT_FOUND.
        """
        fields = status_update_fields(status, self._clock())
        try:
            await self._call(
                self.store.update_document(self.collection, spot_id, fields)
            )
        except Exception as exc:
            kind = classify_exception(exc)
            logger.error(
                "Failed to update spot %s to %r (%s): %s", spot_id, status, kind, exc
            )
            return RepositoryResult.failure(False, kind, describe_exception(exc))
        logger.info("Updated status for spot %s to %r", spot_id, status)
        return RepositoryResult.success(True)
