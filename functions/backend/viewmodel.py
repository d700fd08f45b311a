"""
View-model for the study spot list.

Sequences repository calls and owns the observable state. After a create or
status update the list is always reloaded from the store; the local list is
never patched.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Coroutine, Optional

from backend.repository import SpotRepository
from backend.state import ObservableState, StudySpotsState
from shared.results import RepositoryError

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to load study spots"
CREATE_FAILED_MESSAGE = "Failed to create new study spot"
UPDATE_FAILED_MESSAGE = "Failed to update spot status"


class StudySpotViewModel:
    """
    Single writer of the study spot state.

    Must be constructed inside a running event loop when autoload is on; the
    initial fetch is scheduled immediately.

    Concurrent fetches are ordered by when they were issued: a result is
    dropped if a fetch issued later has already been applied. is_loading stays
    true until every running operation has finished.
    """

    def __init__(
        self,
        repository: SpotRepository,
        state: Optional[ObservableState] = None,
        autoload: bool = True,
    ):
        self.repository = repository
        self.state = state or ObservableState()
        self._writer = self.state.claim_writer()
        self._in_flight = 0
        self._fetch_generation = 0
        self._applied_generation = 0
        self._tasks: set[asyncio.Task] = set()
        if autoload:
            logger.debug("Fetching spots on startup")
            self.launch(self.fetch_spots())

    @property
    def snapshot(self) -> StudySpotsState:
        return self.state.value

    def launch(self, coro: Coroutine) -> asyncio.Task:
        """Runs an intent in the background, the way UI callbacks dispatch work."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Waits for every launched intent, including ones launched meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @asynccontextmanager
    async def _loading(self):
        self._in_flight += 1
        self._writer.set_loading(True)
        try:
            yield
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._writer.set_loading(False)

    def _fail(self, message: str, error: Optional[RepositoryError]) -> None:
        if error is not None:
            message = f"{message}: {error.message}"
        self._writer.set_error(message, error.kind if error else None)
        logger.error(message)

    async def fetch_spots(self) -> bool:
        """Reloads the whole list. Returns True if the list was read."""
        self._fetch_generation += 1
        generation = self._fetch_generation
        async with self._loading():
            self._writer.clear_error()
            try:
                identity = await self.repository.ensure_identity()
                if not identity:
                    logger.warning(
                        "Anonymous sign-in failed, fetching without auth: %s",
                        identity.error,
                    )
                result = await self.repository.list_spots()
            except Exception as exc:
                logger.exception("Error fetching study spots")
                if self._is_stale(generation):
                    return False
                self._applied_generation = generation
                self._writer.set_error(f"{FETCH_FAILED_MESSAGE}: {exc}")
                return False

            if self._is_stale(generation):
                return result.ok
            self._applied_generation = generation

            if not result:
                self._fail(FETCH_FAILED_MESSAGE, result.error)
                return False
            if not result.value:
                logger.warning("Received empty list of study spots")
            self._writer.replace_spots(result.value)
            return True

    def _is_stale(self, generation: int) -> bool:
        if generation >= self._applied_generation:
            return False
        logger.debug(
            "Dropping fetch %d, fetch %d already applied",
            generation,
            self._applied_generation,
        )
        return True

    async def create_spot(self, spot_name: str) -> bool:
        async with self._loading():
            try:
                result = await self.repository.create_spot(spot_name)
            except Exception as exc:
                logger.exception("Error creating study spot %s", spot_name)
                self._writer.set_error(f"Error: {exc}")
                return False
            if not result:
                self._fail(CREATE_FAILED_MESSAGE, result.error)
                return False
            logger.info("Created study spot %s, refreshing", spot_name)
            await self.fetch_spots()
            return True

    async def update_status(self, spot_id: str, status: str) -> bool:
        async with self._loading():
            try:
                result = await self.repository.update_status(spot_id, status)
            except Exception as exc:
                logger.exception("Error updating spot %s", spot_id)
                self._writer.set_error(f"Error: {exc}")
                return False
            if not result:
                self._fail(UPDATE_FAILED_MESSAGE, result.error)
                return False
            logger.info("Updated spot %s to %r, refreshing", spot_id, status)
            await self.fetch_spots()
            return True

    def clear_error(self) -> None:
        self._writer.clear_error()
