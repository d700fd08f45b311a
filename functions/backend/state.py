"""
Observable state for the study spot screen.

The view-model owns the only StateWriter; everything else reads snapshots or
subscribes to changes. Writes are serialized by a lock so the container is
safe to read from other threads.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from shared.results import ErrorKind
from shared.study_spot import StudySpot

logger = logging.getLogger(__name__)

Listener = Callable[["StudySpotsState"], None]


@dataclass(frozen=True)
class StudySpotsState:
    spots: tuple[StudySpot, ...] = ()
    is_loading: bool = False
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


class ObservableState:
    def __init__(self, initial: Optional[StudySpotsState] = None):
        self._lock = threading.Lock()
        self._value = initial or StudySpotsState()
        self._listeners: list[Listener] = []
        self._writer: Optional[StateWriter] = None

    @property
    def value(self) -> StudySpotsState:
        with self._lock:
            return self._value

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registers `listener` for future changes; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def claim_writer(self) -> "StateWriter":
        """
        Hands out the writer for this state.

        Raises:
            RuntimeError: If the writer was already claimed.
        """
        with self._lock:
            if self._writer is not None:
                raise RuntimeError("State already has a writer")
            self._writer = StateWriter(self)
            return self._writer

    def _apply(self, **changes) -> StudySpotsState:
        with self._lock:
            updated = dataclasses.replace(self._value, **changes)
            if updated == self._value:
                return updated
            self._value = updated
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(updated)
            except Exception:
                logger.exception("State listener %r failed", listener)
        return updated


class StateWriter:
    """Write access to an ObservableState. Obtain via ObservableState.claim_writer()."""

    def __init__(self, state: ObservableState):
        self._state = state

    def set_spots(self, spots: list[StudySpot]) -> None:
        self._state._apply(spots=tuple(spots))

    def replace_spots(self, spots: list[StudySpot]) -> None:
        """Sets a freshly read list and clears any error in a single write."""
        self._state._apply(spots=tuple(spots), error_message=None, error_kind=None)

    def set_loading(self, is_loading: bool) -> None:
        self._state._apply(is_loading=is_loading)

    def set_error(self, message: str, kind: Optional[ErrorKind] = None) -> None:
        self._state._apply(error_message=message, error_kind=kind)

    def clear_error(self) -> None:
        self._state._apply(error_message=None, error_kind=None)
