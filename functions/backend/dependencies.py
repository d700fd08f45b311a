"""
Dependency wiring for the FastAPI app and scripts.
"""

from __future__ import annotations

from fastapi import Request

from backend.config import get_settings
from backend.identity import FirebaseAnonymousAuth
from backend.repository import SpotRepository
from backend.store import FirestoreRemoteStore, InMemoryRemoteStore, RemoteStore
from backend.viewmodel import StudySpotViewModel

_remote_store: RemoteStore | None = None


def get_remote_store() -> RemoteStore:
    """
    Return a singleton remote store so in-memory data persists across requests.
    """
    global _remote_store
    if _remote_store:
        return _remote_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _remote_store = InMemoryRemoteStore()
    else:
        auth = FirebaseAnonymousAuth(
            api_key=settings.firebase_api_key,
            emulator_host=settings.auth_emulator_host,
        )
        _remote_store = FirestoreRemoteStore(
            project_id=settings.firebase_project_id, auth=auth
        )
    return _remote_store


def reset_remote_store() -> None:
    global _remote_store
    _remote_store = None


def build_repository(store: RemoteStore | None = None) -> SpotRepository:
    settings = get_settings()
    return SpotRepository(
        store or get_remote_store(),
        collection=settings.study_spots_collection,
        timeout_seconds=settings.remote_call_timeout_seconds,
        seed_spot_names=settings.seed_spot_names,
    )


def get_view_model(request: Request) -> StudySpotViewModel:
    """The view-model is created in the app lifespan, inside the event loop."""
    return request.app.state.view_model
