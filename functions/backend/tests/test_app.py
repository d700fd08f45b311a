import unittest
from contextlib import contextmanager
from unittest.mock import patch

from fastapi.testclient import TestClient
from google.api_core import exceptions as google_exceptions

from backend.app import create_app
from backend.config import Settings
from backend.dependencies import get_remote_store, reset_remote_store


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        reset_remote_store()
        self.addCleanup(reset_remote_store)
        settings_patch = patch(
            "backend.dependencies.get_settings",
            return_value=Settings(use_in_memory_backends=True),
        )
        settings_patch.start()
        self.addCleanup(settings_patch.stop)

        self.store = get_remote_store()
        self.store.collections["study_spots"] = {
            "a": {"spotName": "Library", "currentStatus": "Packed"},
        }

    @contextmanager
    def _client(self):
        app = create_app()
        with TestClient(app) as client:
            # Let the startup fetch finish before the test drives the API.
            client.portal.call(app.state.view_model.wait_idle)
            yield client

    def test_refresh_and_list(self):
        with self._client() as client:
            refreshed = client.post("/api/spots/refresh")
            self.assertEqual(refreshed.status_code, 200)

            response = client.get("/api/spots")
            self.assertEqual(response.status_code, 200)
            payload = response.json()
            self.assertEqual(len(payload["spots"]), 1)
            spot = payload["spots"][0]
            self.assertEqual(spot["id"], "a")
            self.assertEqual(spot["spot_name"], "Library")
            self.assertEqual(spot["current_status"], "Packed")
            self.assertEqual(spot["status_color"], "#F44336")
            self.assertEqual(spot["last_updated_text"], "Never updated")
            self.assertIsNone(payload["error_message"])

    def test_create_spot(self):
        with self._client() as client:
            response = client.post("/api/spots", json={"spot_name": "  Cafe  "})
            self.assertEqual(response.status_code, 201)
            names = sorted(spot["spot_name"] for spot in response.json()["spots"])
            self.assertEqual(names, ["Cafe", "Library"])

            created = [
                spot for spot in response.json()["spots"] if spot["spot_name"] == "Cafe"
            ][0]
            self.assertEqual(created["current_status"], "Empty")
            self.assertIsNotNone(created["last_updated"])

    def test_create_rejects_blank_name(self):
        with self._client() as client:
            response = client.post("/api/spots", json={"spot_name": "   "})
            self.assertEqual(response.status_code, 422)
        self.assertEqual(len(self.store.collections["study_spots"]), 1)

    def test_update_status(self):
        with self._client() as client:
            response = client.post("/api/spots/a/status", json={"status": "Getting Full"})
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json()["spots"][0]["current_status"], "Getting Full")

    def test_update_rejects_unknown_status(self):
        with self._client() as client:
            response = client.post("/api/spots/a/status", json={"status": "Closed"})
            self.assertEqual(response.status_code, 422)

    def test_update_missing_spot_and_clear_error(self):
        with self._client() as client:
            response = client.post("/api/spots/missing/status", json={"status": "Packed"})
            self.assertEqual(response.status_code, 404)
            self.assertTrue(
                response.json()["detail"].startswith("Failed to update spot status")
            )

            payload = client.get("/api/spots").json()
            self.assertEqual(payload["error_kind"], "NOT_FOUND")
            self.assertEqual(len(payload["spots"]), 1)

            cleared = client.delete("/api/spots/error")
            self.assertEqual(cleared.status_code, 200)
            self.assertIsNone(cleared.json()["error_message"])
            self.assertIsNone(cleared.json()["error_kind"])

    def test_failed_create_is_forbidden(self):
        with self._client() as client:
            self.store.fail_next("add_document", google_exceptions.PermissionDenied("rules"))
            response = client.post("/api/spots", json={"spot_name": "Cafe"})
            self.assertEqual(response.status_code, 403)
            self.assertTrue(
                response.json()["detail"].startswith("Failed to create new study spot")
            )
        self.assertEqual(len(self.store.collections["study_spots"]), 1)

    def test_failed_refresh_keeps_spots(self):
        with self._client() as client:
            client.post("/api/spots/refresh")
            self.store.fail_next(
                "list_documents", google_exceptions.ServiceUnavailable("down"), times=2
            )
            response = client.post("/api/spots/refresh")
            self.assertEqual(response.status_code, 503)

            payload = client.get("/api/spots").json()
            self.assertEqual(len(payload["spots"]), 1)
            self.assertEqual(payload["error_kind"], "UNAVAILABLE")

    def test_unclassified_failure_is_bad_gateway(self):
        with self._client() as client:
            self.store.fail_next("update_document", RuntimeError("boom"))
            response = client.post("/api/spots/a/status", json={"status": "Packed"})
            self.assertEqual(response.status_code, 502)


if __name__ == "__main__":
    unittest.main()
