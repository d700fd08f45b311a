import io
import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from backend.repository import SpotRepository
from backend.state import StudySpotsState
from backend.store import InMemoryRemoteStore
from scripts import spots_cli
from shared.study_spot import StudySpot


class SpotsCliTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryRemoteStore()
        repo_patch = patch(
            "scripts.spots_cli.build_repository",
            side_effect=lambda: SpotRepository(self.store),
        )
        repo_patch.start()
        self.addCleanup(repo_patch.stop)

    def _run(self, *argv):
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = spots_cli.main(list(argv))
        return code, stdout.getvalue()

    def test_create_then_update(self):
        code, output = self._run("create", "Library")
        self.assertEqual(code, 0)
        self.assertIn("Library  [Empty]", output)

        spot_id = next(iter(self.store.collections["study_spots"]))
        code, output = self._run("update", spot_id, "Getting Full")
        self.assertEqual(code, 0)
        self.assertIn("[Getting Full]", output)

    def test_update_missing_spot_fails(self):
        code, output = self._run("update", "missing", "Packed")
        self.assertEqual(code, 1)
        self.assertIn("Error: Failed to update spot status", output)

    def test_watch_once_lists_spots(self):
        self.store.collections["study_spots"] = {"a": {"spotName": "Cafe"}}
        code, output = self._run("watch", "--once")
        self.assertEqual(code, 0)
        self.assertIn("a  Cafe  [Unknown]  Never updated", output)

    def test_blank_name_is_rejected(self):
        with patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                spots_cli.main(["create", "   "])

    def test_render(self):
        state = StudySpotsState(
            spots=(
                StudySpot(
                    id="a",
                    spot_name="",
                    current_status="Packed",
                    last_updated=datetime(2025, 1, 2, 15, 4, tzinfo=timezone.utc),
                ),
            ),
            error_message="Failed to load study spots: down",
        )
        self.assertEqual(
            spots_cli.render(state),
            "a  (unnamed)  [Packed]  Last updated: Jan 02, 2025 at 03:04 PM\n"
            "Error: Failed to load study spots: down",
        )
        self.assertEqual(spots_cli.render(StudySpotsState()), "No study spots available")


if __name__ == "__main__":
    unittest.main()
