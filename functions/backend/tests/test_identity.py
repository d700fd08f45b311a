import unittest
from unittest.mock import MagicMock

import requests

from backend.identity import FirebaseAnonymousAuth, IdentityError


def _session_returning(payload):
    session = MagicMock()
    session.post.return_value.json.return_value = payload
    return session


class FirebaseAnonymousAuthTests(unittest.TestCase):
    def test_sign_in_stores_identity(self):
        session = _session_returning(
            {
                "localId": "uid-1",
                "idToken": "id-token",
                "refreshToken": "refresh",
                "expiresIn": "3600",
            }
        )
        auth = FirebaseAnonymousAuth(api_key="key", session=session)

        identity = auth.sign_in_anonymously()

        self.assertEqual(identity.uid, "uid-1")
        self.assertEqual(identity.expires_in, 3600)
        self.assertEqual(auth.current_identity(), identity)
        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        self.assertEqual(
            args[0], "https://identitytoolkit.googleapis.com/v1/accounts:signUp"
        )
        self.assertEqual(kwargs["params"], {"key": "key"})
        self.assertEqual(kwargs["json"], {"returnSecureToken": True})

    def test_emulator_url(self):
        auth = FirebaseAnonymousAuth(api_key=None, emulator_host="localhost:9099")
        self.assertEqual(
            auth.sign_up_url,
            "http://localhost:9099/identitytoolkit.googleapis.com/v1/accounts:signUp",
        )

    def test_missing_api_key(self):
        session = MagicMock()
        auth = FirebaseAnonymousAuth(api_key=None, session=session)
        with self.assertRaises(IdentityError):
            auth.sign_in_anonymously()
        session.post.assert_not_called()

    def test_response_without_user(self):
        auth = FirebaseAnonymousAuth(api_key="key", session=_session_returning({}))
        with self.assertRaises(IdentityError):
            auth.sign_in_anonymously()
        self.assertIsNone(auth.current_identity())

    def test_http_error_propagates(self):
        session = MagicMock()
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError(
            "400 Client Error"
        )
        auth = FirebaseAnonymousAuth(api_key="key", session=session)
        with self.assertRaises(requests.HTTPError):
            auth.sign_in_anonymously()

    def test_sign_out(self):
        session = _session_returning({"localId": "uid-1", "idToken": "t"})
        auth = FirebaseAnonymousAuth(api_key="key", session=session)
        auth.sign_in_anonymously()
        auth.sign_out()
        self.assertIsNone(auth.current_identity())


if __name__ == "__main__":
    unittest.main()
