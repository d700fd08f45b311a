"""
Anonymous identity against Firebase Authentication.

Uses the Identity Toolkit REST API (the same endpoint the client SDKs use for
anonymous sign-in), or the Auth emulator when one is configured.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds
IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com"


class IdentityError(Exception):
    """Raised when an anonymous identity can't be established."""


@dataclass(frozen=True)
class Identity:
    uid: str
    id_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class FirebaseAnonymousAuth:
    """Holds at most one anonymous identity for this process."""

    def __init__(
        self,
        api_key: Optional[str],
        emulator_host: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.emulator_host = emulator_host
        self._session = session or requests.Session()
        self._identity: Optional[Identity] = None

    @property
    def sign_up_url(self) -> str:
        if self.emulator_host:
            base = f"http://{self.emulator_host}/identitytoolkit.googleapis.com"
        else:
            base = IDENTITY_TOOLKIT_URL
        return f"{base}/v1/accounts:signUp"

    def current_identity(self) -> Optional[Identity]:
        return self._identity

    def sign_out(self) -> None:
        self._identity = None

    def sign_in_anonymously(self) -> Identity:
        """
        Creates a new anonymous account and keeps it as the current identity.

        Raises:
            IdentityError: If no API key is configured or the response has no
                user id or token.
            requests.RequestException: If the HTTP call fails.
        """
        if not self.api_key and not self.emulator_host:
            raise IdentityError("No Firebase API key configured")

        response = self._session.post(
            self.sign_up_url,
            params={"key": self.api_key or "emulator"},
            json={"returnSecureToken": True},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()

        payload = response.json()
        uid = payload.get("localId")
        id_token = payload.get("idToken")
        if not uid or not id_token:
            raise IdentityError("Sign-up response did not include a user")

        expires_in = payload.get("expiresIn")
        self._identity = Identity(
            uid=uid,
            id_token=id_token,
            refresh_token=payload.get("refreshToken"),
            expires_in=int(expires_in) if expires_in else None,
        )
        logger.info("Signed in anonymously as %s", uid)
        return self._identity
