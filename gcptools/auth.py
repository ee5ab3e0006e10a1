"""
Google credential resolution and authorized HTTP sessions.

Credentials are checked once at startup (``AuthHandler.from_env``): either a
service-account / ADC file via ``GOOGLE_APPLICATION_CREDENTIALS``, or an
OAuth client via ``GOOGLE_CLIENT_ID`` + ``GOOGLE_CLIENT_SECRET`` (with
``GOOGLE_REFRESH_TOKEN`` for a previously authorized user).  Missing both is
a startup error.  A fresh ``AuthorizedSession`` is opened for each call;
failures there are call-time ``TransportError``s.

Only read-only scopes are ever requested.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from toolcore.errors import ConfigurationError, TransportError

if TYPE_CHECKING:
    from toolcore.dispatch import CallContext

logger = logging.getLogger("operable.gcp.auth")

READ_ONLY_SCOPES = (
    "https://www.googleapis.com/auth/cloud-platform.read-only",
    "https://www.googleapis.com/auth/logging.read",
    "https://www.googleapis.com/auth/monitoring.read",
    "https://www.googleapis.com/auth/compute.readonly",
    "https://www.googleapis.com/auth/container.readonly",
)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class AuthHandler:
    """Produces authorized sessions for the Google REST APIs."""

    def __init__(
        self,
        credentials_file: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        refresh_token: str | None = None,
        scopes: tuple[str, ...] = READ_ONLY_SCOPES,
    ) -> None:
        if not credentials_file and not (client_id and client_secret):
            raise ConfigurationError(
                "either GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET or "
                "GOOGLE_APPLICATION_CREDENTIALS environment variables must be set"
            )
        self._credentials_file = credentials_file
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._scopes = scopes

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AuthHandler":
        env = os.environ if environ is None else environ
        return cls(
            credentials_file=env.get("GOOGLE_APPLICATION_CREDENTIALS") or None,
            client_id=env.get("GOOGLE_CLIENT_ID") or None,
            client_secret=env.get("GOOGLE_CLIENT_SECRET") or None,
            refresh_token=env.get("GOOGLE_REFRESH_TOKEN") or None,
        )

    def _credentials(self):
        if self._credentials_file:
            import google.auth

            credentials, _project = google.auth.default(scopes=list(self._scopes))
            return credentials

        from google.oauth2.credentials import Credentials

        return Credentials(
            token=None,
            refresh_token=self._refresh_token,
            client_id=self._client_id,
            client_secret=self._client_secret,
            token_uri=GOOGLE_TOKEN_URI,
            scopes=list(self._scopes),
        )

    def get_session(self, ctx: "CallContext"):
        """Return an ``AuthorizedSession`` for one call.

        Raises ``TransportError`` when the credentials cannot be loaded.
        """
        ctx.check()
        from google.auth.exceptions import GoogleAuthError
        from google.auth.transport.requests import AuthorizedSession

        try:
            credentials = self._credentials()
        except GoogleAuthError as exc:
            raise TransportError(f"Error getting authenticated client: {exc}") from exc
        except (OSError, ValueError) as exc:
            raise TransportError(f"Error getting authenticated client: {exc}") from exc
        return AuthorizedSession(credentials)
