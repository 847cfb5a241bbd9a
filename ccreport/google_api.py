# ccreport/google_api.py
"""A *very* thin sync wrapper around the Google REST APIs we touch.

* OAuth credentials come from an authorized-user token file or from
  client id / secret / refresh token in the settings.
* :class:`GoogleApiClient` keeps one ``httpx.Client`` per API, refreshes the
  access token when it expires and turns transport/HTTP failures into
  :class:`ccreport.errors.ServiceError` tagged with the API name.

There is deliberately no retry here: a failed call fails the current thread,
which stays unlabelled and is retried by the next scan.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2.credentials import Credentials

from ccreport.config import Settings
from ccreport.errors import ConfigError, ServiceError

__all__ = ["GoogleApiClient", "load_credentials", "SCOPES"]

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/gmail.labels",
    "https://www.googleapis.com/auth/spreadsheets",
]


def load_credentials(settings: Settings) -> Credentials:
    """Build OAuth credentials from *settings*."""
    if settings.google_refresh_token:
        if not (settings.google_client_id and settings.google_client_secret):
            raise ConfigError("GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required with GOOGLE_REFRESH_TOKEN")
        return Credentials(
            token=None,
            refresh_token=settings.google_refresh_token,
            token_uri=GOOGLE_TOKEN_URI,
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            scopes=SCOPES,
        )

    token_file = settings.google_token_file
    if not token_file.is_file():
        raise ConfigError(f"Google token file {token_file} does not exist")
    try:
        return Credentials.from_authorized_user_file(str(token_file), SCOPES)
    except ValueError as exc:
        raise ConfigError(f"Google token file {token_file} is invalid: {exc}") from exc


class GoogleApiClient:
    """Base client for one Google REST API."""

    service = "Google"
    base_url = ""

    def __init__(
        self,
        *,
        credentials: Credentials,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._credentials = credentials
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    # ------------------------------------------------------------------ auth
    def _ensure_token(self) -> None:
        if self._credentials.valid:
            return
        logger.debug("%s: refreshing access token", self.service)
        try:
            self._credentials.refresh(GoogleAuthRequest())
        except GoogleAuthError as exc:
            raise ServiceError(f"Failed to refresh access token: {exc}", service=self.service) from exc

    # ------------------------------------------------------------- low level
    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        self._ensure_token()
        headers = {"Authorization": f"Bearer {self._credentials.token}"}
        try:
            resp = self._client.request(method, path, headers=headers, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ServiceError(
                f"{method} {path} failed with HTTP {exc.response.status_code}: {exc.response.text[:200]}",
                service=self.service,
            ) from exc
        except httpx.HTTPError as exc:
            raise ServiceError(f"{method} {path} failed: {exc}", service=self.service) from exc
        return resp.json() if resp.content else {}

    def _get(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self._request("GET", path, **kwargs)

    def _post(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self._request("POST", path, **kwargs)

    def close(self) -> None:
        """Closes the underlying HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
