"""
JSON round trips against the Google REST APIs.

``GoogleAPIClient.connect(ctx, api_name)`` opens an authorized session for
one call and yields a ``Connection`` bound to that call's context.  Every
failure is mapped to a call-time error whose message names the API:

* request could not be sent or timed out -> ``TransportError``
* status other than 200                -> ``RemoteAPIError`` with code and reason
* body is not a JSON object             -> ``RemoteAPIError``
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

import requests
from google.auth.exceptions import GoogleAuthError

from toolcore.dispatch import CallContext
from toolcore.errors import RemoteAPIError, TransportError

logger = logging.getLogger("operable.gcp.api")

DEFAULT_REQUEST_TIMEOUT = 30.0

T = TypeVar("T")


class Connection:
    """One call's authorized session, bound to its context and API name."""

    def __init__(self, session: Any, ctx: CallContext, api_name: str, request_timeout: float) -> None:
        self._session = session
        self._ctx = ctx
        self._api_name = api_name
        self._request_timeout = request_timeout

    def _timeout(self) -> float:
        remaining = self._ctx.remaining()
        if remaining is None:
            return self._request_timeout
        return max(0.001, min(self._request_timeout, remaining))

    def request_json(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        what: str = "response",
    ) -> dict[str, Any]:
        self._ctx.check()
        logger.debug("%s %s params=%s", method, url, params)

        kwargs: dict[str, Any] = {"timeout": self._timeout()}
        if params:
            kwargs["params"] = params
        if body is not None:
            kwargs["json"] = body

        try:
            response = self._session.request(method, url, **kwargs)
        except GoogleAuthError as exc:
            # Token refresh happens lazily inside request().
            raise TransportError(f"Error getting authenticated client: {exc}") from exc
        except requests.RequestException as exc:
            raise TransportError(f"Error making request to {self._api_name}: {exc}") from exc

        # A cancellation that arrived mid-flight wins over the response.
        self._ctx.check()

        if response.status_code != 200:
            status = f"{response.status_code} {response.reason or ''}".strip()
            raise RemoteAPIError(f"Error from {self._api_name}: {status}", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise RemoteAPIError(f"Error parsing {what}: {exc}") from exc
        if not isinstance(data, dict):
            raise RemoteAPIError(f"Error parsing {what}: expected a JSON object")
        return data

    def get_json(self, url: str, params: dict[str, Any] | None = None, *, what: str = "response") -> dict[str, Any]:
        return self.request_json("GET", url, params=params, what=what)

    def post_json(self, url: str, body: dict[str, Any], *, what: str = "response") -> dict[str, Any]:
        return self.request_json("POST", url, body=body, what=what)


class GoogleAPIClient:
    """Opens per-call connections through an auth handler's sessions."""

    def __init__(self, auth: Any, request_timeout: float = DEFAULT_REQUEST_TIMEOUT) -> None:
        self._auth = auth
        self._request_timeout = request_timeout

    @contextmanager
    def connect(self, ctx: CallContext, api_name: str) -> Iterator[Connection]:
        session = self._auth.get_session(ctx)
        try:
            yield Connection(session, ctx, api_name, self._request_timeout)
        finally:
            session.close()


def decode(parse: Callable[[dict[str, Any]], T], data: dict[str, Any], what: str = "response") -> T:
    """Decode an API payload into a record, mapping shape errors to ``RemoteAPIError``."""
    try:
        return parse(data)
    except (TypeError, ValueError, KeyError, AttributeError) as exc:
        raise RemoteAPIError(f"Error parsing {what}: {exc}") from exc
