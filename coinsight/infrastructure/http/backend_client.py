"""Backend HTTP client using requests, exposed as coroutines.

Blocking calls run in asyncio.to_thread; the worker thread only performs the
request and decodes JSON, state is never touched off the event loop.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import requests

from coinsight.infrastructure.errors import BackendHTTPError
from coinsight.infrastructure.logging.logging import get_logger

JsonDict = Dict[str, Any]


def _error_message(response: requests.Response) -> str:
    """Best description of a failed response: body.error, body.message, then reason."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("error") or body.get("message")
        if detail:
            return str(detail)
    return response.reason or "request failed"


class BackendClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_sec: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._logger = get_logger("backend_http")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_sec
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _send(self, method: str, path: str, params: Optional[JsonDict], body: Optional[JsonDict]) -> Any:
        response = self._session.request(
            method,
            self._url(path),
            params=params,
            json=body,
            timeout=self._timeout,
        )
        if not response.ok:
            raise BackendHTTPError(response.status_code, _error_message(response))
        return response.json()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[JsonDict] = None,
        body: Optional[JsonDict] = None,
    ) -> Any:
        self._logger.debug("http_request", method=method, path=path, params=params)
        try:
            return await asyncio.to_thread(self._send, method, path, params, body)
        except BackendHTTPError as e:
            self._logger.warning("http_error_status", method=method, path=path, status=e.status_code, error=str(e))
            raise
        except requests.RequestException as e:
            self._logger.warning("http_transport_error", method=method, path=path, error=str(e))
            raise

    async def get_json(self, path: str, params: Optional[JsonDict] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post_json(self, path: str, body: JsonDict) -> Any:
        return await self._request("POST", path, body=body)

    def close(self) -> None:
        self._session.close()
