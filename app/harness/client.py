"""
app/harness/client.py

Purpose: HTTP client for the API test suites

- Base URL plus a mutable bearer token
- A request hook attaches `Authorization: Bearer <token>` while a token is set
- A response hook raises httpx.HTTPStatusError for anything but 2xx
- No retries and no token refresh
"""

from contextlib import contextmanager
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings


class ApiClient:
    """
    Thin wrapper over httpx.Client. Pass `client` to run the suites against
    any httpx-compatible client (an ASGI test client, for instance).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.token = token
        if client is None:
            client = httpx.Client(
                base_url=base_url or settings.API_BASE_URL,
                timeout=timeout or settings.HARNESS_TIMEOUT,
                headers={"Content-Type": "application/json"},
            )
        client.event_hooks = {
            "request": [self._attach_token],
            "response": [self._raise_for_status],
        }
        self._client = client

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    def _attach_token(self, request: httpx.Request) -> None:
        if self.token:
            request.headers["Authorization"] = f"Bearer {self.token}"

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if not response.is_success:
            response.read()
            response.raise_for_status()

    @contextmanager
    def anonymous(self):
        """Sends requests inside the block without the bearer token."""
        token, self.token = self.token, None
        try:
            yield self
        finally:
            self.token = token

    def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        return self._client.request(method, path, **kwargs)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.request("GET", path, params=params).json()

    def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.request("POST", path, json=json).json()

    def put(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.request("PUT", path, json=json).json()

    def delete(self, path: str) -> Dict[str, Any]:
        return self.request("DELETE", path).json()

    def close(self) -> None:
        self._client.close()
