"""
REST client for the cookbook server API.

A thin wrapper around httpx.Client. Non-2xx responses raise
httpx.HTTPStatusError and timeouts raise httpx.TimeoutException; nothing
here retries.
"""

import logging
from typing import Dict, Any, Optional

import httpx

logger = logging.getLogger(__name__)

API_VERSION_HEADER = "X-Ops-Server-API-Version"


class CookbookManifestVersions:
    """Server API versions that understand cookbook manifest layouts.

    Version 0 uses per-segment file lists (recipes, templates, ...),
    version 2 uses the flat ``all_files`` list.
    """
    min_version = 0
    max_version = 2


class ServerAPI:
    """
    Client for the cookbook server.

    Recognized options:
    - timeout: request timeout in seconds
    - verify_ssl: verify TLS certificates
    - headers: extra headers sent with every request
    - client_name: sent as X-Ops-UserId
    - version_class: class with min_version/max_version; the max is
      advertised in the API version header
    - transport: an httpx transport (used by tests)
    """

    def __init__(self, url: str, options: Optional[Dict[str, Any]] = None):
        """
        Initialize the client. No network I/O happens here.

        Args:
            url: Base URL of the server (or organization)
            options: Request options, see class docstring
        """
        self.url = url.rstrip("/")
        self.options: Dict[str, Any] = dict(options or {})
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Underlying httpx client, created on first use."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.url,
                headers=self.headers(),
                timeout=self.options.get("timeout", 60.0),
                verify=self.options.get("verify_ssl", True),
                transport=self.options.get("transport"),
            )
        return self._client

    def headers(self) -> Dict[str, str]:
        """Headers sent with every request."""
        headers = {
            "Accept": "application/json",
            "X-Chef-Version": "18.0.0",
        }
        if self.options.get("client_name"):
            headers["X-Ops-UserId"] = self.options["client_name"]

        version_class = self.options.get("version_class")
        if version_class is not None:
            headers[API_VERSION_HEADER] = str(version_class.max_version)

        headers.update(self.options.get("headers") or {})
        return headers

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> 'ServerAPI':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_json(self, path: str) -> Any:
        """GET a path and decode the JSON body."""
        logger.debug(f"GET {self.url}{path}")
        response = self.client.get(path)
        response.raise_for_status()
        return response.json()

    def get_bytes(self, url: str) -> bytes:
        """GET raw content from an absolute or server-relative URL."""
        logger.debug(f"GET {url}")
        response = self.client.get(url)
        response.raise_for_status()
        return response.content

    def post_json(self, path: str, data: Any) -> Any:
        """POST a JSON body and decode the JSON response."""
        logger.debug(f"POST {self.url}{path}")
        response = self.client.post(path, json=data)
        response.raise_for_status()
        return response.json()

    def put_json(
        self,
        path: str,
        data: Any,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """PUT a JSON body and decode the JSON response (None when empty)."""
        logger.debug(f"PUT {self.url}{path}")
        response = self.client.put(path, json=data, params=params)
        response.raise_for_status()
        return response.json() if response.content else None

    def put_bytes(
        self,
        url: str,
        data: bytes,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """PUT raw bytes to an absolute or server-relative URL."""
        logger.debug(f"PUT {url} ({len(data)} bytes)")
        response = self.client.put(url, content=data, headers=headers)
        response.raise_for_status()

    def __repr__(self) -> str:
        return f"ServerAPI(url='{self.url}')"
