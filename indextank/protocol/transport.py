"""
Protocol - HTTP Transport

Sends requests to the IndexTank API over httpx and hands every outcome to
the error classifier together with the operation that issued it.
"""

import json
import logging
from typing import Any, Optional, Sequence, Tuple, Union
from urllib.parse import unquote, urlsplit

import httpx

from indextank.config import get_settings
from indextank.errors import InvalidArgumentError
from indextank.protocol.classifier import (
    Operation,
    classify_response,
    classify_transport_error,
)


logger = logging.getLogger(__name__)

INDEXES_PATH = "/v1/indexes"
DOCS_PATH = "/docs"
SEARCH_PATH = "/search"
CATEGORIES_PATH = "/docs/categories"
VARIABLES_PATH = "/docs/variables"
PROMOTE_PATH = "/promote"
FUNCTIONS_PATH = "/functions"

Params = Union[Sequence[Tuple[str, str]], dict, None]


def parse_private_url(private_url: str) -> Tuple[str, httpx.BasicAuth]:
    """
    Split a private URL (``http://:<password>@<host>``) into base URL and credentials.

    Returns:
        ``(base_url, auth)`` with the credentials removed from the URL
    """
    if private_url is None:
        raise InvalidArgumentError("The private URL is null.")

    parts = urlsplit(private_url.strip())
    if not parts.scheme or not parts.hostname:
        raise InvalidArgumentError("The private URL is not a valid URL.")

    netloc = parts.hostname
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    base_url = f"{parts.scheme}://{netloc}{parts.path.rstrip('/')}"

    auth = httpx.BasicAuth(
        unquote(parts.username or ""),
        unquote(parts.password or ""),
    )
    return base_url, auth


class Transport:
    """Executes API requests and classifies their outcome."""

    def __init__(
        self,
        private_url: Optional[str] = None,
        settings=None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url, self.auth = parse_private_url(
            private_url or self.settings.indextank.private_url
        )
        self.max_request_bytes = self.settings.indextank.max_request_bytes
        self._client = http_client
        # A client passed in by the caller stays open on aclose
        self._owns_client = http_client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy load the shared httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.indextank.timeout_seconds,
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def encode_body(self, payload: Any) -> bytes:
        """Serialize a JSON body, enforcing the service's request size limit."""
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        if len(body) > self.max_request_bytes:
            raise InvalidArgumentError(
                f"The size of the request exceeds {self.max_request_bytes} bytes. "
                f"The request size is {len(body)} bytes."
            )
        return body

    async def execute(
        self,
        method: str,
        path: str,
        operation: Operation,
        params: Params = None,
        payload: Any = None,
    ) -> httpx.Response:
        """
        Send one request.

        Args:
            method: HTTP verb
            path: Resource path below the private URL
            operation: Operation issuing the request, used for error messages
            params: Query string parameters, in order
            payload: JSON-serializable request body

        Returns:
            The response, when its status is a success

        Raises:
            InvalidArgumentError: if the body exceeds the size limit
            ApiError, ProtocolError: as classified
        """
        content = None
        headers = None
        if payload is not None:
            content = self.encode_body(payload)
            headers = {"Content-Type": "application/json"}

        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {path} ({operation.value})")

        try:
            response = await self.client.request(
                method,
                url,
                params=params,
                content=content,
                headers=headers,
                auth=self.auth,
            )
        except httpx.HTTPError as exc:
            raise classify_transport_error(exc, operation) from exc

        logger.debug(f"{method} {path} -> HTTP {response.status_code}")
        return classify_response(response, operation)
