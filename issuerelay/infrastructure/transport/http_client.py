"""Concrete TransportClient delivering batches over HTTP with httpx.

Performs exactly one POST per ``send``. It never raises for delivery
failures: timeouts, connection problems and HTTP error statuses are reported
as ``TransportResponse(success=False, error=...)`` with messages the
ErrorClassifier understands ("Server error: 503 ...", "Network error: ...").
Retries and rate limiting are handled by the SubmissionOrchestrator.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from issuerelay import __version__
from issuerelay.domain.interfaces.transport import TransportClient
from issuerelay.domain.models.submission import BatchPayload, TransportResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
USER_AGENT = f"issuerelay/{__version__}"


def _describe(response: httpx.Response) -> str:
    """Best-effort human-readable reason for an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase or "no reason given"


class HttpTransportClient(TransportClient):
    """Sends batch payloads as JSON to a single endpoint."""

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        health_path: str = "health",
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initializes the HTTP transport.

        Args:
            endpoint: Full URL batches are POSTed to.
            api_key: Optional bearer token.
            timeout: Per-request timeout in seconds.
            health_path: Path, relative to the endpoint, probed by test_connection.
            client: Pre-built httpx.AsyncClient (tests inject one with a MockTransport).
        """
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self.health_path = health_path
        self._client = client or httpx.AsyncClient(timeout=timeout)
        logger.info(f"HttpTransportClient initialized for endpoint: {endpoint} (timeout={timeout}s)")

    @property
    def headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @property
    def health_url(self) -> str:
        return f"{self.endpoint.rstrip('/')}/{self.health_path.lstrip('/')}"

    async def send(self, payload: BatchPayload) -> TransportResponse:
        logger.info(f"POST {self.endpoint} with {payload.issue_count} issue(s)")
        try:
            response = await self._client.post(
                self.endpoint, json=payload.to_dict(), headers=self.headers, timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.error(f"Request to {self.endpoint} timed out: {e!r}")
            return TransportResponse(success=False, error=f"Network error: timeout ({e})")
        except httpx.ConnectError as e:
            logger.error(f"Connection to {self.endpoint} failed: {e}")
            return TransportResponse(success=False, error=f"Network error: connection failed ({e})")
        except httpx.RequestError as e:
            logger.error(f"Request to {self.endpoint} failed: {e!r}")
            return TransportResponse(success=False, error=f"Network error: {e or type(e).__name__}")

        logger.info(f"Received response: {response.status_code} from {self.endpoint}")
        # 429 is a transient server-side condition, reported like a 5xx
        if response.status_code >= 500 or response.status_code == 429:
            return TransportResponse(
                success=False, error=f"Server error: {response.status_code} - {_describe(response)}",
            )
        if not response.is_success:
            return TransportResponse(
                success=False, error=f"Request rejected: {response.status_code} - {_describe(response)}",
            )
        return self._parse_body(response)

    @staticmethod
    def _parse_body(response: httpx.Response) -> TransportResponse:
        """Honors an application-level ``{success, data, error}`` envelope."""
        try:
            body: Any = response.json()
        except ValueError:
            return TransportResponse(success=True, data=response.text or None)
        if not isinstance(body, dict):
            return TransportResponse(success=True, data=body)
        success = body.get("success", True)
        if success is False:
            error = body.get("error") or "endpoint reported failure without an error message"
            return TransportResponse(success=False, error=str(error), data=body.get("data"))
        return TransportResponse(success=True, data=body.get("data"))

    async def test_connection(self) -> bool:
        try:
            response = await self._client.get(self.health_url, headers=self.headers, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.error(f"Connection test failed: {e!r}")
            return False
        return response.is_success

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpTransportClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
