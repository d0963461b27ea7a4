"""Default HTTP transport built on requests."""
import logging
from typing import Any, Dict, Optional, Protocol

import requests
from requests.structures import CaseInsensitiveDict

from processor.errors import TransportError
from processor.models import TransportResponse

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def __call__(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        follow_redirects: bool = True
    ) -> TransportResponse:
        ...


class RequestsTransport:
    """Performs one HTTP request per call. No retries, no interpretation."""

    def __init__(self, timeout: int = 30):
        """
        Initialize the transport.

        Args:
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.timeout = timeout

    def __call__(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        follow_redirects: bool = True
    ) -> TransportResponse:
        """
        Send a request and return the raw outcome.

        Non-2xx statuses are returned, not raised.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Request headers
            body: str/bytes sent as-is, dict sent form-encoded
            follow_redirects: Whether to follow 3xx responses

        Returns:
            TransportResponse

        Raises:
            TransportError: If no response was received
        """
        try:
            response = requests.request(
                method.upper(),
                url,
                headers=headers or {},
                data=body,
                allow_redirects=follow_redirects,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"{method.upper()} {url} failed: {e}")
            raise TransportError(f"{method.upper()} {url} failed: {e}") from e

        return TransportResponse(
            status_code=response.status_code,
            headers=_collect_headers(response),
            body_text=response.text,
            content=response.content
        )


def _collect_headers(response: requests.Response) -> CaseInsensitiveDict:
    """Copy response headers, keeping every Set-Cookie value as a list."""
    headers = CaseInsensitiveDict(response.headers)
    raw_headers = getattr(response.raw, 'headers', None)
    getlist = getattr(raw_headers, 'getlist', None)
    if getlist is not None:
        cookies = getlist('Set-Cookie')
        if cookies:
            headers['Set-Cookie'] = list(cookies)
    return headers
