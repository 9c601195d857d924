"""HTTP transport for the controller's /stick endpoint."""

import logging
from typing import Protocol

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)

STICK_PATH = "/stick"

# Headers sent by the Rain Bird mobile app
HEADERS = {
    "Accept-Language": "en",
    "Accept-Encoding": "gzip, deflate",
    "User-Agent": "RainBird/2.0 CFNetwork/811.5.4 Darwin/16.7.0",
    "Accept": "*/*",
    "Connection": "keep-alive",
    "Content-Type": "application/octet-stream",
}

# HTTP timeout for a single exchange (seconds).
REQUEST_TIMEOUT = 20.0


class Transport(Protocol):
    """Exchanges one opaque request body for one opaque reply body."""

    async def exchange(self, address: str, body: bytes) -> bytes:
        """POST body to the controller, return the reply body.

        Raises TransportError on any failure.
        """
        ...


def stick_url(address: str) -> str:
    return f"http://{address}{STICK_PATH}"


class HttpTransport:
    """Transport over httpx.

    Uses the given AsyncClient when provided (caller owns its lifecycle),
    otherwise opens a short-lived client for each exchange.
    """

    def __init__(self, client: httpx.AsyncClient | None = None,
                 timeout: float = REQUEST_TIMEOUT):
        self.client = client
        self.timeout = timeout

    async def exchange(self, address: str, body: bytes) -> bytes:
        url = stick_url(address)
        logger.debug(f"[post]        {url} ({len(body)}B)")
        try:
            if self.client is not None:
                response = await self.client.post(url, content=body, headers=HEADERS)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, content=body, headers=HEADERS)
        except (httpx.HTTPError, httpx.InvalidURL, OSError, OverflowError) as exc:
            raise TransportError(None, f"Request to {url} failed: {exc}") from exc

        if response.status_code != 200:
            raise TransportError(response.status_code, response.reason_phrase)

        logger.debug(f"[received]    {response.status_code} ({len(response.content)}B)")
        return response.content
