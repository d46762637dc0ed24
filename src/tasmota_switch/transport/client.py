"""Async HTTP client for the Tasmota web API."""

import asyncio
import json
import logging
from typing import Any, Optional, Union

import aiohttp

from tasmota_switch.errors import TransportError, UnexpectedResponseError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 5.0


def parse_power_response(body: Union[bytes, str]) -> dict[str, Any]:
    """Parse a Tasmota response body.

    Tasmota returns JSON like ``{"POWER":"ON"}`` or ``{"POWER1":"OFF"}``. Some firmwares
    answer with plain ``ON``/``OFF`` text instead, which is wrapped as ``{"POWER": ...}``.

    Raises:
        UnexpectedResponseError: If the body is neither a JSON object nor ON/OFF
    """
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise UnexpectedResponseError(repr(body[:64])) from e

    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict):
        return data

    trimmed = (body or "").strip()
    if trimmed in ("ON", "OFF"):
        return {"POWER": trimmed}
    raise UnexpectedResponseError(trimmed)


class TasmotaHttpClient:
    """Issues GET requests to a Tasmota device and parses power responses.

    A caller-supplied ``aiohttp.ClientSession`` is used as-is and left open on
    ``close()``; otherwise the client creates its own session on first use.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _get_session(self) -> aiohttp.ClientSession:
        """Lazily create the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def fetch_power_state(self, url: str) -> dict[str, Any]:
        """GET ``url`` and return the parsed power payload.

        Raises:
            TransportError: On connection errors, timeouts, or non-2xx status
            UnexpectedResponseError: If the body can't be interpreted
        """
        session = self._get_session()
        try:
            async with session.get(url, timeout=self._timeout) as response:
                body = await response.read()
                if not 200 <= response.status < 300:
                    raise TransportError(f"HTTP {response.status}", status=response.status)
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request timed out after {self._timeout.total}s") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        logger.debug(f"Response body: {body!r}")
        return parse_power_response(body)

    async def close(self) -> None:
        """Close the owned session. Safe to call more than once."""
        if self._owns_session and self._session is not None:
            if not self._session.closed:
                await self._session.close()
            self._session = None
