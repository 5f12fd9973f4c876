"""
vPLC API client

Thin async client for the vPLC login and cyclic-backup endpoints.

Author: uldyssian-sh
License: MIT
"""

import asyncio
import json
from typing import Optional

import aiohttp
import structlog

from .exceptions import VPLCAuthenticationError, VPLCConnectionError
from .models import DeviceRecord

logger = structlog.get_logger(__name__)

HISTOGRAM_PATH = "/retain/cyclic-backup/histogram"
METRICS_PATH = "/retain/cyclic-backup"
TOKEN_COOKIE = "authToken"

_AUTH_FAILURE_STATUSES = (401, 403)


def create_http_session(timeout: float, verify_ssl: bool = False) -> aiohttp.ClientSession:
    """Create the pooled HTTP session shared by all instance collectors.

    Cookies are never stored so that one device's login cannot leak into
    requests for another.
    """
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout),
        connector=aiohttp.TCPConnector(ssl=verify_ssl),
        cookie_jar=aiohttp.DummyCookieJar(),
    )


class VPLCClient:
    """vPLC API client"""

    def __init__(self, http_session: aiohttp.ClientSession,
                 timeout: Optional[float] = None):
        self.http_session = http_session
        # Per request override; the session default applies otherwise
        self._request_options = {}
        if timeout:
            self._request_options["timeout"] = aiohttp.ClientTimeout(total=timeout)

    async def authenticate(self, record: DeviceRecord) -> str:
        """Log in and return the access token"""
        payload = {"username": record.username, "password": record.password}
        try:
            async with self.http_session.post(record.login_url, json=payload,
                                              **self._request_options) as response:
                if response.status != 200:
                    raise VPLCAuthenticationError(
                        f"Authentication failed with status: {response.status}")
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise VPLCConnectionError(f"Authentication request failed: {e!r}") from e

        try:
            result = json.loads(body)
        except ValueError as e:
            raise VPLCAuthenticationError(f"Failed to parse login response: {e}") from e

        token = result.get("accessToken") if isinstance(result, dict) else None
        if not isinstance(token, str) or not token:
            raise VPLCAuthenticationError("No access token in login response")

        logger.info("Authentication successful", instance=record.name,
                    login_url=record.login_url)
        return token

    async def fetch(self, url: str, token: str) -> bytes:
        """GET ``url`` with the session cookie and return the raw body"""
        headers = {"Cookie": f"{TOKEN_COOKIE}={token}"}
        try:
            async with self.http_session.get(url, headers=headers,
                                             **self._request_options) as response:
                if response.status in _AUTH_FAILURE_STATUSES:
                    raise VPLCAuthenticationError(
                        f"API request rejected with status: {response.status}")
                if response.status != 200:
                    raise VPLCConnectionError(
                        f"API request failed with status: {response.status}")
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise VPLCConnectionError(f"API request failed: {e!r}") from e

    async def fetch_histogram(self, record: DeviceRecord, token: str) -> bytes:
        return await self.fetch(record.api_url + HISTOGRAM_PATH, token)

    async def fetch_metrics(self, record: DeviceRecord, token: str) -> bytes:
        return await self.fetch(record.api_url + METRICS_PATH, token)
