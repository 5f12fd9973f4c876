"""
Shared fixtures: an in-process fake vPLC serving the login and
cyclic-backup endpoints.
"""

import copy
import json
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from vplc_collector.client import create_http_session
from vplc_collector.metrics import MetricsRegistry
from vplc_collector.models import DeviceRecord

USERNAME = "monitor"
PASSWORD = "secret"

SAMPLE_METRICS: Dict[str, Any] = {
    "performanceMetrics": {
        "writeSuccesses": 100,
        "writeAttempts": 110,
        "cycleDelay": {"totalNs": 5000, "minNs": 10, "maxNs": 900},
        "writeDuration": {"minNs": 20, "maxNs": 800, "totalNs": 7000.5},
    }
}

SAMPLE_HISTOGRAM: Dict[str, Any] = {
    "timestampNs": 1718000000000000000,
    "cycleDelayHistogram": {"0.0-1.0ms": 3, "1.0-5.0ms": 2, "5.0+ms": 1},
    "writeDurationHistogram": {"0.0-1.0ms": 10, "1.0+ms": 4},
}


class FakeVPLC:
    """Minimal vPLC API with switchable failure modes"""

    def __init__(self):
        self.token = "token-1"
        self.metrics = copy.deepcopy(SAMPLE_METRICS)
        self.histogram = copy.deepcopy(SAMPLE_HISTOGRAM)
        self.login_status = 200
        self.histogram_status = 200
        self.metrics_status = 200
        self.histogram_body: Optional[bytes] = None
        self.metrics_body: Optional[bytes] = None
        self.login_calls = 0
        self.requests: List[str] = []
        self.server: Optional[TestServer] = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/api/v2/auth/login", self.handle_login)
        app.router.add_get("/api/v2/retain/cyclic-backup/histogram", self.handle_histogram)
        app.router.add_get("/api/v2/retain/cyclic-backup", self.handle_metrics)
        return app

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))

    def record(self, name: str = "line-1", password: str = PASSWORD) -> DeviceRecord:
        return DeviceRecord(
            name=name,
            loginUrl=self.url("/api/v2/auth/login"),
            apiUrl=self.url("/api/v2"),
            user=USERNAME,
            password=password,
        )

    async def handle_login(self, request: web.Request) -> web.Response:
        self.login_calls += 1
        self.requests.append("login")
        if self.login_status != 200:
            return web.Response(status=self.login_status)
        payload = await request.json()
        if payload != {"username": USERNAME, "password": PASSWORD}:
            return web.Response(status=401)
        return web.json_response({"accessToken": self.token})

    def _authorized(self, request: web.Request) -> bool:
        return request.cookies.get("authToken") == self.token

    def _respond(self, request: web.Request, status: int, body: Optional[bytes],
                 document: Dict[str, Any]) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401)
        if status != 200:
            return web.Response(status=status)
        if body is not None:
            return web.Response(body=body, content_type="application/json")
        return web.Response(text=json.dumps(document), content_type="application/json")

    async def handle_histogram(self, request: web.Request) -> web.Response:
        self.requests.append("histogram")
        return self._respond(request, self.histogram_status, self.histogram_body, self.histogram)

    async def handle_metrics(self, request: web.Request) -> web.Response:
        self.requests.append("metrics")
        return self._respond(request, self.metrics_status, self.metrics_body, self.metrics)


@pytest_asyncio.fixture
async def fake_vplc():
    device = FakeVPLC()
    server = TestServer(device.create_app())
    await server.start_server()
    device.server = server
    yield device
    await server.close()


@pytest_asyncio.fixture
async def http_session():
    session = create_http_session(timeout=5)
    yield session
    await session.close()


@pytest.fixture
def registry():
    return MetricsRegistry()
