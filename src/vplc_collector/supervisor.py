"""
vPLC Collector Supervisor

Starts one instance collector per configured vPLC and serves the shared
metric registry over HTTP for Prometheus.

Author: uldyssian-sh
License: MIT
"""

import asyncio
import signal
from typing import Any, Dict, List, Optional

import aiohttp
import structlog
from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST

from .client import VPLCClient, create_http_session
from .collector import InstanceCollector
from .config import CollectorSettings
from .metrics import MetricsRegistry
from .models import DeviceRecord

logger = structlog.get_logger(__name__)


class CollectorSupervisor:
    """Owns the instance collectors and the scrape endpoint"""

    def __init__(self, settings: CollectorSettings, records: List[DeviceRecord],
                 registry: Optional[MetricsRegistry] = None,
                 http_session: Optional[aiohttp.ClientSession] = None):
        self.settings = settings
        self.records = list(records)
        self.registry = registry or MetricsRegistry()
        self.running = False

        self._http_session = http_session
        self._owns_http_session = http_session is None
        self.collectors: Dict[str, InstanceCollector] = {}
        self._tasks: List[asyncio.Task] = []
        self._runner: Optional[web.AppRunner] = None

        self.shutdown_event: Optional[asyncio.Event] = None

        logger.info("Collector supervisor initialized",
                    instances=len(self.records), port=settings.port)

    def create_app(self) -> web.Application:
        """Build the scrape application"""
        app = web.Application()
        app.router.add_get("/metrics", self.handle_metrics)
        app.router.add_get("/health", self.handle_health)
        return app

    async def handle_metrics(self, request: web.Request) -> web.Response:
        body = self.registry.render()
        return web.Response(body=body, headers={"Content-Type": CONTENT_TYPE_LATEST})

    async def handle_health(self, request: web.Request) -> web.Response:
        return web.json_response(self.get_health_status())

    def get_health_status(self) -> Dict[str, Any]:
        """Per instance collector status; degraded while any instance lacks a session"""
        instances = {name: collector.get_status()
                     for name, collector in self.collectors.items()}
        healthy = bool(instances) and all(status["authenticated"] for status in instances.values())
        return {
            "status": "healthy" if healthy else "degraded",
            "running": self.running,
            "instances": instances,
        }

    async def start(self) -> None:
        """Start the HTTP endpoint and the collectors.

        If any step fails, everything started so far is released before the
        error propagates.
        """
        if self.running:
            logger.warning("Supervisor is already running")
            return

        # Created here so it belongs to the running loop
        self.shutdown_event = asyncio.Event()

        try:
            self._runner = web.AppRunner(self.create_app())
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.settings.host, self.settings.port)
            await site.start()

            if self._http_session is None:
                self._http_session = create_http_session(
                    timeout=self.settings.request_timeout,
                    verify_ssl=self.settings.verify_ssl,
                )
            client = VPLCClient(self._http_session, timeout=self.settings.request_timeout)

            for record in self.records:
                collector = InstanceCollector(record, client, self.registry,
                                              interval=self.settings.interval)
                self.collectors[record.name] = collector
                self._tasks.append(asyncio.create_task(collector.run(),
                                                       name=f"vplc-collector-{record.name}"))
        except Exception as e:
            logger.error("Failed to start collector supervisor", error=str(e),
                         host=self.settings.host, port=self.settings.port)
            await self._release()
            raise

        self.running = True
        logger.info("Serving metrics", host=self.settings.host,
                    port=self.settings.port, path="/metrics")

    async def _release(self) -> None:
        """Cancel collector tasks, close the endpoint and the owned HTTP session"""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        await asyncio.gather(*(collector.stop() for collector in self.collectors.values()))

        if self._runner:
            await self._runner.cleanup()
            self._runner = None

        if self._owns_http_session and self._http_session:
            await self._http_session.close()
            self._http_session = None

    async def stop(self) -> None:
        """Stop collectors, wait for in-flight cycles and close the endpoint"""
        was_running = self.running
        if was_running:
            logger.info("Stopping collector supervisor...")

        await self._release()

        self.running = False
        if self.shutdown_event is not None:
            self.shutdown_event.set()
        if was_running:
            logger.info("Collector supervisor stopped")

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown"""
        loop = asyncio.get_running_loop()

        def signal_handler(signum: int) -> None:
            logger.info("Received shutdown signal", signal=signum)
            if self.shutdown_event is not None:
                self.shutdown_event.set()

        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, signal_handler, signum)
            except NotImplementedError:
                # Not supported on Windows event loops
                pass

    async def run(self) -> None:
        """Run until a shutdown signal arrives"""
        await self.start()
        self._setup_signal_handlers()
        try:
            await self.shutdown_event.wait()
        finally:
            await self.stop()
