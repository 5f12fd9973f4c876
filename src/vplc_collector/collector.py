"""
Instance collector

One collector per vPLC instance. On every timer tick it logs in when
needed, fetches the histogram and cyclic-backup documents and applies them
to the shared metric registry.

Author: uldyssian-sh
License: MIT
"""

import asyncio
import time
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from .client import VPLCClient
from .exceptions import (
    CollectionFault, PayloadParseError, VPLCAuthenticationError, VPLCConnectionError
)
from .metrics import MetricsRegistry
from .models import DeviceRecord, parse_histogram_report, parse_metrics_document
from .session import VPLCSession

logger = structlog.get_logger(__name__)


class CollectorState(Enum):
    """Instance collector state"""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    COLLECTING = "collecting"


class CycleResult(Enum):
    """Outcome of one collection cycle"""
    SUCCESS = "success"
    AUTH_FAILED = "auth_failed"
    FETCH_FAILED = "fetch_failed"
    FAULT = "fault"
    SKIPPED = "skipped"


class InstanceCollector:
    """Periodic collection for a single vPLC instance"""

    def __init__(self, record: DeviceRecord, client: VPLCClient,
                 registry: MetricsRegistry, interval: float = 10.0):
        self.record = record
        self.client = client
        self.registry = registry
        self.interval = interval
        self.session = VPLCSession(instance=record.name)
        self.state = CollectorState.UNAUTHENTICATED

        self.last_success: Optional[float] = None
        self.last_error: Optional[str] = None
        self.cycles_run = 0
        self.cycles_skipped = 0

        self._cycle_task: Optional[asyncio.Task] = None
        self._stopping = False

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def busy(self) -> bool:
        """True while a collection cycle is in flight"""
        return self._cycle_task is not None and not self._cycle_task.done()

    def tick(self) -> Optional[asyncio.Task]:
        """Start a collection cycle unless the previous one is still running.

        Returns the started cycle task, or None when the tick was dropped.
        """
        if self.busy:
            self.cycles_skipped += 1
            self.registry.record_cycle(self.name, CycleResult.SKIPPED.value)
            logger.warning("Previous run still in progress, skipping this interval",
                           instance=self.name)
            return None

        self._cycle_task = asyncio.create_task(self.run_cycle(),
                                               name=f"vplc-cycle-{self.name}")
        return self._cycle_task

    async def run(self) -> None:
        """Tick every ``interval`` seconds until stopped"""
        logger.info("Instance collector started", instance=self.name,
                    interval=self.interval)
        while not self._stopping:
            await asyncio.sleep(self.interval)
            if self._stopping:
                break
            self.tick()

    async def stop(self) -> None:
        """Stop ticking and let an in-flight cycle finish"""
        self._stopping = True
        if self.busy:
            await asyncio.wait([self._cycle_task])
        logger.info("Instance collector stopped", instance=self.name)

    async def run_cycle(self) -> CycleResult:
        """Run one authenticate/fetch/update cycle.

        Never raises: every failure is logged, mapped to a result and, for
        auth, transport and unexpected errors, drops the session.
        """
        self.cycles_run += 1
        self.last_error = None
        try:
            result = await self._collect()
        except (VPLCAuthenticationError, VPLCConnectionError) as e:
            self._drop_session(str(e))
            result = CycleResult.FETCH_FAILED
        except asyncio.CancelledError:
            self._drop_session("cancelled")
            raise
        except Exception as e:
            fault = CollectionFault(self.name, e)
            logger.exception("Recovered from fault in collection cycle",
                             instance=self.name, error=str(fault))
            self._drop_session(str(fault))
            result = CycleResult.FAULT

        if result is CycleResult.SUCCESS:
            self.last_success = time.time()
        self.registry.record_cycle(self.name, result.value)
        return result

    async def _collect(self) -> CycleResult:
        if not self.session.is_valid:
            try:
                token = await self.client.authenticate(self.record)
            except (VPLCAuthenticationError, VPLCConnectionError) as e:
                logger.warning("Authentication failed", instance=self.name, error=str(e))
                self._drop_session(str(e))
                return CycleResult.AUTH_FAILED
            self.session.establish(token)
            self.state = CollectorState.AUTHENTICATED
            self.registry.set_authenticated(self.name, True)

        self.state = CollectorState.COLLECTING

        try:
            body = await self.client.fetch_histogram(self.record, self.session.token)
        except (VPLCAuthenticationError, VPLCConnectionError) as e:
            logger.warning("Failed to get histogram data", instance=self.name, error=str(e))
            raise
        try:
            report = parse_histogram_report(body)
        except PayloadParseError as e:
            logger.warning("Error parsing histogram data", instance=self.name, error=str(e))
            self.last_error = str(e)
        else:
            self.registry.update_histograms(self.name, report)

        try:
            body = await self.client.fetch_metrics(self.record, self.session.token)
        except (VPLCAuthenticationError, VPLCConnectionError) as e:
            logger.warning("Failed to get CRB stats", instance=self.name, error=str(e))
            raise
        try:
            document = parse_metrics_document(body)
            self.registry.update(self.name, document)
        except PayloadParseError as e:
            logger.warning("Error parsing CRB metrics", instance=self.name, error=str(e))
            self.last_error = str(e)

        self.state = CollectorState.AUTHENTICATED
        return CycleResult.SUCCESS

    def _drop_session(self, reason: str) -> None:
        self.session.invalidate(reason)
        self.state = CollectorState.UNAUTHENTICATED
        self.last_error = reason
        self.registry.set_authenticated(self.name, False)

    def get_status(self) -> Dict[str, Any]:
        """Status summary for the health endpoint"""
        return {
            "state": self.state.value,
            "authenticated": self.session.is_valid,
            "busy": self.busy,
            "last_success": self.last_success,
            "last_error": self.last_error,
            "cycles_run": self.cycles_run,
            "cycles_skipped": self.cycles_skipped,
        }
