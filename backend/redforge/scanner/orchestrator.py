# redforge/scanner/orchestrator.py
"""
Scan Orchestrator: owns the task lifecycle and the stage fan-out.

Coordinates one scan:

    1. start() validates the target and kind, inserts a pending task and
       schedules the scan coroutine; the caller gets the id back at once
    2. The coroutine moves the task to running and creates its report
    3. Stages for the scan kind run concurrently, each committing its own
       output into the ReportStore as soon as it finishes
    4. Outcomes are folded into a final status: completed if any stage
       produced usable output, failed otherwise; every stage failure is
       recorded on the task either way
    5. The report is sealed with the final task snapshot, and only then does
       the terminal status become visible to status() and list()

Stage dispatch:
    headers        HeaderEngine
    ssl            SSLEngine
    vulnerability  VulnerabilityStage (probe engine + legacy set + aggregator)
    full           headers, ssl (https targets only), vulnerability, technologies
    quick, port    accepted, fail at execution as unimplemented

All scans share one asyncio event loop running on a daemon thread owned by
the orchestrator. There is no cancellation and no overall deadline; a scan
is bounded only by its per-request timeouts.

Usage:
    orchestrator = ScanOrchestrator(TaskStore(), ReportStore())
    task_id = orchestrator.start("https://example.com", "full")
    orchestrator.status(task_id).status   # -> ScanStatus.RUNNING ...
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

import httpx

from redforge.models import ScanKind, ScanReport, ScanStatus, ScanTask
from redforge.scanner.base import (
    BaseEngine,
    InvalidInput,
    NotFound,
    ScanContext,
    StageResult,
    Unimplemented,
)
from redforge.scanner.engines import ALL_ENGINES
from redforge.scanner.probe_engine import VulnerabilityStage
from redforge.scanner.stores import ReportStore, TaskStore

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("http://", "https://")


class UnimplementedStage(BaseEngine):
    """Placeholder for scan kinds that are accepted but have no stages yet."""

    def __init__(self, kind: ScanKind):
        self.kind = kind

    @property
    def name(self) -> str:
        return self.kind.value

    async def execute(self, ctx: ScanContext, config: Dict[str, Any]) -> StageResult:
        raise Unimplemented(f"'{self.kind.value}' scan is not implemented")


class ScanOrchestrator:
    """
    Entry point for starting and querying scans.

    Stores are injected so several orchestrators (or tests) never share
    state by accident. transport is passed through to every stage's HTTP
    client; leave it None outside tests.
    """

    def __init__(
        self,
        task_store: TaskStore,
        report_store: ReportStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_concurrency: int = 10,
        stage_config: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self.tasks = task_store
        self.reports = report_store
        self.transport = transport
        self.max_concurrency = max_concurrency
        self.stage_config = stage_config or {}

        self._futures: Dict[str, concurrent.futures.Future] = {}
        self._futures_lock = threading.Lock()

        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="redforge-scan-loop", daemon=True,
        )
        self._thread.start()

    def _run_loop(self):
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    # ─────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────

    def start(self, target: str, kind) -> str:
        """
        Validate, register a pending task and schedule it. Never blocks on I/O.
        Raises InvalidInput before any task is created.
        """
        target = (target or "").strip()
        if not target.startswith(SUPPORTED_SCHEMES):
            raise InvalidInput(f"Invalid URL '{target}': must start with http:// or https://")

        try:
            scan_kind = ScanKind.parse(kind)
        except ValueError:
            raise InvalidInput(f"Unknown scan type: {kind}")

        task = self.tasks.insert(ScanTask(target=target, kind=scan_kind))
        logger.info(f"Scan {task.id} created: {scan_kind.value} scan of {target}")

        future = asyncio.run_coroutine_threadsafe(self._execute(task.id), self._loop)
        with self._futures_lock:
            self._futures[task.id] = future
        future.add_done_callback(lambda _f, tid=task.id: self._drop_future(tid))
        return task.id

    def status(self, task_id: str) -> ScanTask:
        return self.tasks.get(task_id)

    def report(self, task_id: str) -> ScanReport:
        return self.reports.get(task_id)

    def list(self) -> List[ScanTask]:
        return self.tasks.list()

    def wait(self, task_id: str, timeout: Optional[float] = None) -> ScanTask:
        """
        Block until the scan for task_id has finalized. For the CLI and tests.
        Returns at once for a scan that already finished.
        """
        with self._futures_lock:
            future = self._futures.get(task_id)
        if future is not None:
            future.result(timeout=timeout)
            self._drop_future(task_id)
        return self.tasks.get(task_id)

    def shutdown(self, timeout: float = 5.0):
        """Stop the event loop. Scans still in flight are abandoned."""
        if self._loop.is_running():
            self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)

    def _drop_future(self, task_id: str):
        with self._futures_lock:
            self._futures.pop(task_id, None)

    # ─────────────────────────────────────────────────────
    # Scan body
    # ─────────────────────────────────────────────────────

    def _stages_for(self, task: ScanTask) -> List[BaseEngine]:
        kind = task.kind
        if kind == ScanKind.HEADERS:
            return [ALL_ENGINES["headers"]()]
        if kind == ScanKind.SSL:
            return [ALL_ENGINES["ssl"]()]
        if kind == ScanKind.VULNERABILITY:
            return [VulnerabilityStage()]
        if kind == ScanKind.FULL:
            stages: List[BaseEngine] = [ALL_ENGINES["headers"]()]
            if task.target.startswith("https://"):
                stages.append(ALL_ENGINES["ssl"]())
            stages.append(VulnerabilityStage())
            stages.append(ALL_ENGINES["technologies"]())
            return stages
        return [UnimplementedStage(kind)]

    async def _execute(self, task_id: str):
        try:
            task = self.tasks.transition(task_id, ScanStatus.RUNNING)
            self.reports.create(task)
            logger.info(f"Scan {task_id} running")

            ctx = ScanContext(
                target=task.target,
                task_id=task_id,
                transport=self.transport,
                max_concurrency=self.max_concurrency,
            )
            stages = self._stages_for(task)
            outcomes: List[Tuple[str, StageResult]] = await asyncio.gather(
                *(self._run_stage(stage, ctx) for stage in stages)
            )
            self._finalize(task_id, outcomes)

        except Exception as e:
            logger.exception(f"Scan {task_id} crashed outside its stages")
            current = self.tasks.get(task_id)
            if not current.status.is_terminal:
                self.tasks.transition(
                    task_id, ScanStatus.FAILED, error=str(e)[:500],
                    before_commit=self._seal_if_created,
                )

    async def _run_stage(self, stage: BaseEngine, ctx: ScanContext) -> Tuple[str, StageResult]:
        result = await stage.run(ctx, self.stage_config.get(stage.name))
        self._commit(ctx.task_id, result)
        if result.success:
            logger.info(f"Scan {ctx.task_id}: stage '{stage.name}' done in {result.duration_seconds}s")
        return stage.name, result

    def _commit(self, task_id: str, result: StageResult):
        if result.headers:
            self.reports.add_headers(task_id, result.headers)
        if result.certificate is not None:
            self.reports.set_certificate(task_id, result.certificate)
        if result.technologies:
            self.reports.add_technologies(task_id, result.technologies)
        if result.findings:
            self.reports.add_findings(task_id, result.findings)

    def _seal_if_created(self, task: ScanTask):
        try:
            self.reports.seal(task)
        except NotFound:
            # Crashed before the report was created
            logger.debug(f"Scan {task.id} has no report to seal")

    def _finalize(self, task_id: str, outcomes: List[Tuple[str, StageResult]]):
        failures = [
            f"{name}: {'; '.join(result.errors) or 'stage failed'}"
            for name, result in outcomes
            if not result.success
        ]
        produced = any(result.has_output() for _, result in outcomes)

        status = ScanStatus.COMPLETED if produced else ScanStatus.FAILED
        error = "; ".join(failures) or None
        if not produced and error is None:
            error = "no stage produced any output"

        self.tasks.transition(task_id, status, error=error, before_commit=self.reports.seal)

        if status == ScanStatus.COMPLETED and failures:
            logger.warning(f"Scan {task_id} completed with partial failure: {error}")
        elif status == ScanStatus.FAILED:
            logger.warning(f"Scan {task_id} failed: {error}")
        else:
            logger.info(f"Scan {task_id} completed")
