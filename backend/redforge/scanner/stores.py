# redforge/scanner/stores.py
"""
In-memory task and report registries.

Both stores are plain objects with one lock each, injected into the
orchestrator. The lock is only held around dict access and copying, never
across network I/O, so a slow scan never blocks a status poll.

The terminal transition seals the report while holding the task lock, so a
task never reads as finished before its report is final. Lock order is
always task lock, then report lock.

Readers always get a deep copy. A report returned by get() is a snapshot:
later stage commits do not show up in it.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Callable, Dict, List, Optional

from redforge.models import (
    STATUS_TRANSITIONS,
    CertificateAssessment,
    DetectedTechnology,
    Finding,
    ScanReport,
    ScanStatus,
    ScanTask,
    SecurityHeaderCheck,
)
from redforge.scanner.base import NotFound, ReportSealed, now_utc

logger = logging.getLogger(__name__)


class TaskStore:
    """Registry of scan tasks, keyed by id, in creation order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tasks: Dict[str, ScanTask] = {}

    def insert(self, task: ScanTask) -> ScanTask:
        with self._lock:
            if task.id in self._tasks:
                raise ValueError(f"Duplicate task id {task.id}")
            self._tasks[task.id] = copy.deepcopy(task)
            return copy.deepcopy(task)

    def get(self, task_id: str) -> ScanTask:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                raise NotFound(f"Scan {task_id} not found")
            return copy.deepcopy(task)

    def list(self) -> List[ScanTask]:
        with self._lock:
            return [copy.deepcopy(t) for t in self._tasks.values()]

    def transition(
        self,
        task_id: str,
        status: ScanStatus,
        error: Optional[str] = None,
        before_commit: Optional[Callable[[ScanTask], None]] = None,
    ) -> ScanTask:
        """
        Move a task forward. Backward or repeated transitions raise ValueError.
        started_at is stamped on entering running, completed_at on entering a
        terminal state; neither is ever overwritten.

        before_commit receives the new snapshot while the old one is still
        the visible one. If it raises, the transition is not applied.
        """
        with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                raise NotFound(f"Scan {task_id} not found")

            if status not in STATUS_TRANSITIONS[current.status]:
                raise ValueError(
                    f"Illegal transition {current.status.value} -> {status.value} for {task_id}"
                )

            task = copy.deepcopy(current)
            now = now_utc()
            task.status = status
            if status == ScanStatus.RUNNING and task.started_at is None:
                task.started_at = now
            if status.is_terminal and task.completed_at is None:
                if task.started_at is None:
                    task.started_at = now
                task.completed_at = now
            if error:
                task.error = error

            if before_commit is not None:
                before_commit(copy.deepcopy(task))
            self._tasks[task_id] = task

            return copy.deepcopy(task)


class ReportStore:
    """One report per task id, created when the scan body starts."""

    def __init__(self):
        self._lock = threading.Lock()
        self._reports: Dict[str, ScanReport] = {}
        self._sealed: set = set()

    def create(self, task: ScanTask) -> ScanReport:
        with self._lock:
            report = ScanReport(task=copy.deepcopy(task))
            self._reports[task.id] = report
            return copy.deepcopy(report)

    def get(self, task_id: str) -> ScanReport:
        with self._lock:
            report = self._reports.get(task_id)
            if report is None:
                raise NotFound(f"Report for scan {task_id} not found")
            return copy.deepcopy(report)

    def _writable(self, task_id: str) -> ScanReport:
        # Caller holds the lock
        report = self._reports.get(task_id)
        if report is None:
            raise NotFound(f"Report for scan {task_id} not found")
        if task_id in self._sealed:
            raise ReportSealed(f"Report for scan {task_id} is final")
        return report

    def add_headers(self, task_id: str, headers: List[SecurityHeaderCheck]):
        with self._lock:
            self._writable(task_id).headers.extend(copy.deepcopy(headers))

    def set_certificate(self, task_id: str, certificate: CertificateAssessment):
        with self._lock:
            self._writable(task_id).certificate = copy.deepcopy(certificate)

    def add_technologies(self, task_id: str, technologies: List[DetectedTechnology]):
        with self._lock:
            self._writable(task_id).technologies.extend(copy.deepcopy(technologies))

    def add_findings(self, task_id: str, findings: List[Finding]):
        with self._lock:
            self._writable(task_id).findings.extend(copy.deepcopy(findings))

    def seal(self, task: ScanTask) -> ScanReport:
        """Re-sync the task snapshot and make the report read-only."""
        with self._lock:
            report = self._writable(task.id)
            report.task = copy.deepcopy(task)
            self._sealed.add(task.id)
            logger.debug(f"Report for scan {task.id} sealed")
            return copy.deepcopy(report)
