# redforge/scanner/base.py
"""
Base classes for the RedForge scan pipeline.

Architecture:
    ScanOrchestrator builds a ScanContext per task, then fans out to stages:

        HeaderAuditor ─┐
        CertificateAuditor ─┤
        TechnologyFingerprinter ─┼─> StageResult -> ReportStore
        Vulnerability stage ─┘      (probe engine + legacy probes + aggregator)

BaseEngine:  One stage of a scan. Performs its HTTP requests against the
             target and returns a StageResult. Never touches the stores.

A stage failing (DNS error, TLS handshake, unimplemented scan kind) never
takes down its siblings: run() turns the exception into a failed StageResult
and the orchestrator decides the final task status from all outcomes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import httpx

if TYPE_CHECKING:
    from redforge.models import (
        CertificateAssessment,
        DetectedTechnology,
        Finding,
        SecurityHeaderCheck,
    )

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def now_utc() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ScanError(Exception):
    """Base class for every error the scan layer raises on purpose."""


class InvalidInput(ScanError):
    """Bad target scheme or unknown scan kind. Raised before any task exists."""


class NotFound(ScanError):
    """Unknown task id, or no report has been created for it yet."""


class Unimplemented(ScanError):
    """Scan kind is accepted by start() but has no stage behind it."""


class ReportSealed(ScanError):
    """A stage tried to write into a report whose task is already terminal."""


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class StageResult:
    """
    Standardized output from one stage.

    Only the fields the stage is responsible for get filled; the orchestrator
    commits whatever is there into the report.

    Fields:
        stage_name:       "headers", "ssl", "technologies", "vulnerability"
        success:          Did the stage finish without a fatal error?
        headers:          SecurityHeaderCheck entries (header stage)
        certificate:      CertificateAssessment (ssl stage)
        technologies:     DetectedTechnology entries (fingerprint stage)
        findings:         Finding entries (vulnerability stage)
        errors:           "<ExceptionType>: <message>" for the fatal error
        duration_seconds: Wall-clock time the stage took
    """
    stage_name: str
    success: bool = True
    headers: List["SecurityHeaderCheck"] = field(default_factory=list)
    certificate: Optional["CertificateAssessment"] = None
    technologies: List["DetectedTechnology"] = field(default_factory=list)
    findings: List["Finding"] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def has_output(self) -> bool:
        return bool(
            self.headers or self.certificate or self.technologies or self.findings
        )

    def add_error(self, msg: str):
        self.errors.append(msg)


@dataclass
class ScanContext:
    """
    Everything a stage needs to know about the scan it is part of.

    transport is None in production. Tests inject an httpx.MockTransport
    here so no stage ever reaches the network.
    """
    target: str
    task_id: str
    transport: Optional[httpx.AsyncBaseTransport] = None
    max_concurrency: int = 10
    semaphore: Optional[asyncio.Semaphore] = None

    def __post_init__(self):
        if self.semaphore is None:
            self.semaphore = asyncio.Semaphore(self.max_concurrency)

    def client(self, timeout: float, follow_redirects: bool) -> httpx.AsyncClient:
        """
        Build an AsyncClient for one stage. Certificates are never verified:
        the point is to look at misconfigured targets, not to refuse them.
        """
        return httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=follow_redirects,
            verify=False,
            transport=self.transport,
            headers={"User-Agent": USER_AGENT},
        )


USER_AGENT = "Mozilla/5.0 (compatible; RedForge-Scanner/0.3)"


# ---------------------------------------------------------------------------
# Abstract base class
# ---------------------------------------------------------------------------

class BaseEngine(ABC):
    """
    Abstract base for scan stages.

    To create a new stage:
        1. Subclass BaseEngine
        2. Set the `name` property (e.g., "headers", "ssl")
        3. Implement `async execute(ctx, config) -> StageResult`

    The base class handles automatically:
        - Timing (duration_seconds is set automatically)
        - Error catching (exceptions become StageResult with success=False)
    """

    DEFAULT_CONFIG: Dict[str, Any] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique stage identifier, also used in failure messages."""
        ...

    async def run(self, ctx: ScanContext, config: Dict[str, Any] | None = None) -> StageResult:
        """
        Execute the stage with automatic timing and error handling.

        DO NOT OVERRIDE THIS METHOD. Override `execute()` instead.

        Returns StageResult, always, even on failure.
        """
        cfg = {**self.DEFAULT_CONFIG, **(config or {})}
        start = time.monotonic()

        try:
            result = await self.execute(ctx, cfg)
            result.stage_name = self.name
        except ScanError as e:
            logger.warning(f"Stage '{self.name}' failed for task {ctx.task_id}: {e}")
            result = StageResult(
                stage_name=self.name,
                success=False,
                errors=[f"{type(e).__name__}: {e}"],
            )
        except Exception as e:
            logger.exception(f"Stage '{self.name}' failed for {ctx.target}")
            result = StageResult(
                stage_name=self.name,
                success=False,
                errors=[f"{type(e).__name__}: {e}"],
            )
        finally:
            duration = round(time.monotonic() - start, 2)

        result.duration_seconds = duration
        return result

    @abstractmethod
    async def execute(self, ctx: ScanContext, config: Dict[str, Any]) -> StageResult:
        """
        Perform the stage's requests and interpretation. Override this.

        Raise freely: httpx errors, ScanError subclasses and anything else
        are converted into a failed StageResult by run().
        """
        ...
