# redforge/scanner/probe_engine.py
"""
Vulnerability probe engine and the vulnerability stage built on it.

VulnerabilityProbeEngine runs the ten OWASP batteries concurrently over one
shared client. Requests are bounded by the ScanContext semaphore; the output
keeps the fixed A01 -> A10 order regardless of which battery finishes first.

VulnerabilityStage is what the orchestrator schedules for the
"vulnerability" and "full" scan kinds:

    VulnerabilityProbeEngine.scan_all ─┐
                                       ├─> ResultAggregator.merge -> findings
    LegacyProbeSet.run ────────────────┘

Probe client: certificates not verified, redirects NOT followed (several
checks look at the Location header), 15 s per request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from redforge.models import Finding
from redforge.scanner.aggregator import ResultAggregator
from redforge.scanner.base import BaseEngine, ScanContext, StageResult
from redforge.scanner.probes import ALL_PROBES, LegacyProbeSet
from redforge.scanner.probes.base import BaseProbe

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 15


class VulnerabilityProbeEngine:
    """Runs the OWASP Top 10 batteries against one target."""

    def __init__(self, probes: Optional[List[BaseProbe]] = None):
        self.probes = probes if probes is not None else [cls() for cls in ALL_PROBES.values()]

    async def scan_all(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        results = await asyncio.gather(*(p.run(client, ctx) for p in self.probes))

        findings: List[Finding] = []
        for probe, batch in zip(self.probes, results):
            logger.debug(f"[{ctx.task_id}] {probe.owasp_id or probe.name}: {len(batch)} findings")
            findings.extend(batch)
        return findings


class VulnerabilityStage(BaseEngine):
    """
    Profile config options:
        timeout: float (default 15)
    """

    DEFAULT_CONFIG = {"timeout": PROBE_TIMEOUT}

    def __init__(
        self,
        engine: Optional[VulnerabilityProbeEngine] = None,
        legacy: Optional[BaseProbe] = None,
    ):
        self.engine = engine or VulnerabilityProbeEngine()
        self.legacy = legacy or LegacyProbeSet()

    @property
    def name(self) -> str:
        return "vulnerability"

    async def execute(self, ctx: ScanContext, config: Dict[str, Any]) -> StageResult:
        async with ctx.client(timeout=config["timeout"], follow_redirects=False) as client:
            engine_findings, legacy_findings = await asyncio.gather(
                self.engine.scan_all(client, ctx),
                self.legacy.run(client, ctx),
            )

        merged = ResultAggregator.merge(engine_findings, legacy_findings)
        logger.info(
            f"Vulnerability probes for {ctx.target}: {len(engine_findings)} engine + "
            f"{len(legacy_findings)} legacy -> {len(merged)} after dedup"
        )
        return StageResult(stage_name=self.name, findings=merged)
