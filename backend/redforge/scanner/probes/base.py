# redforge/scanner/probes/base.py
"""
Base class for vulnerability probe batteries.

A battery is one OWASP Top 10 category (or the legacy set): a fixed list of
single-shot requests plus the heuristics that turn responses into Findings.

Probes are heuristic signal checks, not exploitation. A request that fails
(timeout, refused, TLS) simply means "no match": _fetch() returns None and
the battery moves on. A battery that blows up for any other reason is
logged and contributes nothing; siblings keep going.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from redforge.models import Finding, FindingKind, Severity
from redforge.scanner.base import ScanContext

logger = logging.getLogger(__name__)


def join_path(target: str, path: str) -> str:
    """Append a path to the target without doubling the slash."""
    return target.rstrip("/") + path


def with_param(target: str, name: str, value: str) -> httpx.URL:
    """Target URL with one query parameter set (URL-encoded by httpx)."""
    return httpx.URL(target).copy_merge_params({name: value})


def is_success(resp: httpx.Response) -> bool:
    return 200 <= resp.status_code < 300


def parse_set_cookies(resp: httpx.Response) -> List[Dict[str, Any]]:
    """Name, value and security flags of every Set-Cookie header."""
    cookies = []
    for header_value in resp.headers.get_list("set-cookie"):
        parts = header_value.split(";")
        name, _, value = parts[0].strip().partition("=")
        flags = {p.strip().split("=")[0].lower() for p in parts[1:]}
        cookies.append({
            "name": name.strip(),
            "value": value.strip(),
            "secure": "secure" in flags,
            "httponly": "httponly" in flags,
        })
    return cookies


class BaseProbe(ABC):
    """
    To create a new battery:
        1. Subclass BaseProbe
        2. Set `name` and `owasp_id` (e.g., "access_control", "A01:2021")
        3. Implement `async probe(client, ctx) -> List[Finding]`
    """

    owasp_id: Optional[str] = None

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    async def run(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        """
        Execute the battery with error handling.

        DO NOT OVERRIDE THIS METHOD. Override `probe()` instead.
        """
        try:
            findings = await self.probe(client, ctx)
        except Exception:
            logger.exception(f"Probe battery '{self.name}' failed for {ctx.target}")
            return []

        logger.debug(f"Battery '{self.name}' produced {len(findings)} findings for {ctx.target}")
        return findings

    @abstractmethod
    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        ...

    # ─────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────

    async def _fetch(
        self,
        client: httpx.AsyncClient,
        ctx: ScanContext,
        url,
        method: str = "GET",
        **kwargs,
    ) -> Optional[httpx.Response]:
        """One request under the shared concurrency limit. None on any transport error."""
        async with ctx.semaphore:
            try:
                return await client.request(method, url, **kwargs)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.debug(f"[{self.name}] {method} {url} failed: {e}")
                return None

    def _finding(
        self,
        ctx: ScanContext,
        severity: Severity,
        title: str,
        description: str,
        evidence: Dict[str, Any] | None = None,
    ) -> Finding:
        raw = {"owasp": self.owasp_id} if self.owasp_id else {}
        raw.update(evidence or {})
        return Finding(
            task_id=ctx.task_id,
            kind=FindingKind.VULNERABILITY,
            severity=severity,
            title=title,
            description=description,
            raw_evidence=raw,
        )
