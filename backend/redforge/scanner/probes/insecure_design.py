# redforge/scanner/probes/insecure_design.py
"""
A04:2021 Insecure Design.

Checks performed:
    MEDIUM: 10 back-to-back requests all succeed (no rate limiting)
    MEDIUM: Landing page distinguishes unknown users (user enumeration)
"""

from __future__ import annotations

from typing import List

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe, is_success

RATE_LIMIT_BURST = 10
ENUMERATION_MARKERS = ("User not found", "Invalid username")


class InsecureDesignProbe(BaseProbe):
    owasp_id = "A04:2021"

    @property
    def name(self) -> str:
        return "insecure_design"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        base = await self._fetch(client, ctx, ctx.target)
        if base is None:
            return []

        findings = []
        ok = 0
        for _ in range(RATE_LIMIT_BURST):
            resp = await self._fetch(client, ctx, ctx.target)
            if resp is not None and is_success(resp):
                ok += 1

        if ok == RATE_LIMIT_BURST:
            findings.append(self._finding(
                ctx, Severity.MEDIUM,
                "No rate limiting",
                f"{RATE_LIMIT_BURST} consecutive requests were all served. Without "
                "rate limiting the site is open to brute force and scraping.",
                {"test_requests": RATE_LIMIT_BURST},
            ))

        body = base.text
        if any(m in body for m in ENUMERATION_MARKERS):
            findings.append(self._finding(
                ctx, Severity.MEDIUM,
                "User enumeration",
                "The application tells apart unknown usernames and wrong passwords. "
                "Return one generic authentication error.",
                {"url": ctx.target},
            ))

        return findings
