# redforge/scanner/probes/legacy.py
"""
Legacy probe set.

The single-payload checks that predate the OWASP batteries. They run next to
the probe engine as a second source on the same target; the ResultAggregator
folds their output in and drops titles the engine already reported.

Checks performed:
    HIGH:     Canary string reflected from ?search=
    CRITICAL: Database error after a lone single quote in ?id=
    MEDIUM:   Directory listing on the site root
    MEDIUM:   Access-Control-Allow-Origin: *
    LOW:      TRACE method enabled
    LOW:      Missing HSTS header
    LOW:      Missing X-Content-Type-Options
"""

from __future__ import annotations

from typing import List

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe, is_success, with_param

XSS_CANARY = "<rf-canary-7b1e>"
DB_ERROR_MARKERS = ["you have an error in your sql syntax", "mysql_fetch", "ora-01756", "pg_query", "sqlstate"]
PROBE_ORIGIN = "https://origin-check.invalid"


class LegacyProbeSet(BaseProbe):

    @property
    def name(self) -> str:
        return "legacy"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        findings = []

        url = with_param(ctx.target, "search", XSS_CANARY)
        resp = await self._fetch(client, ctx, url)
        if resp is not None and XSS_CANARY in resp.text:
            findings.append(self._finding(
                ctx, Severity.HIGH,
                "Unencoded input reflection",
                "A marker sent in the search parameter comes back without HTML "
                "encoding, which usually means reflected XSS.",
                {"url": str(url)},
            ))

        url = with_param(ctx.target, "id", "'")
        resp = await self._fetch(client, ctx, url)
        if resp is not None:
            lower = resp.text.lower()
            if any(m in lower for m in DB_ERROR_MARKERS):
                findings.append(self._finding(
                    ctx, Severity.CRITICAL,
                    "Database error on quote character",
                    "A single quote in the id parameter produces a database error. "
                    "The parameter is likely concatenated into SQL.",
                    {"url": str(url)},
                ))

        resp = await self._fetch(client, ctx, ctx.target, headers={"Origin": PROBE_ORIGIN})
        if resp is not None:
            if "Index of /" in resp.text:
                findings.append(self._finding(
                    ctx, Severity.MEDIUM,
                    "Directory listing on site root",
                    "The site root returns an auto-generated file index.",
                    {"url": ctx.target},
                ))
            if resp.headers.get("access-control-allow-origin", "").strip() == "*":
                findings.append(self._finding(
                    ctx, Severity.MEDIUM,
                    "Permissive CORS policy",
                    "Access-Control-Allow-Origin is '*', so any site can read "
                    "responses. Restrict it to trusted origins.",
                    {"origin_sent": PROBE_ORIGIN},
                ))
            if "strict-transport-security" not in resp.headers:
                findings.append(self._finding(
                    ctx, Severity.LOW,
                    "Missing HSTS header",
                    "Strict-Transport-Security is not set.",
                    {"header": "Strict-Transport-Security"},
                ))
            if "x-content-type-options" not in resp.headers:
                findings.append(self._finding(
                    ctx, Severity.LOW,
                    "Missing X-Content-Type-Options header",
                    "Browsers may MIME-sniff responses. Set X-Content-Type-Options: nosniff.",
                    {"header": "X-Content-Type-Options"},
                ))

        resp = await self._fetch(client, ctx, ctx.target, method="TRACE")
        if resp is not None and is_success(resp):
            findings.append(self._finding(
                ctx, Severity.LOW,
                "TRACE method enabled",
                "The server answers TRACE requests, which can expose headers such as "
                "cookies to cross-site tracing. Disable TRACE.",
                {"status": resp.status_code},
            ))

        return findings
