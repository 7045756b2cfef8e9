# redforge/scanner/probes/logging_failures.py
"""
A09:2021 Security Logging and Monitoring Failures.

Logging itself cannot be observed from outside, so this battery only checks
that error pages do not leak internals, then always adds a reminder.
"""

from __future__ import annotations

from typing import List

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe, join_path

ERROR_PATHS = [
    "/nonexistent-page-12345",
    "/?id=99999999",
    "/<script>alert(1)</script>",
]

LEAK_MARKERS = [
    "stack trace", "traceback", "exception",
    "line ", "file:", "at ",
    "sql", "query", "database",
]


class LoggingFailuresProbe(BaseProbe):
    owasp_id = "A09:2021"

    @property
    def name(self) -> str:
        return "logging_failures"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        findings = []

        for path in ERROR_PATHS:
            url = join_path(ctx.target, path)
            resp = await self._fetch(client, ctx, url)
            if resp is None:
                continue

            lower = resp.text.lower()
            marker = next((m for m in LEAK_MARKERS if m in lower), None)
            if marker:
                findings.append(self._finding(
                    ctx, Severity.MEDIUM,
                    "Error page leaks internal details",
                    "An error page shows stack traces or technical details. Serve a "
                    "generic error page and keep details in server-side logs.",
                    {"url": url, "marker": marker},
                ))
                break

        findings.append(self._finding(
            ctx, Severity.INFO,
            "Implement security logging and monitoring",
            "Make sure failed logins, access to sensitive resources, input validation "
            "failures and authorization failures are logged and alerted on.",
            {"note": "Manual verification required"},
        ))
        return findings
