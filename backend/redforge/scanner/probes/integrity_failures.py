# redforge/scanner/probes/integrity_failures.py
"""
A08:2021 Software and Data Integrity Failures.

Checks performed:
    HIGH:   Scripts or stylesheets loaded over plain http://
    MEDIUM: External resources without Subresource Integrity
    HIGH:   Cookie value that looks like serialized PHP / Java / Python objects
"""

from __future__ import annotations

from typing import List

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe, parse_set_cookies

SERIALIZED_PREFIXES = ("O:", "rO0")      # PHP serialize, base64 Java serialization
SERIALIZED_MARKERS = ("__pickle", "__reduce")
SERIALIZED_MIN_LENGTH = 50


def looks_serialized(value: str) -> bool:
    if len(value) <= SERIALIZED_MIN_LENGTH:
        return False
    return value.startswith(SERIALIZED_PREFIXES) or any(m in value for m in SERIALIZED_MARKERS)


class IntegrityFailuresProbe(BaseProbe):
    owasp_id = "A08:2021"

    @property
    def name(self) -> str:
        return "integrity_failures"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        resp = await self._fetch(client, ctx, ctx.target)
        if resp is None:
            return []

        findings = []
        body = resp.text

        if "http://" in body and (".js" in body or ".css" in body):
            findings.append(self._finding(
                ctx, Severity.HIGH,
                "Resources loaded over insecure HTTP",
                "The page pulls JavaScript or CSS over http://, which a network "
                "attacker can tamper with. Load every resource over HTTPS.",
                {"url": ctx.target},
            ))

        has_external = '<script src="http' in body or "<link" in body
        has_sri = 'integrity="' in body and "sha" in body
        if has_external and not has_sri:
            findings.append(self._finding(
                ctx, Severity.MEDIUM,
                "External resources without SRI",
                "Externally hosted scripts or stylesheets carry no integrity "
                "attribute. Add Subresource Integrity hashes.",
                {"url": ctx.target},
            ))

        for cookie in parse_set_cookies(resp):
            if looks_serialized(cookie["value"]):
                findings.append(self._finding(
                    ctx, Severity.HIGH,
                    f"Serialized data in cookie: {cookie['name']}",
                    "The cookie value looks like a serialized object. Deserializing "
                    "client-controlled data can lead to remote code execution. Use "
                    "signed, data-only formats such as JSON.",
                    {"cookie": cookie["name"], "length": len(cookie["value"])},
                ))

        return findings
