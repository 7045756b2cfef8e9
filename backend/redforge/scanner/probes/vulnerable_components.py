# redforge/scanner/probes/vulnerable_components.py
"""
A06:2021 Vulnerable and Outdated Components.

Looks for known-old library paths in the landing page and for a Server
header that discloses a version.
"""

from __future__ import annotations

from typing import List, Tuple

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe

# (lowercase marker, library, severity)
OUTDATED_LIBRARIES: List[Tuple[str, str, Severity]] = [
    ("jquery-1.", "jQuery 1.x", Severity.HIGH),
    ("jquery-2.", "jQuery 2.x", Severity.MEDIUM),
    ("angular.js/1.0", "AngularJS 1.0", Severity.HIGH),
    ("angular.js/1.2", "AngularJS 1.2", Severity.HIGH),
    ("bootstrap/3.", "Bootstrap 3.x", Severity.MEDIUM),
    ("wp-content/plugins/", "WordPress plugins", Severity.MEDIUM),
    ("lodash@4.17.1", "Lodash 4.17.1x", Severity.HIGH),
    ("moment.js/2.19.", "Moment.js 2.19", Severity.LOW),
]


class VulnerableComponentsProbe(BaseProbe):
    owasp_id = "A06:2021"

    @property
    def name(self) -> str:
        return "vulnerable_components"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        resp = await self._fetch(client, ctx, ctx.target)
        if resp is None:
            return []

        findings = []
        lower = resp.text.lower()
        for marker, lib, severity in OUTDATED_LIBRARIES:
            if marker in lower:
                findings.append(self._finding(
                    ctx, severity,
                    f"Outdated component: {lib}",
                    f"The page loads {lib}, which has known vulnerabilities. "
                    "Upgrade to a supported release.",
                    {"library": lib, "marker": marker},
                ))

        server = resp.headers.get("server", "")
        if "/" in server:
            findings.append(self._finding(
                ctx, Severity.LOW,
                "Server version disclosed",
                f"The Server header reveals '{server}'. Attackers use exact versions "
                "to pick exploits. Hide the version string.",
                {"server": server},
            ))

        return findings
