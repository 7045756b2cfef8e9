# redforge/scanner/probes/ssrf.py
"""
A10:2021 Server-Side Request Forgery.

Checks performed:
    CRITICAL: Internal resource content returned for a URL-like parameter
              (at most one finding per parameter)
    MEDIUM:   Open redirect via ?redirect= (first hit only)
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe, with_param

SSRF_PARAMS = ["url", "uri", "path", "dest", "redirect", "fetch", "file", "document"]

# (payload, description)
SSRF_PAYLOADS: List[Tuple[str, str]] = [
    ("http://localhost", "Localhost"),
    ("http://127.0.0.1", "Loopback IP"),
    ("http://169.254.169.254", "AWS Metadata"),
    ("http://metadata.google.internal", "GCP Metadata"),
    ("http://[::1]", "IPv6 Loopback"),
    ("file:///etc/passwd", "File Protocol"),
]

SSRF_INDICATORS = ["root:", "localhost", "127.0.0.1", "ami-id", "instance-id", "kube-env"]

REDIRECT_PAYLOADS = ["https://evil.com", "//evil.com", "/\\evil.com"]
REDIRECT_MARKER = "evil.com"


class SSRFProbe(BaseProbe):
    owasp_id = "A10:2021"

    @property
    def name(self) -> str:
        return "ssrf"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        findings = []
        for param in SSRF_PARAMS:
            hit = await self._ssrf_param(client, ctx, param)
            if hit:
                findings.append(hit)

        redirect = await self._open_redirect(client, ctx)
        if redirect:
            findings.append(redirect)
        return findings

    async def _ssrf_param(self, client, ctx, param: str) -> Optional[Finding]:
        for payload, desc in SSRF_PAYLOADS:
            url = with_param(ctx.target, param, payload)
            resp = await self._fetch(client, ctx, url)
            if resp is None:
                continue

            body = resp.text.lower()
            indicator = next((i for i in SSRF_INDICATORS if i in body), None)
            if indicator:
                return self._finding(
                    ctx, Severity.CRITICAL,
                    f"SSRF: {desc}",
                    f"The {param} parameter makes the server fetch attacker-chosen "
                    "URLs and return internal content. Allow-list outbound "
                    "destinations and block internal address ranges.",
                    {"url": str(url), "parameter": param, "payload": payload,
                     "indicator": indicator},
                )
        return None

    async def _open_redirect(self, client, ctx) -> Optional[Finding]:
        for payload in REDIRECT_PAYLOADS:
            url = with_param(ctx.target, "redirect", payload)
            resp = await self._fetch(client, ctx, url)
            if resp is None:
                continue

            location = resp.headers.get("location", "")
            if REDIRECT_MARKER in location:
                return self._finding(
                    ctx, Severity.MEDIUM,
                    "Open redirect",
                    f"The redirect parameter sends users to arbitrary sites "
                    f"(payload {payload}). Validate redirect targets against an "
                    "allow list.",
                    {"url": str(url), "payload": payload, "redirect_to": location},
                )
        return None
