# redforge/scanner/probes/crypto_failures.py
"""
A02:2021 Cryptographic Failures.

Checks performed:
    HIGH:     Target is served over plain HTTP
    MEDIUM:   HTTPS target, but its http:// form does not redirect to https://
    CRITICAL: Secrets (API keys, tokens, passwords, private keys) in the page source
    LOW:      Password input without autocomplete="off"
"""

from __future__ import annotations

import re
from typing import List

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe

# (compiled pattern, secret name)
SECRET_PATTERNS = [
    (re.compile(r"""api[_-]?key['"]?\s*[:=]\s*['"]([a-zA-Z0-9_\-]{20,})""", re.I), "API Key"),
    (re.compile(r"""secret[_-]?key['"]?\s*[:=]\s*['"]([a-zA-Z0-9_\-]{20,})""", re.I), "Secret Key"),
    (re.compile(r"""access[_-]?token['"]?\s*[:=]\s*['"]([a-zA-Z0-9_\-]{20,})""", re.I), "Access Token"),
    (re.compile(r"""password['"]?\s*[:=]\s*['"]([^'"]{3,})""", re.I), "Password"),
    (re.compile(r"""aws[_-]?access[_-]?key['"]?\s*[:=]\s*['"]([A-Z0-9]{20})""", re.I), "AWS Access Key"),
    (re.compile(r"""private[_-]?key['"]?\s*[:=]""", re.I), "Private Key"),
    (re.compile(r"-----BEGIN (RSA |DSA )?PRIVATE KEY-----"), "PEM Private Key"),
]


class CryptoFailuresProbe(BaseProbe):
    owasp_id = "A02:2021"

    @property
    def name(self) -> str:
        return "crypto_failures"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        findings = []
        target = ctx.target

        if target.startswith("http://"):
            findings.append(self._finding(
                ctx, Severity.HIGH,
                "Site does not use HTTPS",
                "All traffic, including credentials and session cookies, is sent in "
                "clear text. Serve the site over HTTPS only.",
                {"url": target},
            ))

        if target.startswith("https://"):
            http_url = "http://" + target[len("https://"):]
            resp = await self._fetch(client, ctx, http_url)
            if resp is not None:
                location = resp.headers.get("location", "")
                if not location.startswith("https://"):
                    findings.append(self._finding(
                        ctx, Severity.MEDIUM,
                        "HTTP does not redirect to HTTPS",
                        "Requests to the http:// form of the site are not redirected to "
                        "https://, so users can end up on an unencrypted connection.",
                        {"http_url": http_url, "redirect": location},
                    ))

        resp = await self._fetch(client, ctx, target)
        if resp is not None:
            body = resp.text
            for pattern, secret in SECRET_PATTERNS:
                if pattern.search(body):
                    findings.append(self._finding(
                        ctx, Severity.CRITICAL,
                        f"{secret} exposed in page source",
                        f"The page source contains what looks like a hard-coded {secret}. "
                        "Remove it, rotate it, and load secrets from the environment "
                        "or a secrets manager.",
                        {"type": secret, "pattern": pattern.pattern},
                    ))

            if 'type="password"' in body and 'autocomplete="off"' not in body:
                findings.append(self._finding(
                    ctx, Severity.LOW,
                    "Password field allows autocomplete",
                    'A password input does not set autocomplete="off", so browsers '
                    "may cache the value.",
                    {"url": target},
                ))

        return findings
