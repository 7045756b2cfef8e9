# redforge/scanner/probes/access_control.py
"""
A01:2021 Broken Access Control.

Checks performed:
    HIGH:     Admin path answers 200
    MEDIUM:   Admin path answers 403 (exists, access-controlled)
    HIGH:     IDOR-style parameter returns user data (first hit only)
    CRITICAL: Path traversal via ?file= returns a system file (first hit only)
"""

from __future__ import annotations

from typing import List

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe, is_success, join_path, with_param

ADMIN_PATHS = [
    "/admin", "/administrator", "/admin.php", "/admin/", "/wp-admin",
    "/adminpanel", "/cpanel", "/controlpanel", "/dashboard",
    "/manage", "/manager", "/backend",
]

# (parameter, value)
IDOR_PATTERNS = [
    ("id", "1"),
    ("user_id", "1"),
    ("doc_id", "1"),
    ("file_id", "1"),
]
IDOR_MARKERS = ("email", "username", "user")

TRAVERSAL_PAYLOADS = [
    "../../../etc/passwd",
    "..\\..\\..\\windows\\system32\\config\\sam",
    "....//....//....//etc/passwd",
]
TRAVERSAL_MARKERS = ("root:", "[boot loader]")


class AccessControlProbe(BaseProbe):
    owasp_id = "A01:2021"

    @property
    def name(self) -> str:
        return "access_control"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        findings = []
        findings.extend(await self._admin_paths(client, ctx))
        findings.extend(await self._idor(client, ctx))
        findings.extend(await self._path_traversal(client, ctx))
        return findings

    async def _admin_paths(self, client, ctx) -> List[Finding]:
        findings = []
        for path in ADMIN_PATHS:
            url = join_path(ctx.target, path)
            resp = await self._fetch(client, ctx, url)
            if resp is None:
                continue

            if resp.status_code == 200:
                findings.append(self._finding(
                    ctx, Severity.HIGH,
                    f"Exposed admin interface: {path}",
                    f"The admin path {path} is reachable without authentication. "
                    "Restrict it with authentication and network-level allow lists.",
                    {"url": url, "status": 200},
                ))
            elif resp.status_code == 403:
                findings.append(self._finding(
                    ctx, Severity.MEDIUM,
                    f"Admin path exists but is forbidden: {path}",
                    f"{path} answers 403, which confirms the admin area exists. "
                    "Consider returning 404 and limiting access by network.",
                    {"url": url, "status": 403},
                ))
        return findings

    async def _idor(self, client, ctx) -> List[Finding]:
        for param, value in IDOR_PATTERNS:
            url = with_param(ctx.target, param, value)
            resp = await self._fetch(client, ctx, url)
            if resp is None or not is_success(resp):
                continue

            body = resp.text
            if any(m in body for m in IDOR_MARKERS):
                return [self._finding(
                    ctx, Severity.HIGH,
                    f"Potential IDOR: ?{param}={value}",
                    f"Requesting ?{param}={value} returns what looks like user data. "
                    "Verify that object access is checked against the current user.",
                    {"url": str(url), "parameter": param},
                )]
        return []

    async def _path_traversal(self, client, ctx) -> List[Finding]:
        for payload in TRAVERSAL_PAYLOADS:
            url = with_param(ctx.target, "file", payload)
            resp = await self._fetch(client, ctx, url)
            if resp is None:
                continue

            body = resp.text
            if any(m in body for m in TRAVERSAL_MARKERS):
                return [self._finding(
                    ctx, Severity.CRITICAL,
                    "Path traversal via file parameter",
                    "The file parameter can be used to read files outside the web "
                    "root. Canonicalize paths and serve files from an allow list only.",
                    {"url": str(url), "payload": payload},
                )]
        return []
