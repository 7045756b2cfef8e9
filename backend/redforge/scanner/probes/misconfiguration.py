# redforge/scanner/probes/misconfiguration.py
"""
A05:2021 Security Misconfiguration.

Checks performed:
    CRITICAL..INFO: Sensitive file reachable (severity per file, see table)
    MEDIUM:         Directory listing enabled on a common directory
    MEDIUM:         Missing Strict-Transport-Security
    MEDIUM:         Missing both X-Frame-Options and CSP (clickjacking)
    LOW:            Missing Content-Security-Policy
"""

from __future__ import annotations

from typing import List, Tuple

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe, is_success, join_path

# (path, description, severity)
SENSITIVE_FILES: List[Tuple[str, str, Severity]] = [
    ("/.git/config", "Git repository config", Severity.CRITICAL),
    ("/.env", "Environment file", Severity.CRITICAL),
    ("/config.php", "PHP config file", Severity.HIGH),
    ("/wp-config.php", "WordPress config", Severity.HIGH),
    ("/.htaccess", "Apache .htaccess", Severity.MEDIUM),
    ("/phpinfo.php", "PHP info page", Severity.HIGH),
    ("/web.config", "IIS web.config", Severity.HIGH),
    ("/backup.sql", "Database backup", Severity.CRITICAL),
    ("/database.sql", "Database backup", Severity.CRITICAL),
    ("/.DS_Store", "macOS .DS_Store", Severity.LOW),
    ("/robots.txt", "robots.txt", Severity.INFO),
    ("/sitemap.xml", "sitemap.xml", Severity.INFO),
]

LISTING_DIRS = ["/uploads", "/images", "/static", "/assets", "/backup", "/tmp"]
LISTING_MARKERS = ("Index of", "Directory listing", "Parent Directory")


class MisconfigurationProbe(BaseProbe):
    owasp_id = "A05:2021"

    @property
    def name(self) -> str:
        return "misconfiguration"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        findings = []

        for path, desc, severity in SENSITIVE_FILES:
            url = join_path(ctx.target, path)
            resp = await self._fetch(client, ctx, url)
            if resp is not None and is_success(resp):
                findings.append(self._finding(
                    ctx, severity,
                    f"Accessible sensitive file: {desc}",
                    f"{path} is publicly readable. Remove it from the web root or "
                    "deny access in the server configuration.",
                    {"url": url, "path": path, "status": resp.status_code},
                ))

        for path in LISTING_DIRS:
            url = join_path(ctx.target, path)
            resp = await self._fetch(client, ctx, url)
            if resp is None:
                continue
            if any(m in resp.text for m in LISTING_MARKERS):
                findings.append(self._finding(
                    ctx, Severity.MEDIUM,
                    f"Directory listing enabled: {path}",
                    f"{path} returns an auto-generated file index. Disable directory "
                    "listing in the web server.",
                    {"url": url},
                ))

        resp = await self._fetch(client, ctx, ctx.target)
        if resp is not None:
            findings.extend(self._header_checks(ctx, resp.headers))

        return findings

    def _header_checks(self, ctx: ScanContext, headers: httpx.Headers) -> List[Finding]:
        findings = []
        has_hsts = "strict-transport-security" in headers
        has_xfo = "x-frame-options" in headers
        has_csp = "content-security-policy" in headers

        if not has_hsts:
            findings.append(self._finding(
                ctx, Severity.MEDIUM,
                "Missing HSTS header",
                "Strict-Transport-Security is not set, so browsers can be downgraded "
                "to HTTP. Add max-age=31536000; includeSubDomains.",
                {"header": "Strict-Transport-Security"},
            ))
        if not has_xfo and not has_csp:
            findings.append(self._finding(
                ctx, Severity.MEDIUM,
                "Clickjacking protection missing",
                "Neither X-Frame-Options nor a Content-Security-Policy is set, so the "
                "page can be framed by other sites.",
                {"header": "X-Frame-Options"},
            ))
        if not has_csp:
            findings.append(self._finding(
                ctx, Severity.LOW,
                "Missing Content-Security-Policy",
                "No Content-Security-Policy is set. A CSP limits the impact of XSS.",
                {"header": "Content-Security-Policy"},
            ))
        return findings
