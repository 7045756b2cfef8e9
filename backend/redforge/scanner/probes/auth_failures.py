# redforge/scanner/probes/auth_failures.py
"""
A07:2021 Identification and Authentication Failures.

Checks performed:
    HIGH:   Login form without a CSRF token
    MEDIUM: Login form without any password policy hint
    HIGH:   Session cookie without Secure
    HIGH:   Session cookie without HttpOnly
    INFO:   Reminder to test default credentials (always emitted)
"""

from __future__ import annotations

from typing import List

import httpx

from redforge.models import Finding, Severity
from redforge.scanner.base import ScanContext
from redforge.scanner.probes.base import BaseProbe, is_success, join_path, parse_set_cookies

LOGIN_PATHS = ["/login", "/signin", "/auth", "/user/login"]
CSRF_MARKERS = ("csrf", "token", "_token")


def is_session_cookie(name: str) -> bool:
    lower = name.lower()
    return "session" in lower or "sess" in lower or lower == "phpsessid"


class AuthFailuresProbe(BaseProbe):
    owasp_id = "A07:2021"

    @property
    def name(self) -> str:
        return "auth_failures"

    async def probe(self, client: httpx.AsyncClient, ctx: ScanContext) -> List[Finding]:
        findings = []

        for path in LOGIN_PATHS:
            url = join_path(ctx.target, path)
            resp = await self._fetch(client, ctx, url)
            if resp is None or not is_success(resp):
                continue

            # Only the password gate is case-insensitive
            body = resp.text
            if "password" not in body.lower():
                continue

            if not any(m in body for m in CSRF_MARKERS):
                findings.append(self._finding(
                    ctx, Severity.HIGH,
                    "Login form without CSRF protection",
                    "The login form carries no anti-CSRF token. Add a per-session "
                    "token and validate it on submit.",
                    {"url": url, "path": path},
                ))
            if "minimum" not in body:
                findings.append(self._finding(
                    ctx, Severity.MEDIUM,
                    "No visible password policy",
                    "The login page gives no password requirements. Enforce a minimum "
                    "length and check new passwords against breach lists.",
                    {"url": url, "path": path},
                ))

        resp = await self._fetch(client, ctx, ctx.target)
        if resp is not None:
            for cookie in parse_set_cookies(resp):
                if not is_session_cookie(cookie["name"]):
                    continue
                if not cookie["secure"]:
                    findings.append(self._finding(
                        ctx, Severity.HIGH,
                        f"Session cookie without Secure flag: {cookie['name']}",
                        "The session cookie can be sent over plain HTTP. Set Secure.",
                        {"cookie": cookie["name"]},
                    ))
                if not cookie["httponly"]:
                    findings.append(self._finding(
                        ctx, Severity.HIGH,
                        f"Session cookie without HttpOnly flag: {cookie['name']}",
                        "The session cookie is readable from JavaScript, so any XSS "
                        "can steal it. Set HttpOnly.",
                        {"cookie": cookie["name"]},
                    ))

        findings.append(self._finding(
            ctx, Severity.INFO,
            "Test for default credentials",
            "Manually verify that admin/admin, admin/password and vendor default "
            "accounts are disabled, and that failed logins trigger lockout.",
            {"note": "Manual verification required"},
        ))
        return findings
