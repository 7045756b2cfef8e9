# redforge/scanner/engines/header_engine.py
"""
HTTP Security Headers stage (HeaderAuditor).

One GET against the target (redirects followed), then a fixed checklist.

Checklist, in report order:
    - Strict-Transport-Security   secure if it has max-age= and is > 20 chars
    - Content-Security-Policy     secure if > 10 chars
    - X-Frame-Options             secure if DENY or SAMEORIGIN
    - X-Content-Type-Options      secure if nosniff
    - Referrer-Policy             secure if non-empty
    - Permissions-Policy          secure if non-empty
    - X-XSS-Protection            secure if it contains "1"

Disclosure headers, appended only when present and always insecure:
    - Server
    - X-Powered-By

A failed GET is a stage failure, not an all-missing checklist.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from redforge.models import SecurityHeaderCheck
from redforge.scanner.base import BaseEngine, ScanContext, StageResult

logger = logging.getLogger(__name__)


def _hsts_ok(v: str) -> bool:
    return "max-age=" in v and len(v) > 20


def _csp_ok(v: str) -> bool:
    return len(v) > 10


def _xfo_ok(v: str) -> bool:
    upper = v.upper()
    return "DENY" in upper or "SAMEORIGIN" in upper


def _xcto_ok(v: str) -> bool:
    return "nosniff" in v.lower()


def _non_empty(v: str) -> bool:
    return bool(v.strip())


def _xss_ok(v: str) -> bool:
    return "1" in v


# (header name, rule, recommendation), order matters for the report
SECURITY_HEADERS: List[tuple] = [
    (
        "strict-transport-security", _hsts_ok,
        "Add Strict-Transport-Security: max-age=31536000; includeSubDomains",
    ),
    (
        "content-security-policy", _csp_ok,
        "Define a Content-Security-Policy, starting from default-src 'self'",
    ),
    (
        "x-frame-options", _xfo_ok,
        "Set X-Frame-Options: DENY (or SAMEORIGIN) to prevent clickjacking",
    ),
    (
        "x-content-type-options", _xcto_ok,
        "Set X-Content-Type-Options: nosniff to stop MIME sniffing",
    ),
    (
        "referrer-policy", _non_empty,
        "Set Referrer-Policy: strict-origin-when-cross-origin",
    ),
    (
        "permissions-policy", _non_empty,
        "Set a Permissions-Policy restricting camera, microphone and geolocation",
    ),
    (
        "x-xss-protection", _xss_ok,
        "Set X-XSS-Protection: 1; mode=block for legacy browsers",
    ),
]

DISCLOSURE_HEADERS = {
    "server": "Remove version information from the Server header",
    "x-powered-by": "Remove the X-Powered-By header to avoid disclosing the stack",
}


def audit_headers(headers) -> List[SecurityHeaderCheck]:
    """
    Evaluate a header mapping against the checklist.
    `headers` must support case-insensitive .get() (httpx.Headers does).
    """
    checks = []
    for name, rule, recommendation in SECURITY_HEADERS:
        value: Optional[str] = headers.get(name)
        present = value is not None
        checks.append(SecurityHeaderCheck(
            header_name=name,
            observed_value=value,
            is_present=present,
            is_secure=present and rule(value),
            recommendation=recommendation,
        ))

    for name, recommendation in DISCLOSURE_HEADERS.items():
        value = headers.get(name)
        if value is not None:
            checks.append(SecurityHeaderCheck(
                header_name=name,
                observed_value=value,
                is_present=True,
                is_secure=False,
                recommendation=recommendation,
            ))

    return checks


class HeaderEngine(BaseEngine):
    """
    Profile config options:
        timeout: float (default 10)
    """

    DEFAULT_CONFIG = {"timeout": 10}

    @property
    def name(self) -> str:
        return "headers"

    async def execute(self, ctx: ScanContext, config: Dict[str, Any]) -> StageResult:
        async with ctx.client(timeout=config["timeout"], follow_redirects=True) as client:
            resp = await client.get(ctx.target)

        checks = audit_headers(resp.headers)
        insecure = sum(1 for c in checks if not c.is_secure)
        logger.info(
            f"Header audit for {ctx.target}: {len(checks)} checks, {insecure} insecure"
        )
        return StageResult(stage_name=self.name, headers=checks)
