# redforge/scanner/engines/ssl_engine.py
"""
Transport security stage (CertificateAuditor).

The live check is deliberately coarse: one GET with redirects followed, then
look at where we ended up.

    - final URL is not https   -> grade F, one vulnerability note
    - final URL is https       -> grade A, subject = hostname, TLS 1.2+

A handshake or connection failure is a stage failure.

calculate_grade() and check_protocol_weaknesses() are the detailed scorer
for when protocol and cipher enumeration is available. They are not wired
into the live check yet; callers with enumeration data can use them directly.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from redforge.models import CertificateAssessment
from redforge.scanner.base import BaseEngine, ScanContext, StageResult

logger = logging.getLogger(__name__)

NOT_HTTPS_NOTE = "Site is not using HTTPS: traffic is sent unencrypted"

WEAK_CIPHER_MARKERS = ("RC4", "3DES", "DES-CBC3")

# Score thresholds, checked top-down
GRADE_THRESHOLDS = [
    (90, "A+"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
]


def normalize_protocol(name: str) -> str:
    """'TLS 1.0', 'tls1_0', 'TLSv1' -> 'TLSv1.0'."""
    m = re.search(r"(\d)(?:[._](\d))?", name or "")
    if not m:
        return name
    return f"TLSv{m.group(1)}.{m.group(2) or '0'}"


def calculate_grade(protocols: List[str], ciphers: List[str]) -> str:
    """
    Score from 100:
        -20 for each of TLS 1.0 / TLS 1.1 enabled
        -10 if TLS 1.3 is not offered
        -30 if any RC4 or 3DES suite is offered
    """
    enabled = {normalize_protocol(p) for p in protocols}
    score = 100

    for legacy in ("TLSv1.0", "TLSv1.1"):
        if legacy in enabled:
            score -= 20
    if "TLSv1.3" not in enabled:
        score -= 10
    if any(m in c.upper() for c in ciphers for m in WEAK_CIPHER_MARKERS):
        score -= 30

    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def check_protocol_weaknesses(protocols: List[str], ciphers: List[str]) -> List[str]:
    enabled = {normalize_protocol(p) for p in protocols}
    notes = []
    if "TLSv1.0" in enabled:
        notes.append("TLS 1.0 enabled (vulnerable to POODLE/BEAST)")
    if "TLSv1.1" in enabled:
        notes.append("TLS 1.1 enabled (deprecated)")
    upper = [c.upper() for c in ciphers]
    if any("RC4" in c for c in upper):
        notes.append("RC4 cipher suites enabled")
    if any("3DES" in c or "DES-CBC3" in c for c in upper):
        notes.append("3DES cipher suites enabled (SWEET32)")
    return notes


class SSLEngine(BaseEngine):
    """
    Profile config options:
        timeout: float (default 10)
    """

    DEFAULT_CONFIG = {"timeout": 10}

    @property
    def name(self) -> str:
        return "ssl"

    async def execute(self, ctx: ScanContext, config: Dict[str, Any]) -> StageResult:
        async with ctx.client(timeout=config["timeout"], follow_redirects=True) as client:
            resp = await client.get(ctx.target)

        final_url = resp.url
        assessment = self._assess(final_url.scheme, final_url.host)
        logger.info(f"TLS check for {ctx.target}: grade {assessment.grade}")
        return StageResult(stage_name=self.name, certificate=assessment)

    def _assess(self, scheme: str, host: Optional[str]) -> CertificateAssessment:
        if scheme != "https":
            return CertificateAssessment(
                grade="F",
                vulnerabilities=[NOT_HTTPS_NOTE],
            )
        return CertificateAssessment(
            grade="A",
            subject=host,
            tls_versions=["TLS 1.2+"],
        )
