# redforge/models.py
"""
Scan records shared by the stores, the stages and the HTTP layer.

Everything here is a plain dataclass. The stores hand out deep copies, so
callers are free to mutate what they receive without touching the live state.

to_dict() produces the shape the UI and the export collaborator consume:
ISO-8601 timestamps, lowercase enum strings, string ids.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from redforge.scanner.base import now_utc


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ScanKind(str, Enum):
    FULL = "full"
    QUICK = "quick"
    VULNERABILITY = "vulnerability"
    PORT = "port"
    SSL = "ssl"
    HEADERS = "headers"

    @classmethod
    def parse(cls, value: str) -> "ScanKind":
        """Map a wire string to a kind. Raises ValueError for unknown kinds."""
        return cls((value or "").strip().lower())


class ScanStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanStatus.COMPLETED, ScanStatus.FAILED)


# Allowed forward transitions; anything else is rejected by the TaskStore
STATUS_TRANSITIONS = {
    ScanStatus.PENDING: {ScanStatus.RUNNING, ScanStatus.FAILED},
    ScanStatus.RUNNING: {ScanStatus.COMPLETED, ScanStatus.FAILED},
    ScanStatus.COMPLETED: set(),
    ScanStatus.FAILED: set(),
}


class FindingKind(str, Enum):
    PORT = "port"
    VULNERABILITY = "vulnerability"
    SSL = "ssl"
    HEADER = "header"
    TECHNOLOGY = "technology"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Higher is worse. Used for descending sort."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}


class TechnologyCategory(str, Enum):
    FRAMEWORK = "framework"
    CMS = "cms"
    SERVER = "server"
    ANALYTICS = "analytics"
    CDN = "cdn"
    LANGUAGE = "language"
    DATABASE = "database"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class ScanTask:
    """
    One requested scan and its lifecycle.

    id is fixed at creation. status only moves forward
    (pending -> running -> completed|failed) and the timestamps are
    stamped once, by the TaskStore, on the matching transition.
    error carries the aggregated stage failures, and may be set on a
    completed task when only some stages failed.
    """
    target: str
    kind: ScanKind
    id: str = field(default_factory=new_id)
    status: ScanStatus = ScanStatus.PENDING
    created_at: datetime = field(default_factory=now_utc)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "target": self.target,
            "scanType": self.kind.value,
            "status": self.status.value,
            "createdAt": _iso(self.created_at),
            "startedAt": _iso(self.started_at),
            "completedAt": _iso(self.completed_at),
            "error": self.error,
        }


@dataclass
class Finding:
    task_id: str
    kind: FindingKind
    title: str
    severity: Optional[Severity] = None
    description: Optional[str] = None
    raw_evidence: Optional[Dict[str, Any]] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=now_utc)

    @property
    def effective_severity(self) -> Severity:
        """Absent severity sorts as info."""
        return self.severity or Severity.INFO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "scanId": self.task_id,
            "findingType": self.kind.value,
            "severity": self.severity.value if self.severity else None,
            "title": self.title,
            "description": self.description,
            "rawData": self.raw_evidence,
            "createdAt": _iso(self.created_at),
        }


@dataclass
class SecurityHeaderCheck:
    header_name: str
    is_present: bool
    is_secure: bool
    recommendation: str
    observed_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headerName": self.header_name,
            "headerValue": self.observed_value,
            "isPresent": self.is_present,
            "isSecure": self.is_secure,
            "recommendation": self.recommendation,
        }


@dataclass
class CertificateAssessment:
    grade: str
    subject: Optional[str] = None
    issuer: Optional[str] = None
    valid_from: Optional[str] = None
    valid_to: Optional[str] = None
    tls_versions: Optional[List[str]] = None
    cipher_suites: Optional[List[str]] = None
    vulnerabilities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "issuer": self.issuer,
            "validFrom": self.valid_from,
            "validTo": self.valid_to,
            "tlsVersions": self.tls_versions,
            "cipherSuites": self.cipher_suites,
            "vulnerabilities": list(self.vulnerabilities),
            "grade": self.grade,
        }


@dataclass
class DetectedTechnology:
    name: str
    category: TechnologyCategory
    confidence: int
    version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "category": self.category.value,
            "confidence": self.confidence,
        }


@dataclass
class ScanReport:
    """
    Accumulated output of one scan. Each stage appends to its own field.
    task is a snapshot that gets re-synced with the TaskStore at finalization.
    """
    task: ScanTask
    headers: List[SecurityHeaderCheck] = field(default_factory=list)
    certificate: Optional[CertificateAssessment] = None
    technologies: List[DetectedTechnology] = field(default_factory=list)
    findings: List[Finding] = field(default_factory=list)

    def has_output(self) -> bool:
        return bool(self.headers or self.certificate or self.technologies or self.findings)

    def summary(self) -> Dict[str, int]:
        counts = {s.value: 0 for s in Severity}
        for f in self.findings:
            counts[f.effective_severity.value] += 1
        counts["total"] = len(self.findings)
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scan": self.task.to_dict(),
            "headers": [h.to_dict() for h in self.headers],
            "sslInfo": self.certificate.to_dict() if self.certificate else None,
            "technologies": [t.to_dict() for t in self.technologies],
            "findings": [f.to_dict() for f in self.findings],
            "summary": self.summary(),
        }
