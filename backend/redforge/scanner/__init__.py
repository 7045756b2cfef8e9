# redforge/scanner/__init__.py
"""
RedForge scan engine.

Usage:
    from redforge.scanner import ScanOrchestrator, TaskStore, ReportStore

    orchestrator = ScanOrchestrator(TaskStore(), ReportStore())
    task_id = orchestrator.start("https://example.com", "full")

Architecture:
    ScanOrchestrator
    ├── HeaderEngine         (HeaderAuditor): security header checklist
    ├── SSLEngine            (CertificateAuditor): HTTPS usage and grade
    ├── TechEngine           (TechnologyFingerprinter): signatures
    └── VulnerabilityStage
        ├── VulnerabilityProbeEngine: OWASP A01 .. A10 batteries
        ├── LegacyProbeSet
        └── ResultAggregator: severity sort + title dedup
"""

from redforge.scanner.orchestrator import ScanOrchestrator
from redforge.scanner.stores import ReportStore, TaskStore

__all__ = ["ScanOrchestrator", "TaskStore", "ReportStore"]
