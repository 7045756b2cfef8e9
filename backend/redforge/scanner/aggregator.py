"""
Merges vulnerability findings from the probe engine and the legacy probe set.

Both sources run against the same target and overlap heavily (a missing
HSTS header or an exposed /.git/config is reported by either), so the merged
list is severity-sorted and then deduplicated on the finding title.
"""

from __future__ import annotations

from typing import Dict, List

from redforge.models import Finding


class ResultAggregator:
    """
    Strategy:
    1. Concatenate engine findings, then legacy findings
    2. Stable sort by severity, worst first (missing severity counts as info)
    3. Keep the first finding for each exact title

    Title-only dedup is lossy: two distinct issues that happen to share a
    title collapse into one. Running the aggregator on its own output is a
    no-op.
    """

    def __init__(self):
        self._findings: List[Finding] = []

    def add_results(self, findings: List[Finding]):
        self._findings.extend(findings)

    def get_results(self) -> List[Finding]:
        ordered = sorted(
            self._findings,
            key=lambda f: f.effective_severity.rank,
            reverse=True,
        )
        seen: Dict[str, Finding] = {}
        for f in ordered:
            if f.title not in seen:
                seen[f.title] = f
        return list(seen.values())

    @classmethod
    def merge(cls, engine: List[Finding], legacy: List[Finding]) -> List[Finding]:
        agg = cls()
        agg.add_results(engine)
        agg.add_results(legacy)
        return agg.get_results()
