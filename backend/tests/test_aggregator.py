from redforge.models import Finding, FindingKind, Severity
from redforge.scanner.aggregator import ResultAggregator


def _f(title, severity):
    return Finding(task_id="t", kind=FindingKind.VULNERABILITY, title=title, severity=severity)


def test_sorts_worst_first():
    merged = ResultAggregator.merge(
        [_f("a", Severity.LOW), _f("b", Severity.CRITICAL), _f("c", Severity.INFO), _f("d", Severity.HIGH)],
        [],
    )
    assert [f.severity for f in merged] == [
        Severity.CRITICAL, Severity.HIGH, Severity.LOW, Severity.INFO,
    ]


def test_missing_severity_sorts_as_info_and_order_is_stable():
    merged = ResultAggregator.merge(
        [_f("first-info", Severity.INFO), _f("no-severity", None)],
        [_f("medium", Severity.MEDIUM)],
    )
    assert [f.title for f in merged] == ["medium", "first-info", "no-severity"]


def test_dedup_by_title_keeps_the_worst_then_first():
    engine = [_f("Missing HSTS header", Severity.MEDIUM)]
    legacy = [_f("Missing HSTS header", Severity.LOW), _f("TRACE method enabled", Severity.LOW)]
    merged = ResultAggregator.merge(engine, legacy)

    titles = [f.title for f in merged]
    assert titles == ["Missing HSTS header", "TRACE method enabled"]
    assert merged[0].severity == Severity.MEDIUM


def test_aggregation_is_idempotent():
    once = ResultAggregator.merge(
        [_f("x", Severity.LOW), _f("y", Severity.HIGH), _f("x", Severity.CRITICAL)],
        [_f("z", None)],
    )
    twice = ResultAggregator.merge(once, [])
    assert [f.id for f in twice] == [f.id for f in once]
