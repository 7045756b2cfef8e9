import pytest

from redforge.models import (
    Finding,
    FindingKind,
    ScanKind,
    ScanReport,
    ScanStatus,
    ScanTask,
    Severity,
)


def test_scan_kind_parse():
    assert ScanKind.parse("FULL") == ScanKind.FULL
    assert ScanKind.parse(" headers ") == ScanKind.HEADERS
    with pytest.raises(ValueError):
        ScanKind.parse("bogus-kind")


def test_severity_rank_order():
    ordered = sorted(Severity, key=lambda s: s.rank, reverse=True)
    assert [s.value for s in ordered] == ["critical", "high", "medium", "low", "info"]


def test_terminal_statuses():
    assert ScanStatus.COMPLETED.is_terminal
    assert ScanStatus.FAILED.is_terminal
    assert not ScanStatus.RUNNING.is_terminal


def test_task_wire_shape():
    task = ScanTask(target="https://example.com", kind=ScanKind.SSL)
    data = task.to_dict()

    assert data["scanType"] == "ssl"
    assert data["status"] == "pending"
    assert data["createdAt"].endswith("+00:00")
    assert data["startedAt"] is None
    assert len(data["id"]) == 36


def test_report_summary_counts_missing_severity_as_info():
    task = ScanTask(target="https://example.com", kind=ScanKind.VULNERABILITY)
    report = ScanReport(task=task, findings=[
        Finding(task_id=task.id, kind=FindingKind.VULNERABILITY, title="a", severity=Severity.HIGH),
        Finding(task_id=task.id, kind=FindingKind.VULNERABILITY, title="b"),
    ])
    summary = report.to_dict()["summary"]

    assert summary["high"] == 1
    assert summary["info"] == 1
    assert summary["total"] == 2
    assert report.to_dict()["findings"][1]["severity"] is None
