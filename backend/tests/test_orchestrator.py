import time

import httpx
import pytest

from conftest import bare_handler, clean_handler, unreachable_handler
from redforge.models import ScanKind, ScanStatus
from redforge.scanner import ReportStore, ScanOrchestrator, TaskStore
from redforge.scanner.base import InvalidInput, NotFound

WAIT = 30


def test_start_returns_id_and_scan_completes(orchestrator_factory):
    orch = orchestrator_factory(bare_handler)
    task_id = orch.start("https://bare.test", "headers")

    assert orch.status(task_id).kind == ScanKind.HEADERS
    task = orch.wait(task_id, timeout=WAIT)

    assert task.status == ScanStatus.COMPLETED
    assert task.completed_at >= task.started_at >= task.created_at
    report = orch.report(task_id)
    assert len(report.headers) == 7
    assert report.task.status == ScanStatus.COMPLETED


def test_invalid_scheme_is_rejected_without_creating_a_task(orchestrator_factory):
    orch = orchestrator_factory(bare_handler)

    with pytest.raises(InvalidInput):
        orch.start("ftp://x.com", "headers")
    assert orch.list() == []


def test_unknown_kind_is_rejected(orchestrator_factory):
    orch = orchestrator_factory(bare_handler)

    with pytest.raises(InvalidInput):
        orch.start("https://x.com", "bogus-kind")
    assert orch.list() == []


def test_unknown_id_is_not_found(orchestrator_factory):
    orch = orchestrator_factory(bare_handler)

    with pytest.raises(NotFound):
        orch.status("no-such-id")
    with pytest.raises(NotFound):
        orch.report("no-such-id")


def test_ssl_scan_of_plain_http_gets_grade_f(orchestrator_factory):
    orch = orchestrator_factory(bare_handler)
    task_id = orch.start("http://example.com", "ssl")
    orch.wait(task_id, timeout=WAIT)

    cert = orch.report(task_id).certificate
    assert cert.grade == "F"
    assert len(cert.vulnerabilities) == 1


def test_vulnerability_scan_of_clean_target(orchestrator_factory):
    orch = orchestrator_factory(clean_handler)
    task_id = orch.start("https://clean.test", "vulnerability")
    task = orch.wait(task_id, timeout=WAIT)

    assert task.status == ScanStatus.COMPLETED
    findings = orch.report(task_id).findings
    assert [f.severity.value for f in findings] == ["info", "info"]


@pytest.mark.parametrize("kind", ["quick", "port"])
def test_unimplemented_kinds_fail(orchestrator_factory, kind):
    orch = orchestrator_factory(bare_handler)
    task_id = orch.start("https://x.test", kind)
    task = orch.wait(task_id, timeout=WAIT)

    assert task.status == ScanStatus.FAILED
    assert "not implemented" in task.error
    assert task.completed_at is not None


def test_headers_scan_of_unreachable_target_fails(orchestrator_factory):
    orch = orchestrator_factory(unreachable_handler)
    task_id = orch.start("https://down.test", "headers")
    task = orch.wait(task_id, timeout=WAIT)

    assert task.status == ScanStatus.FAILED
    assert task.error.startswith("headers: ConnectError")


def test_full_scan_partial_failure_still_completes(orchestrator_factory):
    orch = orchestrator_factory(unreachable_handler)
    task_id = orch.start("http://down.test", "full")
    task = orch.wait(task_id, timeout=WAIT)

    # Header and fingerprint stages fail; the probe stage still reports
    assert task.status == ScanStatus.COMPLETED
    assert "headers: ConnectError" in task.error
    assert "technologies: ConnectError" in task.error
    assert "ssl" not in task.error

    report = orch.report(task_id)
    assert report.headers == []
    assert report.certificate is None
    assert report.findings


def test_full_scan_of_https_target_runs_every_stage(orchestrator_factory):
    orch = orchestrator_factory(bare_handler)
    task_id = orch.start("https://bare.test", "full")
    task = orch.wait(task_id, timeout=WAIT)

    assert task.status == ScanStatus.COMPLETED
    assert task.error is None
    report = orch.report(task_id)
    assert len(report.headers) == 7
    assert report.certificate.grade == "A"
    assert report.findings


def test_list_in_creation_order(orchestrator_factory):
    orch = orchestrator_factory(bare_handler)
    ids = [orch.start(f"https://s{i}.test", "ssl") for i in range(3)]
    for task_id in ids:
        orch.wait(task_id, timeout=WAIT)

    tasks = orch.list()
    assert [t.id for t in tasks] == ids
    assert all(t.status.is_terminal for t in tasks)


def test_report_is_sealed_before_the_task_turns_terminal():
    tasks = TaskStore()
    visible_at_seal = []

    class RecordingReportStore(ReportStore):
        def seal(self, task):
            # Read without the lock: the task lock is held during the seal
            visible_at_seal.append((tasks._tasks[task.id].status, task.status))
            return super().seal(task)

    orch = ScanOrchestrator(tasks, RecordingReportStore(), transport=httpx.MockTransport(bare_handler))
    try:
        task_id = orch.start("https://bare.test", "headers")
        task = orch.wait(task_id, timeout=WAIT)
    finally:
        orch.shutdown()

    assert visible_at_seal == [(ScanStatus.RUNNING, ScanStatus.COMPLETED)]
    assert orch.report(task_id).task == task


def test_terminal_status_always_comes_with_a_final_report(orchestrator_factory):
    orch = orchestrator_factory(bare_handler)
    task_id = orch.start("https://bare.test", "headers")

    seen_terminal = False
    for _ in range(2000):
        task = orch.status(task_id)
        if task.status.is_terminal:
            seen_terminal = True
            assert orch.report(task_id).task.status == task.status
            break
        time.sleep(0.005)

    assert seen_terminal


def test_finished_scans_are_released(orchestrator_factory):
    orch = orchestrator_factory(bare_handler)
    ids = [orch.start(f"https://s{i}.test", "headers") for i in range(3)]

    for task_id in ids:
        assert orch.wait(task_id, timeout=WAIT).status == ScanStatus.COMPLETED

    assert orch._futures == {}
    # Waiting again on a finished scan returns its final state
    assert orch.wait(ids[0], timeout=WAIT).status == ScanStatus.COMPLETED


def test_wait_on_unknown_id_is_not_found(orchestrator_factory):
    orch = orchestrator_factory(bare_handler)

    with pytest.raises(NotFound):
        orch.wait("no-such-id", timeout=WAIT)
