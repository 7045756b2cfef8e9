# redforge/cli.py
"""
Command line entry point.

Usage:
    # Run one scan and print a summary (or the full report with --json):
    redforge scan https://example.com --kind full

    # Serve the HTTP API for the desktop frontend:
    redforge serve --port 5000
"""

from __future__ import annotations

import argparse
import concurrent.futures
import json
import logging
import sys

from redforge.models import ScanKind
from redforge.scanner import ReportStore, ScanOrchestrator, TaskStore
from redforge.scanner.base import InvalidInput

logger = logging.getLogger(__name__)


def _print_summary(report):
    task = report.task
    print(f"\n{'=' * 60}")
    print(f"Scan {task.id}  [{task.kind.value}]  {task.target}")
    print(f"Status: {task.status.value}")
    if task.error:
        print(f"Errors: {task.error}")
    print(f"{'=' * 60}")

    if report.headers:
        print("\nSecurity headers:")
        for h in report.headers:
            mark = "ok " if h.is_secure else "BAD"
            print(f"  [{mark}] {h.header_name}: {h.observed_value or '-'}")

    if report.certificate:
        print(f"\nTLS grade: {report.certificate.grade}")
        for note in report.certificate.vulnerabilities:
            print(f"  - {note}")

    if report.technologies:
        print("\nTechnologies:")
        for t in report.technologies:
            version = f" {t.version}" if t.version else ""
            print(f"  {t.name}{version} ({t.category.value}, {t.confidence}%)")

    if report.findings:
        print(f"\nFindings ({len(report.findings)}):")
        for f in report.findings:
            print(f"  [{f.effective_severity.value.upper():8}] {f.title}")


def _cmd_scan(args, transport=None) -> int:
    orchestrator = ScanOrchestrator(TaskStore(), ReportStore(), transport=transport)
    try:
        task_id = orchestrator.start(args.target, args.kind)
    except InvalidInput as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    try:
        task = orchestrator.wait(task_id, timeout=args.timeout)
    except concurrent.futures.TimeoutError:
        print(f"error: scan did not finish within {args.timeout}s", file=sys.stderr)
        orchestrator.shutdown()
        return 1

    report = orchestrator.report(task_id)
    orchestrator.shutdown()

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        _print_summary(report)
    return 0 if task.status.value == "completed" else 1


def _cmd_serve(args, transport=None) -> int:
    from redforge import create_app

    app = create_app({"SCAN_TRANSPORT": transport} if transport else None)
    app.run(host=args.host, port=args.port)
    return 0


def main(argv=None, transport=None) -> int:
    """transport replaces the network for every scan request; leave it None outside tests."""
    p = argparse.ArgumentParser(prog="redforge", description="Web application security reconnaissance")
    sub = p.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Run one scan and print the report")
    scan.add_argument("target", help="Target URL (http:// or https://)")
    scan.add_argument("--kind", default="full", choices=[k.value for k in ScanKind])
    scan.add_argument("--json", action="store_true", help="Print the full report as JSON")
    scan.add_argument("--timeout", type=float, default=None, help="Give up waiting after N seconds")
    scan.add_argument("-v", "--verbose", action="store_true")
    scan.set_defaults(func=_cmd_scan)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    serve.set_defaults(func=_cmd_serve)

    args = p.parse_args(argv)

    if getattr(args, "verbose", False):
        level = logging.DEBUG
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return args.func(args, transport=transport)


if __name__ == "__main__":
    sys.exit(main())
