import asyncio

import httpx
import pytest

from redforge.scanner.base import ScanContext

SECURE_HEADERS = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": "default-src 'self'; script-src 'self'",
    "X-Content-Type-Options": "nosniff",
}


def clean_handler(request: httpx.Request) -> httpx.Response:
    """A hardened site: http redirects to https, everything else is a plain 404."""
    if request.url.scheme == "http":
        https_url = str(request.url.copy_with(scheme="https"))
        return httpx.Response(301, headers={"Location": https_url})
    return httpx.Response(404, headers=SECURE_HEADERS)


def bare_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text="")


def unreachable_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def run_stage(stage, target, handler, task_id="t-1"):
    """Run a BaseEngine stage against a mock transport."""
    async def _go():
        ctx = ScanContext(target=target, task_id=task_id, transport=httpx.MockTransport(handler))
        return await stage.run(ctx)
    return asyncio.run(_go())


def run_probe(probe, target, handler, task_id="t-1", follow_redirects=False):
    """Run a single probe battery with its own client."""
    async def _go():
        ctx = ScanContext(target=target, task_id=task_id, transport=httpx.MockTransport(handler))
        async with ctx.client(timeout=5, follow_redirects=follow_redirects) as client:
            return await probe.run(client, ctx)
    return asyncio.run(_go())


@pytest.fixture
def orchestrator_factory():
    from redforge.scanner import ReportStore, ScanOrchestrator, TaskStore

    created = []

    def _make(handler):
        orch = ScanOrchestrator(TaskStore(), ReportStore(), transport=httpx.MockTransport(handler))
        created.append(orch)
        return orch

    yield _make

    for orch in created:
        orch.shutdown()
