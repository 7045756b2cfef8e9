# redforge/extensions.py
from __future__ import annotations

import logging

from flask import Flask, current_app

from redforge.scanner import ReportStore, ScanOrchestrator, TaskStore

logger = logging.getLogger(__name__)

EXTENSION_KEY = "redforge"


def init_extensions(app: Flask):
    """Build the stores and the orchestrator once per app."""
    orchestrator = ScanOrchestrator(
        TaskStore(),
        ReportStore(),
        transport=app.config.get("SCAN_TRANSPORT"),
        max_concurrency=app.config.get("PROBE_CONCURRENCY", 10),
        stage_config=app.config.get("STAGE_CONFIG"),
    )
    app.extensions[EXTENSION_KEY] = orchestrator
    logger.debug("Scan orchestrator initialised")


def get_orchestrator() -> ScanOrchestrator:
    return current_app.extensions[EXTENSION_KEY]
