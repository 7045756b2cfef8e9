# redforge/scans/routes.py
"""
Scan routes. The scan itself runs on the orchestrator's event loop, so
POST returns immediately and the frontend polls GET /scans/<id>.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from redforge.extensions import get_orchestrator
from redforge.scanner.base import InvalidInput, NotFound

logger = logging.getLogger(__name__)

scans_bp = Blueprint("scans", __name__, url_prefix="/scans")


@scans_bp.errorhandler(InvalidInput)
def _invalid_input(e):
    return jsonify(error=str(e)), 400


@scans_bp.errorhandler(NotFound)
def _not_found(e):
    return jsonify(error=str(e)), 404


@scans_bp.post("")
def start_scan():
    data = request.get_json(silent=True) or {}
    target = (data.get("target") or "").strip()
    kind = (data.get("kind") or data.get("scanType") or "").strip()

    if not target:
        return jsonify(error="target is required"), 400
    if not kind:
        return jsonify(error="kind is required"), 400

    task_id = get_orchestrator().start(target, kind)
    return jsonify(taskId=task_id, status="pending"), 202


@scans_bp.get("")
def list_scans():
    tasks = get_orchestrator().list()
    return jsonify([t.to_dict() for t in tasks]), 200


@scans_bp.get("/<task_id>")
def get_scan(task_id: str):
    task = get_orchestrator().status(task_id)
    return jsonify(task.to_dict()), 200


@scans_bp.get("/<task_id>/report")
def get_report(task_id: str):
    report = get_orchestrator().report(task_id)
    return jsonify(report.to_dict()), 200
