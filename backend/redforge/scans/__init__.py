"""
Scan API: start scans and poll their status and reports.

Endpoints:
    POST /scans                   start a scan, returns {taskId} with 202
    GET  /scans                   all scans, in creation order
    GET  /scans/<id>              one scan's status
    GET  /scans/<id>/report       accumulated report (partial while running)
"""

from redforge.scans.routes import scans_bp

__all__ = ["scans_bp"]
