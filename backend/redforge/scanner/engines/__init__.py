"""
Scan stages that collect and interpret one aspect of the target.
Each stage makes its own requests and returns a StageResult.
"""
from redforge.scanner.engines.header_engine import HeaderEngine
from redforge.scanner.engines.ssl_engine import SSLEngine
from redforge.scanner.engines.tech_engine import TechEngine

# Registry of the single-request stages.
# The orchestrator looks these up by name when dispatching a scan kind.
ALL_ENGINES = {
    "headers": HeaderEngine,
    "ssl": SSLEngine,
    "technologies": TechEngine,
}

__all__ = ["HeaderEngine", "SSLEngine", "TechEngine", "ALL_ENGINES"]
