"""
Vulnerability probe batteries.
Each battery covers one OWASP Top 10 (2021) category and turns raw
responses into severity-ranked Findings.
"""
from redforge.scanner.probes.access_control import AccessControlProbe
from redforge.scanner.probes.crypto_failures import CryptoFailuresProbe
from redforge.scanner.probes.injection import InjectionProbe
from redforge.scanner.probes.insecure_design import InsecureDesignProbe
from redforge.scanner.probes.misconfiguration import MisconfigurationProbe
from redforge.scanner.probes.vulnerable_components import VulnerableComponentsProbe
from redforge.scanner.probes.auth_failures import AuthFailuresProbe
from redforge.scanner.probes.integrity_failures import IntegrityFailuresProbe
from redforge.scanner.probes.logging_failures import LoggingFailuresProbe
from redforge.scanner.probes.ssrf import SSRFProbe
from redforge.scanner.probes.legacy import LegacyProbeSet

# Registry of the OWASP batteries.
# ORDER MATTERS: scan_all() reports findings in this order (A01 -> A10).
ALL_PROBES = {
    "A01": AccessControlProbe,
    "A02": CryptoFailuresProbe,
    "A03": InjectionProbe,
    "A04": InsecureDesignProbe,
    "A05": MisconfigurationProbe,
    "A06": VulnerableComponentsProbe,
    "A07": AuthFailuresProbe,
    "A08": IntegrityFailuresProbe,
    "A09": LoggingFailuresProbe,
    "A10": SSRFProbe,
}

__all__ = [
    "AccessControlProbe", "CryptoFailuresProbe", "InjectionProbe",
    "InsecureDesignProbe", "MisconfigurationProbe", "VulnerableComponentsProbe",
    "AuthFailuresProbe", "IntegrityFailuresProbe", "LoggingFailuresProbe",
    "SSRFProbe", "LegacyProbeSet",
    "ALL_PROBES",
]
