# redforge/scanner/engines/tech_engine.py
"""
Technology fingerprinting stage (TechnologyFingerprinter).

One GET (redirects followed), then signature matching over the response.

Detection sources:
    - Body:    JavaScript frameworks, CSS frameworks, analytics tags
    - Headers: Server / X-Powered-By product and version
    - Both:    CDN markers (header names, header values and body)

Every matching signature yields one DetectedTechnology with the fixed
confidence listed in its table row. Body matching is case-insensitive.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Tuple

from redforge.models import DetectedTechnology, TechnologyCategory as Cat
from redforge.scanner.base import BaseEngine, ScanContext, StageResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Technology signatures
# ---------------------------------------------------------------------------

# (tech_name, [lowercase markers], confidence); any marker matches
JS_FRAMEWORKS: List[Tuple[str, List[str], int]] = [
    ("React", ["_reactroot", "react-", "__react"], 85),
    ("Vue.js", ["data-v-", "__vue__", "vue.js"], 85),
    ("Angular", ["ng-version", "angular", "_nghost"], 85),
    ("Next.js", ["__next", "_next/static"], 90),
    ("Nuxt.js", ["__nuxt", "_nuxt"], 90),
    ("Svelte", ["svelte-", "__svelte"], 85),
]

ANALYTICS: List[Tuple[str, List[str], int]] = [
    ("Google Analytics", ["google-analytics.com", "gtag", "ga.js"], 95),
    ("Google Tag Manager", ["googletagmanager.com", "gtm.js"], 95),
    ("Facebook Pixel", ["facebook.net/en_us/fbevents.js", "fbq("], 90),
    ("Hotjar", ["hotjar.com", "hjid"], 90),
    ("Mixpanel", ["mixpanel.com", "mixpanel"], 85),
]

CDNS: List[Tuple[str, List[str], int]] = [
    ("Cloudflare", ["cloudflare.com", "cf-ray"], 90),
    ("Fastly", ["fastly.net"], 85),
    ("Akamai", ["akamai.net", "akamaihd.net"], 85),
    ("Amazon CloudFront", ["cloudfront.net"], 90),
]

BOOTSTRAP_MARKERS = ["bootstrap", "btn btn-"]

# Tailwind is only claimed when several utility prefixes co-occur
TAILWIND_PREFIXES = [
    "flex-", "grid-", "bg-", "text-", "p-", "m-", "w-", "h-",
    "rounded-", "shadow-", "hover:", "focus:", "md:", "lg:",
]
TAILWIND_MIN_HITS = 3

# Header-based detection: { header_name_lower: [(regex, tech_name, category)] }
HEADER_SIGNATURES: Dict[str, List[Tuple[str, str, Cat]]] = {
    "server": [
        (r"nginx(?:/([\d.]+))?", "Nginx", Cat.SERVER),
        (r"Apache(?:/([\d.]+))?", "Apache", Cat.SERVER),
        (r"Microsoft-IIS(?:/([\d.]+))?", "IIS", Cat.SERVER),
    ],
    "x-powered-by": [
        (r"PHP(?:/([\d.]+))?", "PHP", Cat.LANGUAGE),
        (r"ASP\.NET", "ASP.NET", Cat.FRAMEWORK),
        (r"Express", "Express", Cat.FRAMEWORK),
    ],
}
HEADER_CONFIDENCE = 95


def _any_marker(text: str, markers: List[str]) -> bool:
    return any(m in text for m in markers)


def fingerprint(headers: Dict[str, str], body: str) -> List[DetectedTechnology]:
    """
    Match signatures against a response. `headers` keys must be lowercase.
    Exposed as a function so the probe batteries and tests can reuse it.
    """
    lower = body.lower()
    found: List[DetectedTechnology] = []

    for name, markers, confidence in JS_FRAMEWORKS:
        if _any_marker(lower, markers):
            found.append(DetectedTechnology(name=name, category=Cat.FRAMEWORK, confidence=confidence))

    if _any_marker(lower, BOOTSTRAP_MARKERS):
        found.append(DetectedTechnology(name="Bootstrap", category=Cat.FRAMEWORK, confidence=80))

    hits = sum(1 for p in TAILWIND_PREFIXES if p in lower)
    if hits >= TAILWIND_MIN_HITS:
        found.append(DetectedTechnology(name="Tailwind CSS", category=Cat.FRAMEWORK, confidence=75))

    for name, markers, confidence in ANALYTICS:
        if _any_marker(lower, markers):
            found.append(DetectedTechnology(name=name, category=Cat.ANALYTICS, confidence=confidence))

    header_blob = " ".join(f"{k} {v}" for k, v in headers.items()).lower()
    for name, markers, confidence in CDNS:
        if _any_marker(header_blob, markers) or _any_marker(lower, markers):
            found.append(DetectedTechnology(name=name, category=Cat.CDN, confidence=confidence))

    for header_name, sigs in HEADER_SIGNATURES.items():
        value = headers.get(header_name)
        if not value:
            continue
        for pattern, name, category in sigs:
            match = re.search(pattern, value, re.IGNORECASE)
            if match:
                version = match.group(1) if match.lastindex else None
                found.append(DetectedTechnology(
                    name=name,
                    version=version,
                    category=category,
                    confidence=HEADER_CONFIDENCE,
                ))

    return found


class TechEngine(BaseEngine):
    """
    Profile config options:
        timeout: float (default 10)
    """

    DEFAULT_CONFIG = {"timeout": 10}

    @property
    def name(self) -> str:
        return "technologies"

    async def execute(self, ctx: ScanContext, config: Dict[str, Any]) -> StageResult:
        async with ctx.client(timeout=config["timeout"], follow_redirects=True) as client:
            resp = await client.get(ctx.target)

        headers = {k.lower(): v for k, v in resp.headers.items()}
        techs = fingerprint(headers, resp.text)
        logger.info(
            f"Fingerprinted {ctx.target}: {', '.join(t.name for t in techs) or 'nothing'}"
        )
        return StageResult(stage_name=self.name, technologies=techs)
