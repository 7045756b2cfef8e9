import httpx

from conftest import run_stage
from redforge.models import TechnologyCategory
from redforge.scanner.engines import TechEngine
from redforge.scanner.engines.tech_engine import fingerprint

NEXT_PAGE = (
    '<html><body><div id="__next"></div>'
    '<script src="/_next/static/chunks/app.js"></script>'
    "<script>gtag('config')</script></body></html>"
)


def test_fingerprints_body_and_headers():
    def handler(request):
        return httpx.Response(
            200,
            text=NEXT_PAGE,
            headers={"Server": "nginx/1.21.6", "CF-Ray": "7d9f1c2a3b4c5d6e-AMS"},
        )

    result = run_stage(TechEngine(), "https://shop.test", handler)
    found = {t.name: t for t in result.technologies}

    assert set(found) == {"Next.js", "Google Analytics", "Cloudflare", "Nginx"}
    assert found["Next.js"].confidence == 90
    assert found["Google Analytics"].category == TechnologyCategory.ANALYTICS
    assert found["Cloudflare"].category == TechnologyCategory.CDN
    assert found["Nginx"].version == "1.21.6"
    assert found["Nginx"].confidence == 95


def test_tailwind_needs_three_utility_prefixes():
    two = fingerprint({}, '<div class="flex-1 bg-white"></div>')
    three = fingerprint({}, '<div class="flex-1 bg-white text-sm"></div>')

    assert "Tailwind CSS" not in [t.name for t in two]
    tailwind = [t for t in three if t.name == "Tailwind CSS"]
    assert len(tailwind) == 1
    assert tailwind[0].confidence == 75


def test_bootstrap_and_php():
    techs = fingerprint({"x-powered-by": "PHP/8.1.2"}, '<button class="btn btn-primary">Go</button>')
    names = {t.name: t for t in techs}

    assert names["Bootstrap"].confidence == 80
    assert names["PHP"].category == TechnologyCategory.LANGUAGE
    assert names["PHP"].version == "8.1.2"


def test_plain_page_detects_nothing():
    assert fingerprint({"content-type": "text/html"}, "<html><body>hello</body></html>") == []
