import httpx

from conftest import bare_handler, run_stage, unreachable_handler
from redforge.scanner.engines import HeaderEngine
from redforge.scanner.engines.header_engine import audit_headers

CHECKLIST = [
    "strict-transport-security",
    "content-security-policy",
    "x-frame-options",
    "x-content-type-options",
    "referrer-policy",
    "permissions-policy",
    "x-xss-protection",
]


def test_bare_target_reports_seven_missing_headers():
    result = run_stage(HeaderEngine(), "https://bare.test", bare_handler)

    assert result.success
    assert [h.header_name for h in result.headers] == CHECKLIST
    assert all(not h.is_present and not h.is_secure for h in result.headers)


def test_header_rules():
    headers = httpx.Headers({
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
        "Content-Security-Policy": "self",                  # too short
        "X-Frame-Options": "sameorigin",
        "X-Content-Type-Options": "NOSNIFF",
        "Referrer-Policy": "no-referrer",
        "Permissions-Policy": "",
        "X-XSS-Protection": "0",
    })
    checks = {c.header_name: c for c in audit_headers(headers)}

    assert checks["strict-transport-security"].is_secure
    assert not checks["content-security-policy"].is_secure
    assert checks["content-security-policy"].is_present
    assert checks["x-frame-options"].is_secure
    assert checks["x-content-type-options"].is_secure
    assert checks["referrer-policy"].is_secure
    assert not checks["permissions-policy"].is_secure
    assert not checks["x-xss-protection"].is_secure


def test_short_hsts_is_not_secure():
    checks = audit_headers(httpx.Headers({"Strict-Transport-Security": "max-age=60"}))
    assert checks[0].is_present
    assert not checks[0].is_secure


def test_disclosure_headers_are_appended_and_insecure():
    def handler(request):
        return httpx.Response(200, headers={"Server": "nginx/1.18.0", "X-Powered-By": "PHP/7.4"})

    result = run_stage(HeaderEngine(), "https://leaky.test", handler)
    extra = result.headers[len(CHECKLIST):]

    assert [h.header_name for h in extra] == ["server", "x-powered-by"]
    assert all(h.is_present and not h.is_secure for h in extra)
    assert extra[0].observed_value == "nginx/1.18.0"


def test_unreachable_target_is_a_stage_failure():
    result = run_stage(HeaderEngine(), "https://down.test", unreachable_handler)

    assert not result.success
    assert result.headers == []
    assert result.errors[0].startswith("ConnectError")
