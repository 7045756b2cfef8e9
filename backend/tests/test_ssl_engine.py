import httpx

from conftest import bare_handler, run_stage, unreachable_handler
from redforge.scanner.engines import SSLEngine
from redforge.scanner.engines.ssl_engine import (
    NOT_HTTPS_NOTE,
    calculate_grade,
    check_protocol_weaknesses,
)


def test_plain_http_target_gets_grade_f():
    result = run_stage(SSLEngine(), "http://example.com", bare_handler)

    assert result.success
    assert result.certificate.grade == "F"
    assert result.certificate.vulnerabilities == [NOT_HTTPS_NOTE]


def test_https_target_gets_grade_a():
    result = run_stage(SSLEngine(), "https://secure.example.com/login", bare_handler)

    cert = result.certificate
    assert cert.grade == "A"
    assert cert.subject == "secure.example.com"
    assert cert.tls_versions == ["TLS 1.2+"]
    assert cert.vulnerabilities == []


def test_grade_uses_final_url_after_redirect():
    def handler(request):
        if request.url.scheme == "http":
            return httpx.Response(301, headers={"Location": "https://example.com/"})
        return httpx.Response(200)

    result = run_stage(SSLEngine(), "http://example.com", handler)
    assert result.certificate.grade == "A"


def test_connection_failure_is_a_stage_failure():
    result = run_stage(SSLEngine(), "https://down.test", unreachable_handler)
    assert not result.success
    assert result.certificate is None


def test_calculate_grade():
    assert calculate_grade(["TLSv1.2", "TLSv1.3"], ["TLS_AES_256_GCM_SHA384"]) == "A+"
    assert calculate_grade(["TLS 1.2"], ["ECDHE-RSA-AES128-GCM-SHA256"]) == "A+"
    assert calculate_grade(["TLSv1.1", "TLSv1.2"], []) == "B"
    assert calculate_grade(["TLSv1.0", "TLSv1.1", "TLSv1.2"], []) == "D"
    assert calculate_grade(["TLSv1.0", "TLSv1.1", "TLSv1.2"], ["RC4-SHA"]) == "F"


def test_protocol_weaknesses():
    notes = check_protocol_weaknesses(["tls1_0", "TLSv1.2"], ["DES-CBC3-SHA", "RC4-MD5"])
    assert len(notes) == 3
    assert any("POODLE" in n for n in notes)
    assert any("RC4" in n for n in notes)
    assert any("3DES" in n for n in notes)
    assert check_protocol_weaknesses(["TLSv1.3"], []) == []
