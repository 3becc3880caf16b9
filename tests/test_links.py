"""Tests for dimension option link rewriting."""

from service_dimension_search.app.search.links import external_base_url, rewrite_link

DEFAULT_URL = "http://localhost:23100"


def test_base_url_without_proxy():
    """Test the configured URL is used without forwarded headers."""
    assert external_base_url({}, DEFAULT_URL) == DEFAULT_URL


def test_base_url_from_forwarded_headers():
    """Test the forwarded host, scheme and prefix."""
    headers = {
        "X-Forwarded-Host": "api.beta.ons.gov.uk",
        "X-Forwarded-Proto": "http",
        "X-Forwarded-Path-Prefix": "v1",
    }
    assert external_base_url(headers, DEFAULT_URL) == "http://api.beta.ons.gov.uk/v1"


def test_base_url_defaults_to_https():
    """Test a forwarded host without a scheme."""
    assert external_base_url({"x-forwarded-host": "api.beta.ons.gov.uk"}, DEFAULT_URL) == "https://api.beta.ons.gov.uk"


def test_base_url_with_port():
    """Test a forwarded port is appended to the host."""
    headers = {"x-forwarded-host": "localhost", "x-forwarded-port": "8443"}
    assert external_base_url(headers, DEFAULT_URL) == "https://localhost:8443"


def test_rewrite_link():
    """Test a stored link moves onto the external base URL."""
    link = "http://localhost:22000/code-lists/aggregate/codes/cpih1dim1A0?version=1"
    assert (
        rewrite_link(link, "https://api.beta.ons.gov.uk/v1")
        == "https://api.beta.ons.gov.uk/v1/code-lists/aggregate/codes/cpih1dim1A0?version=1"
    )


def test_rewrite_link_without_prefix():
    """Test rewriting onto a bare host."""
    assert rewrite_link("http://localhost:8080/testing/1", "https://api.example.com") == "https://api.example.com/testing/1"


def test_rewrite_empty_link():
    """Test an empty link stays empty."""
    assert rewrite_link("", "https://api.example.com") == ""
