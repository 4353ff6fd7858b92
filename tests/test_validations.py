from __future__ import annotations

import pytest

from toolkit_cli.validations import is_http_url

_PATHS = [
    "www.example.org",
    "foo.bar/?q=Test%20URL-encoded%20stuff",
    "a.b-c.de",
    "223.255.255.254",
    "142.42.1.1:8080/",
    "www.example.com/foo/?bar=baz&inga=42&quux",
    "foo.com/blah_blah_(wikipedia)_(again)",
]


@pytest.mark.parametrize("url", [f"http://{p}" for p in _PATHS])
def test_http_urls_are_valid(url):
    assert is_http_url(url) is True


@pytest.mark.parametrize("url", [f"https://{p}" for p in _PATHS])
def test_https_urls_are_valid(url):
    assert is_http_url(url) is True


@pytest.mark.parametrize("url", [f"file://{p}" for p in _PATHS])
def test_file_urls_are_not_http(url):
    assert is_http_url(url) is False


@pytest.mark.parametrize("value", ["", "example.com", "http://", "http://host:port/", "ftp://example.com"])
def test_non_urls_are_rejected(value):
    assert is_http_url(value) is False
