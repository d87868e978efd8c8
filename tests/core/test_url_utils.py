# tests/core/test_url_utils.py
import pytest

from pagefacts.utils.url_utils import UrlUtils


@pytest.mark.parametrize("url, base, expected", [
    ("/a/b", "https://x.com/c/d", "https://x.com/a/b"),
    ("//cdn.com/f.js", "https://x.com/", "https://cdn.com/f.js"),
    ("rel.html", "https://x.com/dir/page.html", "https://x.com/dir/rel.html"),
    ("rel.html", "https://x.com/", "https://x.com/rel.html"),
    ("rel.html", "https://x.com", "https://x.com/rel.html"),
    ("https://other.com/x", "https://x.com/dir/page.html", "https://other.com/x"),
    ("mailto:me@x.com", "https://x.com/", "mailto:me@x.com"),
    ("/img.png", "http://x.com:8080/page", "http://x.com:8080/img.png"),
])
def test_resolve(url, base, expected):
    assert UrlUtils.resolve(url, base) == expected


@pytest.mark.parametrize("base", ["https://x.com/", "", "not a url"])
def test_resolve_empty_url_is_empty(base):
    assert UrlUtils.resolve("", base) == ""


@pytest.mark.parametrize("url, expected", [
    ("https://www.Example.com/page", "www.Example.com"),
    ("http://user:pw@example.com:8080/x", "example.com"),
    ("http://[::1]:8000/x", "[::1]"),
    ("/relative/path", ""),
    ("", ""),
])
def test_get_host(url, expected):
    assert UrlUtils.get_host(url) == expected


def test_is_external_compares_hosts_as_written():
    assert UrlUtils.is_external("https://other.com/x", "example.com")
    assert not UrlUtils.is_external("https://example.com/x", "example.com")
    # No www. or case normalization.
    assert UrlUtils.is_external("https://www.example.com/x", "example.com")
    assert UrlUtils.is_external("https://EXAMPLE.com/x", "example.com")


def test_urls_without_host_are_internal():
    assert not UrlUtils.is_external("/about", "example.com")
    assert not UrlUtils.is_external("mailto:me@example.com", "example.com")
    assert not UrlUtils.is_external("javascript:void(0)", "example.com")
