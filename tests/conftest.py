# tests/conftest.py
import json

import pytest

from pagefacts.dom.document import ParseOptions
from pagefacts.managers.config_manager import ConfigManager
from pagefacts.model import OptimizerSettings
from pagefacts.utils.path_utils import PathUtils

MiB = 1024 * 1024

SAMPLE_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Sample Page</title>
  <meta name="description" content="A page used in tests.">
  <meta name="keywords" content="seo, html, tests">
  <meta name="robots" content="index,follow">
  <meta name="viewport" content="width=device-width">
  <link rel="canonical" href="/sample">
  <link rel="alternate" hreflang="nl" href="https://example.com/nl/sample">
  <link rel="stylesheet" href="https://cdn.other.com/site.css">
  <link rel="stylesheet" href="/local.css">
  <link rel="preconnect" href="https://fonts.gstatic.com">
  <link rel="dns-prefetch" href="//cdn.other.com">
  <link rel="next" href="/sample?page=2">
  <meta property="og:title" content="OG Sample">
  <meta name="twitter:card" content="summary">
  <script src="https://cdn.other.com/app.js" async></script>
  <script>var x = 1;</script>
  <style>body { color: red; }</style>
  <script type="application/ld+json">{"@type": "Article", "headline": "Sample"}</script>
</head>
<body>
  <h1>Main Title</h1>
  <h2>First Section</h2>
  <p>This is the first paragraph. It has two sentences.</p>
  <h2>Second Section</h2>
  <p>Another paragraph with <a href="/about">About us</a> and <a href="https://other.com/x" rel="nofollow">Elsewhere</a>.</p>
  <img src="/logo.png" alt="Logo" title="Our logo" width="100" height="50">
  <img src="https://cdn.other.com/banner.jpg">
  <img alt="no source">
  <div itemscope itemtype="https://schema.org/Product"><span>Widget</span></div>
</body>
</html>
"""


class FakeMemoryProbe:
    """MemoryProbe returning fixed values so tests control memory pressure."""

    def __init__(self, current: int = 50 * MiB, peak: int = None):
        self.value = current
        self.peak_value = peak if peak is not None else current
        self.calls = 0

    def current(self) -> int:
        self.calls += 1
        return self.value

    def peak(self) -> int:
        return max(self.peak_value, self.value)


class ReclaimCounter:
    """Stand-in for gc.collect counting how often reclamation was requested."""

    def __init__(self):
        self.count = 0

    def __call__(self):
        self.count += 1
        return 0


@pytest.fixture
def sample_page():
    return SAMPLE_PAGE


@pytest.fixture
def fake_probe():
    return FakeMemoryProbe()


@pytest.fixture
def reclaim_counter():
    return ReclaimCounter()


@pytest.fixture
def settings():
    """Default thresholds, independent of whatever settings.json holds."""
    return OptimizerSettings()


@pytest.fixture
def parse_options():
    return ParseOptions()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """
    Points the ConfigManager singleton at a temporary settings.json and
    reloads the real one afterwards.
    """
    def _make(content: dict) -> ConfigManager:
        settings_file = tmp_path / "settings.json"
        settings_file.write_text(json.dumps(content), encoding="utf-8")
        monkeypatch.setattr(PathUtils, "get_settings_file", staticmethod(lambda: settings_file))
        manager = ConfigManager()
        manager.reset()
        return manager

    yield _make

    monkeypatch.undo()
    ConfigManager().reset()


@pytest.fixture(scope="session")
def big_html():
    """A page of a little over 6 MiB: an <h1> and 200 <h2> sections, each with a long paragraph and an image."""
    body = "".join(
        f"<h2>Section {i}</h2><p>{'lorem ipsum ' * 2700}</p><img src='/img/{i}.png'>"
        for i in range(200)
    )
    return (
        "<!DOCTYPE html><html><head><title>Big &amp; Long</title>"
        '<meta name="description" content="Huge page">'
        '<link rel="canonical" href="https://example.com/big">'
        f"</head><body><h1>Top</h1>{body}</body></html>"
    )
