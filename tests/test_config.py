import json

import pytest
import requests

from schema_scraper import ArrayNode, ConfigurationError, SchemaError, load_config
from schema_scraper.config import deduplicate_items, get_urls_from_sitemap, normalize_url, Item

SITEMAP_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://zoo.example.com/animals/giant-anteater</loc></url>
  <url><loc>https://zoo.example.com/animals/silky-anteater</loc></url>
</urlset>
"""


def _write_config(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class FakeSitemapResponse:
    content = SITEMAP_XML

    def raise_for_status(self):
        pass


class TestLoadConfig:
    """Test suite for configuration loading."""

    def test_inline_and_file_schemas(self, tmp_path, anteater_schema):
        (tmp_path / "anteater.json").write_text(json.dumps(anteater_schema), encoding="utf-8")
        path = _write_config(tmp_path, {
            "persistenceStrategy": "file_per_domain",
            "defaults": {"threads": 2, "fetcher": "http", "userAgent": "zoo-bot", "settings": {"propagateLocation": True}},
            "schemas": {"anteater": "anteater.json", "title": {"title": {"selector": "title"}}},
            "items": [
                {"url": "https://zoo.example.com/animals/giant-anteater", "schema": "anteater"},
                {"url": "https://zoo.example.com/", "schema": "title"},
            ],
        })

        config = load_config(path)

        assert config.persistence_strategy == "file_per_domain"
        assert config.defaults.threads == 2
        assert config.defaults.user_agent == "zoo-bot"
        assert config.defaults.settings.propagate_location is True
        assert isinstance(config.schemas["anteater"].fields["diet"], ArrayNode)
        assert [item.schema_name for item in config.items] == ["anteater", "title"]

    def test_unknown_schema_reference(self, tmp_path):
        path = _write_config(tmp_path, {"items": [{"url": "https://zoo.example.com/", "schema": "missing"}]})
        with pytest.raises(ConfigurationError, match="missing"):
            load_config(path)

    def test_invalid_schema(self, tmp_path):
        path = _write_config(tmp_path, {"schemas": {"bad": {"field": {"attribute": "href"}}}})
        with pytest.raises(SchemaError, match="bad.field"):
            load_config(path)

    def test_missing_config(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")

    def test_sitemap_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setattr(requests, "get", lambda url, timeout=None: FakeSitemapResponse())
        path = _write_config(tmp_path, {
            "schemas": {"title": {"title": {"selector": "title"}}},
            "items": [
                {"url": "https://zoo.example.com/sitemap.xml", "schema": "title", "isSitemap": True},
                {"url": "https://zoo.example.com/animals/giant-anteater/", "schema": "title"},
            ],
        })

        config = load_config(path)

        assert [item.url for item in config.items] == [
            "https://zoo.example.com/animals/giant-anteater",
            "https://zoo.example.com/animals/silky-anteater",
        ]

    def test_sitemap_failure_yields_no_urls(self, monkeypatch):
        def fail(url, timeout=None):
            raise requests.ConnectionError("offline")

        monkeypatch.setattr(requests, "get", fail)
        assert get_urls_from_sitemap("https://zoo.example.com/sitemap.xml") == []


class TestUrlHelpers:
    """Test suite for URL normalization and de-duplication."""

    def test_normalize_url(self):
        assert normalize_url("https://zoo.example.com/a/#top") == "https://zoo.example.com/a"
        assert normalize_url("https://zoo.example.com/a?utm_source=x&page=2") == "https://zoo.example.com/a?page=2"

    def test_deduplicate_keeps_first_per_schema(self):
        items = [
            Item(url="https://zoo.example.com/a", schema_name="one"),
            Item(url="https://zoo.example.com/a/", schema_name="one"),
            Item(url="https://zoo.example.com/a", schema_name="two"),
        ]
        assert [(i.url, i.schema_name) for i in deduplicate_items(items)] == [
            ("https://zoo.example.com/a", "one"),
            ("https://zoo.example.com/a", "two"),
        ]
