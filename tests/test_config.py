"""Tests for configuration loading."""

import json

import yaml

from marketwire.config import DEFAULT_CONFIG, Config
from marketwire.fetchers.sources import FEED_SOURCES, load_sources


def test_defaults():
    cfg = Config()
    assert cfg.get("archive.retention_days") == 7
    assert cfg.get("archive.overflow_limit") == 200
    assert cfg.get("archive.key") == "market_news_archive_v2"
    assert cfg.get("missing.key", "fallback") == "fallback"
    assert cfg.get("archive.max_bytes", 123) == 123


def test_yaml_file_merges_over_defaults(tmp_path):
    path = tmp_path / "marketwire.yaml"
    path.write_text(yaml.safe_dump({"fetch": {"timeout_seconds": 5}, "archive": {"path": "/tmp/x.db"}}))

    cfg = Config(str(path))

    assert cfg.get("fetch.timeout_seconds") == 5
    assert cfg.get("fetch.max_concurrent") == 8
    assert cfg.get("archive.path") == "/tmp/x.db"


def test_json_file(tmp_path):
    path = tmp_path / "marketwire.json"
    path.write_text(json.dumps({"summary": {"max_length": 100}}))
    assert Config(str(path)).get("summary.max_length") == 100


def test_unsupported_or_missing_file_uses_defaults(tmp_path):
    path = tmp_path / "marketwire.ini"
    path.write_text("[fetch]\n")
    assert Config(str(path)).get("fetch.max_concurrent") == 8
    assert Config(str(tmp_path / "absent.yaml")).get("fetch.max_concurrent") == 8


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MARKETWIRE_FETCH_TIMEOUT_SECONDS", "3")
    monkeypatch.setenv("MARKETWIRE_ARCHIVE_PATH", "/data/archive.db")
    cfg = Config()
    assert cfg.get("fetch.timeout_seconds") == 3
    assert cfg.get("archive.path") == "/data/archive.db"


def test_defaults_not_mutated_by_instances():
    cfg = Config()
    cfg.config["signals"]["bullish"].append("moon")
    assert "moon" not in DEFAULT_CONFIG["signals"]["bullish"]


def test_load_sources_defaults_to_registry():
    assert [s.source_name for s in load_sources()] == [s.source_name for s in FEED_SOURCES]


def test_load_sources_skips_malformed_entries():
    sources = load_sources([
        {"url": "https://b", "category": "B", "source_name": "Second", "priority": 2},
        {"url": "https://a", "category": "A", "source_name": "First", "priority": 1},
        {"url": "https://broken"},
        "nonsense",
    ])
    assert [s.source_name for s in sources] == ["First", "Second"]


def test_config_path_variable_is_not_a_setting(monkeypatch, tmp_path):
    path = tmp_path / "marketwire.yaml"
    path.write_text(yaml.safe_dump({"refresh": {"interval_seconds": 30}}))
    monkeypatch.setenv("MARKETWIRE_CONFIG_PATH", str(path))

    cfg = Config(str(path))

    assert "config" not in cfg.config
    assert cfg.get("refresh.interval_seconds") == 30
