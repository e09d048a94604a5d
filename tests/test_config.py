"""Tests for engine configuration."""

import json

from docshift.config import EngineConfig, StrategyThresholds


def test_defaults():
    config = EngineConfig()

    assert config.thresholds == StrategyThresholds(embed_max_ratio=0.5, embed_max_records=1000)
    assert config.execution_timeout_seconds == 600.0
    assert config.case_insensitive_names


def test_from_json_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "thresholds": {"embed_max_ratio": 0.25},
        "execution_timeout_seconds": None,
        "catalog_file": "catalog.json",
    }))

    config = EngineConfig.from_json_file(str(path))

    assert config.thresholds.embed_max_ratio == 0.25
    assert config.thresholds.embed_max_records == 1000
    assert config.execution_timeout_seconds is None
    assert config.catalog_file == "catalog.json"


def test_to_dict_omits_api_key():
    config = EngineConfig(api_key="secret")

    assert "api_key" not in config.to_dict()
    assert EngineConfig.from_dict(config.to_dict()).thresholds == config.thresholds


def test_from_env(monkeypatch):
    monkeypatch.setenv("DOCSHIFT_CATALOG_FILE", "/data/catalog.json")
    monkeypatch.setenv("DOCSHIFT_EXECUTOR_URL", "http://transfer.local")
    monkeypatch.setenv("DOCSHIFT_EXECUTION_TIMEOUT", "0")
    monkeypatch.setenv("DOCSHIFT_EMBED_MAX_RATIO", "0.1")
    monkeypatch.setenv("DOCSHIFT_EMBED_MAX_RECORDS", "50")

    config = EngineConfig.from_env()

    assert config.catalog_file == "/data/catalog.json"
    assert config.executor_url == "http://transfer.local"
    assert config.execution_timeout_seconds is None
    assert config.thresholds == StrategyThresholds(embed_max_ratio=0.1, embed_max_records=50)
