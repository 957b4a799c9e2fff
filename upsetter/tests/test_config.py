import json
from datetime import timedelta

import pytest

from upsetter.shared.config import DEFAULT_CONFIG, load_config, parse_duration


def test_load_config_from_file(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "url": "http://pushgateway:9091",
        "refresh": "30s",
    }))
    config = load_config(str(config_file))
    assert config["url"] == "http://pushgateway:9091"
    assert config["refresh"] == "30s"


def test_load_config_with_defaults(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"ttl": "1h"}))
    config = load_config(str(config_file), defaults=DEFAULT_CONFIG)
    assert config["ttl"] == "1h"
    assert config["refresh"] == "20s"
    assert config["primary_label"] == "job"


def test_load_config_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/config.json")


@pytest.mark.parametrize("value,expected", [
    ("20s", timedelta(seconds=20)),
    ("24h", timedelta(hours=24)),
    ("1h30m", timedelta(hours=1, minutes=30)),
    ("500ms", timedelta(milliseconds=500)),
    ("1.5m", timedelta(seconds=90)),
    (15, timedelta(seconds=15)),
    (0.5, timedelta(milliseconds=500)),
])
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", [None, "", "0", 0, "0s"])
def test_parse_duration_disabled(value):
    assert parse_duration(value) is None


@pytest.mark.parametrize("value", ["20", "abc", "5x", "s", "-5s", -3, True, [1]])
def test_parse_duration_invalid(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_load_config_defaults_to_default_config(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"url": "http://pg:9091"}))
    config = load_config(str(config_file))
    assert config["url"] == "http://pg:9091"
    assert config["ttl"] == DEFAULT_CONFIG["ttl"]


def test_load_config_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"tll": "1h"}))
    with pytest.raises(ValueError, match="tll"):
        load_config(str(config_file))


def test_load_config_rejects_non_object(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(["url"]))
    with pytest.raises(ValueError):
        load_config(str(config_file))
