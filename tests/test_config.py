import json
import logging
from datetime import timedelta

import pytest

from bramble.config import Config, ConfigError, PluginConfig, get_config, parse_duration


def _write(path, content):
    path.write_text(json.dumps(content), encoding="utf-8")
    return str(path)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("BRAMBLE_SERVICE_LIST", raising=False)
    monkeypatch.delenv("BRAMBLE_LOG_LEVEL", raising=False)


def test_port_provided():
    cfg = Config(gateway_port=8082, private_port=8083, metrics_port=8084)
    assert cfg.gateway_address() == ":8082"
    assert cfg.private_address() == ":8083"
    assert cfg.metric_address() == ":8084"


def test_address_preferred_over_port():
    cfg = Config(
        gateway_listen_address="0.0.0.0:8082",
        gateway_port=0,
        private_listen_address="127.0.0.1:8084",
        private_port=8083,
        metrics_listen_address="",
        metrics_port=8084,
    )
    assert cfg.gateway_address() == "0.0.0.0:8082"
    assert cfg.private_address() == "127.0.0.1:8084"
    assert cfg.metric_address() == ":8084"


def test_private_http_address_for_plugin_services():
    cfg = Config(private_port=8083)
    assert cfg.private_http_address("plugin") == "http://localhost:8083/plugin"
    cfg.private_listen_address = "127.0.0.1:8084"
    assert cfg.private_http_address("plugin") == "http://127.0.0.1:8084/plugin"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("5s", timedelta(seconds=5)),
        ("1h30m", timedelta(minutes=90)),
        ("1.5h", timedelta(minutes=90)),
        ("300ms", timedelta(milliseconds=300)),
        ("-2m", timedelta(minutes=-2)),
        ("0", timedelta(0)),
        ("1m30.5s", timedelta(seconds=90.5)),
        ("1500us", timedelta(microseconds=1500)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "5", "5x", "s", "1h 2m", "-"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError, match="invalid duration"):
        parse_duration(text)


def test_get_config_defaults_and_values(tmp_path):
    path = _write(
        tmp_path / "config.json",
        {"services": ["http://svc-a/query"], "gateway-port": 9000, "poll-interval": "10s"},
    )
    cfg = get_config([path])
    assert cfg.services == ["http://svc-a/query"]
    assert cfg.gateway_port == 9000
    assert cfg.private_port == 8083
    assert cfg.metrics_port == 9009
    assert cfg.poll_interval_duration == timedelta(seconds=10)
    assert cfg.max_requests_per_query == 50
    assert cfg.max_service_response_size == 1024 * 1024


def test_plugins_concatenated_and_extensions_merged(tmp_path):
    first = _write(
        tmp_path / "a.json",
        {
            "services": ["http://a"],
            "plugins": [{"name": "cors", "config": {"allowed-origins": ["*"]}}],
            "extensions": {"one": 1},
        },
    )
    second = _write(
        tmp_path / "b.json",
        {"plugins": [{"name": "admin-ui"}], "extensions": {"two": 2}, "private-port": 7000},
    )
    cfg = get_config([first, second])
    assert cfg.plugins == [
        PluginConfig(name="cors", config={"allowed-origins": ["*"]}),
        PluginConfig(name="admin-ui"),
    ]
    assert cfg.extensions == {"one": 1, "two": 2}
    assert cfg.private_port == 7000


def test_env_service_list_added(tmp_path, monkeypatch):
    monkeypatch.setenv("BRAMBLE_SERVICE_LIST", "http://b http://a")
    path = _write(tmp_path / "c.json", {"services": ["http://a"]})
    assert get_config([path]).services == ["http://a", "http://b"]


def test_no_services(tmp_path):
    path = _write(tmp_path / "c.json", {})
    with pytest.raises(ConfigError, match="no services found in BRAMBLE_SERVICE_LIST"):
        get_config([path])


def test_invalid_poll_interval(tmp_path):
    path = _write(tmp_path / "c.json", {"services": ["http://a"], "poll-interval": "soon"})
    with pytest.raises(ConfigError, match="invalid poll interval"):
        get_config([path])


def test_invalid_field_type(tmp_path):
    path = _write(tmp_path / "c.json", {"gateway-port": "eighty"})
    with pytest.raises(ConfigError, match="error decoding config file"):
        get_config([path])


def test_log_level_from_file_and_env(tmp_path, monkeypatch):
    path = _write(tmp_path / "c.json", {"services": ["http://a"], "loglevel": "info"})
    assert get_config([path]).log_level == logging.INFO
    monkeypatch.setenv("BRAMBLE_LOG_LEVEL", "ERROR")
    assert get_config([path]).log_level == logging.ERROR


def test_invalid_env_log_level_keeps_file_level(tmp_path, monkeypatch):
    monkeypatch.setenv("BRAMBLE_LOG_LEVEL", "loud")
    path = _write(tmp_path / "c.json", {"services": ["http://a"], "loglevel": "warn"})
    assert get_config([path]).log_level == logging.WARNING


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_config([str(tmp_path / "absent.json")])