"""Gateway configuration loaded from one or more JSON files."""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import re
from datetime import timedelta
from decimal import Decimal
from typing import Any

VERSION = "dev"

logger = logging.getLogger("bramble")

_LOG_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}

_NANOSECONDS = {
    "ns": Decimal(1),
    "us": Decimal(1_000),
    "µs": Decimal(1_000),
    "μs": Decimal(1_000),
    "ms": Decimal(1_000_000),
    "s": Decimal(1_000_000_000),
    "m": Decimal(60_000_000_000),
    "h": Decimal(3_600_000_000_000),
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class ConfigError(Exception):
    """The configuration is missing or invalid."""


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as "5s", "1h30m" or "300ms"; raise ValueError if invalid."""
    text = value
    sign = 1
    if text and text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f'time: invalid duration "{value}"')
    total = Decimal(0)
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ValueError(f'time: invalid duration "{value}"')
        total += Decimal(match[1]) * _NANOSECONDS[match[2]]
        pos = match.end()
    return timedelta(microseconds=int(sign * total / 1000))


def _parse_log_level(value: str) -> int:
    try:
        return _LOG_LEVELS[value.lower()]
    except KeyError:
        raise ValueError(f'not a valid log level: "{value}"') from None


@dataclasses.dataclass
class PluginConfig:
    """The configuration of a named plugin."""

    name: str = ""
    config: Any = None


def _as_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a string, got {value!r}")
    return value


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key}: expected an integer, got {value!r}")
    return value


def _as_str_list(key: str, value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ValueError(f"{key}: expected a list of strings, got {value!r}")
    return [_as_str(key, item) for item in value]


def _as_log_level(key: str, value: Any) -> int:
    return _parse_log_level(_as_str(key, value))


def _as_plugins(key: str, value: Any) -> list[PluginConfig]:
    if not isinstance(value, list):
        raise ValueError(f"{key}: expected a list, got {value!r}")
    plugins = []
    for item in value:
        if not isinstance(item, dict):
            raise ValueError(f"{key}: expected an object, got {item!r}")
        plugin = PluginConfig()
        for name, content in item.items():
            if name.lower() == "name" and content is not None:
                plugin.name = _as_str("name", content)
            elif name.lower() == "config":
                plugin.config = content
        plugins.append(plugin)
    return plugins


def _as_object(key: str, value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{key}: expected an object, got {value!r}")
    return value


_FIELDS = {
    "id-field-name": ("id_field_name", _as_str),
    "gateway-address": ("gateway_listen_address", _as_str),
    "metrics-address": ("metrics_listen_address", _as_str),
    "private-address": ("private_listen_address", _as_str),
    "gateway-port": ("gateway_port", _as_int),
    "metrics-port": ("metrics_port", _as_int),
    "private-port": ("private_port", _as_int),
    "services": ("services", _as_str_list),
    "loglevel": ("log_level", _as_log_level),
    "poll-interval": ("poll_interval", _as_str),
    "max-requests-per-query": ("max_requests_per_query", _as_int),
    "max-service-response-size": ("max_service_response_size", _as_int),
    "plugins": ("plugins", _as_plugins),
}


@dataclasses.dataclass
class Config:
    """The gateway configuration."""

    id_field_name: str = ""
    gateway_listen_address: str = ""
    metrics_listen_address: str = ""
    private_listen_address: str = ""
    gateway_port: int = 8082
    metrics_port: int = 9009
    private_port: int = 8083
    services: list[str] = dataclasses.field(default_factory=list)
    log_level: int = logging.DEBUG
    poll_interval: str = "5s"
    poll_interval_duration: timedelta = timedelta(seconds=5)
    max_requests_per_query: int = 50
    max_service_response_size: int = 1024 * 1024
    plugins: list[PluginConfig] = dataclasses.field(default_factory=list)
    extensions: dict[str, Any] = dataclasses.field(default_factory=dict)
    config_files: list[str] = dataclasses.field(default_factory=list)

    @staticmethod
    def _addr_or_port(addr: str, port: int) -> str:
        return addr if addr else f":{port}"

    def gateway_address(self) -> str:
        """Return the host:port the gateway listens on."""
        return self._addr_or_port(self.gateway_listen_address, self.gateway_port)

    def private_address(self) -> str:
        """Return the host:port of the private server."""
        return self._addr_or_port(self.private_listen_address, self.private_port)

    def private_http_address(self, path: str) -> str:
        """Return the HTTP URL of a path on the private server."""
        if not self.private_listen_address:
            return f"http://localhost:{self.private_port}/{path}"
        return f"http://{self.private_listen_address}/{path}"

    def metric_address(self) -> str:
        """Return the host:port of the metrics server."""
        return self._addr_or_port(self.metrics_listen_address, self.metrics_port)

    def _apply(self, document: Any) -> list[PluginConfig]:
        if document is None:
            return []
        if not isinstance(document, dict):
            raise ValueError(f"expected a JSON object, got {document!r}")
        plugins: list[PluginConfig] = []
        for key, value in document.items():
            if value is None:
                continue
            lowered = key.lower()
            if lowered == "extensions":
                self.extensions.update(_as_object(key, value))
                continue
            entry = _FIELDS.get(lowered)
            if entry is None:
                continue
            attr, convert = entry
            converted = convert(key, value)
            if attr == "plugins":
                plugins = converted
            else:
                setattr(self, attr, converted)
        return plugins

    def load(self) -> None:
        """Load or reload every config file; raise ConfigError if one is invalid."""
        self.extensions = {}
        plugins: list[PluginConfig] = []
        for path in self.config_files:
            with open(path, encoding="utf-8") as handle:
                try:
                    plugins.extend(self._apply(json.load(handle)))
                except ValueError as err:
                    raise ConfigError(f'error decoding config file "{path}": {err}') from err
        self.plugins = plugins

        env_level = os.environ.get("BRAMBLE_LOG_LEVEL", "")
        try:
            self.log_level = _parse_log_level(env_level)
        except ValueError:
            if env_level:
                logger.warning("invalid loglevel: %s", env_level)
        logger.setLevel(self.log_level)

        try:
            self.poll_interval_duration = parse_duration(self.poll_interval)
        except ValueError as err:
            raise ConfigError(f"invalid poll interval: {err}") from err

        self.services = self.build_service_list()

    def build_service_list(self) -> list[str]:
        """Return the services from the config and BRAMBLE_SERVICE_LIST, without duplicates."""
        env_services = os.environ.get("BRAMBLE_SERVICE_LIST", "").split()
        services = list(dict.fromkeys([*self.services, *env_services]))
        if not services:
            files = " ".join(self.config_files)
            raise ConfigError(f"no services found in BRAMBLE_SERVICE_LIST or [{files}]")
        return services


def get_config(config_files: list[str]) -> Config:
    """Build a configuration with defaults and load the given files into it."""
    config = Config(config_files=list(config_files))
    config.load()
    return config