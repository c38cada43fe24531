"""Runtime configuration for the registry client and archive fetcher.

Settings are layered, lowest precedence first: built-in defaults, a YAML
file, ``NPMFETCH_*`` environment variables, then CLI overrides. The result is
a frozen FetchConfig that is passed explicitly to every component.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

import yaml

from .constants import Constants, ProxyProtocol
from .errors import ConfigError

logger = logging.getLogger(__name__)

ENV_REGISTRY = "NPMFETCH_REGISTRY"
ENV_TIMEOUT = "NPMFETCH_TIMEOUT"
ENV_PROXY_HOST = "NPMFETCH_PROXY_HOST"
ENV_PROXY_PORT = "NPMFETCH_PROXY_PORT"
ENV_PROXY_PROTOCOL = "NPMFETCH_PROXY_PROTOCOL"
ENV_PROXY_USER = "NPMFETCH_PROXY_USER"
ENV_PROXY_PASSWORD = "NPMFETCH_PROXY_PASSWORD"


@dataclass(frozen=True)
class ProxySettings:
    """Outbound proxy used for registry queries and tarball downloads."""

    host: str
    port: int
    protocol: ProxyProtocol = ProxyProtocol.HTTP
    username: Optional[str] = None
    password: Optional[str] = None

    @property
    def is_direct(self) -> bool:
        return self.protocol is ProxyProtocol.DIRECT


@dataclass(frozen=True)
class FetchConfig:
    """Immutable settings shared by the registry client and the unpacker."""

    registry: str = Constants.REGISTRY_URL_NPM
    timeout: float = Constants.REQUEST_TIMEOUT
    retry_delay: float = Constants.METADATA_RETRY_DELAY_SEC
    user_agent: str = Constants.USER_AGENT
    proxy: Optional[ProxySettings] = None
    headers: Dict[str, str] = field(default_factory=dict)

    def with_overrides(self, **changes: Any) -> "FetchConfig":
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _parse_protocol(value: Any) -> ProxyProtocol:
    try:
        return ProxyProtocol(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(p.value for p in ProxyProtocol)
        raise ConfigError(f"Unknown proxy protocol '{value}' (expected one of: {choices})") from exc


def _parse_number(name: str, value: Any, kind=float):
    try:
        number = kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for {name}: {value!r}") from exc
    if number < 0:
        raise ConfigError(f"Invalid value for {name}: {value!r} must not be negative")
    return number


def build_proxy(data: Optional[Mapping[str, Any]]) -> Optional[ProxySettings]:
    """Build ProxySettings from a mapping; None when no host is configured."""
    if not data or not data.get("host"):
        return None
    protocol = _parse_protocol(data.get("protocol", ProxyProtocol.HTTP.value))
    port = data.get("port")
    if port is None:
        raise ConfigError(f"Proxy host '{data['host']}' configured without a port")
    return ProxySettings(
        host=str(data["host"]),
        port=_parse_number("proxy.port", port, int),
        protocol=protocol,
        username=data.get("username") or None,
        password=data.get("password") or None,
    )


def _load_yaml_config(path: str) -> Dict[str, Any]:
    """Read a YAML configuration file into a dict."""
    if not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


def _from_mapping(base: FetchConfig, data: Mapping[str, Any]) -> FetchConfig:
    changes: Dict[str, Any] = {}
    if data.get("registry"):
        changes["registry"] = str(data["registry"])
    if data.get("timeout") is not None:
        changes["timeout"] = _parse_number("timeout", data["timeout"])
    if data.get("retry_delay") is not None:
        changes["retry_delay"] = _parse_number("retry_delay", data["retry_delay"])
    if data.get("user_agent"):
        changes["user_agent"] = str(data["user_agent"])
    if isinstance(data.get("headers"), dict):
        changes["headers"] = {str(k): str(v) for k, v in data["headers"].items()}
    proxy = data.get("proxy")
    if proxy is not None:
        if not isinstance(proxy, dict):
            raise ConfigError("'proxy' must be a mapping")
        changes["proxy"] = build_proxy(proxy)
    return base.with_overrides(**changes)


def _from_environment(base: FetchConfig, environ: Mapping[str, str]) -> FetchConfig:
    data: Dict[str, Any] = {}
    if environ.get(ENV_REGISTRY):
        data["registry"] = environ[ENV_REGISTRY]
    if environ.get(ENV_TIMEOUT):
        data["timeout"] = environ[ENV_TIMEOUT]
    if environ.get(ENV_PROXY_HOST):
        data["proxy"] = {
            "host": environ[ENV_PROXY_HOST],
            "port": environ.get(ENV_PROXY_PORT),
            "protocol": environ.get(ENV_PROXY_PROTOCOL, ProxyProtocol.HTTP.value),
            "username": environ.get(ENV_PROXY_USER),
            "password": environ.get(ENV_PROXY_PASSWORD),
        }
    return _from_mapping(base, data)


def load_config(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> FetchConfig:
    """Build a FetchConfig from defaults, an optional YAML file and the environment.

    Args:
        path: Optional YAML file with ``registry``, ``timeout``, ``retry_delay``
            and ``proxy`` keys.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        FetchConfig: The merged configuration.

    Raises:
        ConfigError: If the file is missing or a value is invalid.
    """
    config = FetchConfig()
    if path:
        config = _from_mapping(config, _load_yaml_config(path))
        logger.debug("Loaded configuration from %s", path)
    return _from_environment(config, os.environ if environ is None else environ)


def apply_cli_overrides(config: FetchConfig, args: Any) -> FetchConfig:
    """Apply CLI arguments on top of ``config`` (highest precedence)."""
    changes: Dict[str, Any] = {}
    if getattr(args, "REGISTRY", None):
        changes["registry"] = args.REGISTRY
    if getattr(args, "TIMEOUT", None) is not None:
        changes["timeout"] = _parse_number("--timeout", args.TIMEOUT)
    if getattr(args, "PROXY_HOST", None):
        changes["proxy"] = build_proxy({
            "host": args.PROXY_HOST,
            "port": getattr(args, "PROXY_PORT", None),
            "protocol": getattr(args, "PROXY_PROTOCOL", None) or ProxyProtocol.HTTP.value,
            "username": getattr(args, "PROXY_USER", None),
            "password": getattr(args, "PROXY_PASSWORD", None),
        })
    return config.with_overrides(**changes)
