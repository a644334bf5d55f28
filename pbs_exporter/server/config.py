"""Configuration management for the PBS exporter.

Settings come from four layers, later layers winning:

1. Built-in defaults
2. An optional YAML file (``--config`` or ``PBS_CONFIG``)
3. Command-line flags (``--pbs.endpoint`` ...)
4. Environment variables (``PBS_ENDPOINT`` ...), when set and non-empty

Raw values are collected as strings and parsed once, so a malformed
duration or boolean is reported the same way whichever layer supplied it.
The resulting ``Config`` is frozen and threaded explicitly through the
exporter and its collectors.
"""

from __future__ import annotations

import argparse
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml


AUTH_SCHEME = "PBSAPIToken"
REDACTED = "<redacted>"


class ConfigError(Exception):
    """Raised when a configuration value cannot be parsed. Fatal at startup."""


@dataclass(frozen=True)
class Option:
    """One configurable setting and the places it can be supplied from."""

    key: str
    flag: str
    env: str
    default: str
    help: str


OPTIONS: List[Option] = [
    Option("endpoint", "--pbs.endpoint", "PBS_ENDPOINT", "http://localhost:8007",
           "Proxmox Backup Server endpoint"),
    Option("username", "--pbs.username", "PBS_USERNAME", "root@pam",
           "Proxmox Backup Server username"),
    Option("api_token", "--pbs.api.token", "PBS_API_TOKEN", "",
           "Proxmox Backup Server API token"),
    Option("api_token_name", "--pbs.api.token.name", "PBS_API_TOKEN_NAME", "pbs-exporter",
           "Proxmox Backup Server API token name"),
    Option("timeout", "--pbs.timeout", "PBS_TIMEOUT", "5s",
           "Proxmox Backup Server timeout (e.g. 5s, 1m30s, 0 to disable)"),
    Option("insecure", "--pbs.insecure", "PBS_INSECURE", "false",
           "Skip TLS certificate verification (true/false)"),
    Option("metrics_path", "--pbs.metrics-path", "PBS_METRICS_PATH", "/metrics",
           "Path under which to expose metrics"),
    Option("listen_address", "--pbs.listen-address", "PBS_LISTEN_ADDRESS", ":9101",
           "Address on which to expose metrics"),
    Option("log_level", "--pbs.loglevel", "PBS_LOGLEVEL", "info",
           "Log level (debug enables request logging)"),
    Option("debug_credentials", "--pbs.debug-credentials", "PBS_DEBUG_CREDENTIALS", "false",
           "Include the API token in debug logs (true/false). Security sensitive."),
]

CONFIG_FILE_ENV = "PBS_CONFIG"

# YAML section -> keys accepted in that section
_YAML_SECTIONS: Dict[str, Tuple[str, ...]] = {
    "pbs": ("endpoint", "username", "api_token", "api_token_name", "timeout",
            "insecure", "debug_credentials"),
    "server": ("listen_address", "metrics_path"),
}


# =============================================================================
# Value parsers
# =============================================================================

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # micro sign
    "μs": 1e-6,  # greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_bool(text: str, name: str = "value") -> bool:
    """Parse a boolean the way Go's strconv.ParseBool does (no surrounding whitespace)."""
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"Unable to parse {name}: invalid boolean {text!r}")


def parse_duration(text: str, name: str = "duration") -> float:
    """Parse a Go-style duration string (``"5s"``, ``"1m30s"``) into seconds."""
    value = text.strip()
    sign = 1.0
    if value[:1] in ("+", "-"):
        sign = -1.0 if value[0] == "-" else 1.0
        value = value[1:]
    if value == "0":
        return 0.0
    if not value:
        raise ConfigError(f"Unable to parse {name}: invalid duration {text!r}")

    total = 0.0
    pos = 0
    while pos < len(value):
        match = _DURATION_PART.match(value, pos)
        if not match:
            raise ConfigError(f"Unable to parse {name}: invalid duration {text!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return sign * total


def parse_listen_address(text: str) -> Tuple[str, int]:
    """Split ``host:port`` (host optional, IPv6 in brackets) into its parts."""
    host, sep, port_text = text.strip().rpartition(":")
    if not sep:
        raise ConfigError(f"Unable to parse listen address {text!r}: missing port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_text)
    except ValueError:
        raise ConfigError(f"Unable to parse listen address {text!r}: invalid port")
    if not 0 <= port <= 65535:
        raise ConfigError(f"Unable to parse listen address {text!r}: port out of range")
    return host, port


# =============================================================================
# Config objects
# =============================================================================


@dataclass(frozen=True)
class EndpointConfig:
    """Connection settings for the PBS API. Shared read-only by all collectors."""

    endpoint: str = "http://localhost:8007"
    username: str = "root@pam"
    api_token: str = ""
    api_token_name: str = "pbs-exporter"
    timeout: Optional[float] = 5.0  # seconds; None disables the timeout
    insecure: bool = False
    debug_credentials: bool = False

    @property
    def authorization_header(self) -> str:
        return f"{AUTH_SCHEME}={self.username}!{self.api_token_name}:{self.api_token}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary, redacting the token unless opted in."""
        return {
            "endpoint": self.endpoint,
            "username": self.username,
            "api_token": self.api_token if self.debug_credentials else REDACTED,
            "api_token_name": self.api_token_name,
            "timeout": self.timeout,
            "insecure": self.insecure,
            "debug_credentials": self.debug_credentials,
        }


@dataclass(frozen=True)
class ServerConfig:
    """Inbound HTTP server settings."""

    listen_address: str = ":9101"
    metrics_path: str = "/metrics"

    @property
    def host(self) -> str:
        return parse_listen_address(self.listen_address)[0]

    @property
    def port(self) -> int:
        return parse_listen_address(self.listen_address)[1]


@dataclass(frozen=True)
class Config:
    """Main configuration container."""

    endpoint: EndpointConfig = field(default_factory=EndpointConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    log_level: str = "info"

    @classmethod
    def from_values(cls, values: Mapping[str, str]) -> "Config":
        """Build a config from raw string values keyed by option key.

        Missing keys fall back to the option defaults.

        Raises:
            ConfigError: If a duration, boolean, path or address is malformed.
        """
        raw = {opt.key: opt.default for opt in OPTIONS}
        raw.update({k: v for k, v in values.items() if k in raw})

        timeout = parse_duration(raw["timeout"], "timeout")
        if timeout < 0:
            raise ConfigError(f"Unable to parse timeout: negative duration {raw['timeout']!r}")

        metrics_path = raw["metrics_path"]
        if not metrics_path.startswith("/"):
            raise ConfigError(f"Metrics path must start with '/': {metrics_path!r}")
        if metrics_path == "/":
            raise ConfigError("Metrics path must not be '/', it is used by the landing page")

        parse_listen_address(raw["listen_address"])

        return cls(
            endpoint=EndpointConfig(
                endpoint=raw["endpoint"],
                username=raw["username"],
                api_token=raw["api_token"],
                api_token_name=raw["api_token_name"],
                timeout=timeout or None,
                insecure=parse_bool(raw["insecure"], "insecure"),
                debug_credentials=parse_bool(raw["debug_credentials"], "debug_credentials"),
            ),
            server=ServerConfig(
                listen_address=raw["listen_address"],
                metrics_path=metrics_path,
            ),
            log_level=raw["log_level"].strip().lower(),
        )

    @classmethod
    def load(
        cls,
        args: Optional[argparse.Namespace] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Config":
        """Resolve all layers into a config.

        Args:
            args: Parsed flags from a parser set up with ``add_arguments``.
                Flags left at ``None`` were not given.
            environ: Environment mapping (defaults to ``os.environ``).
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, str] = {}

        config_path = getattr(args, "config", None) or environ.get(CONFIG_FILE_ENV)
        if config_path:
            values.update(load_yaml_values(Path(config_path)))

        for opt in OPTIONS:
            flag_value = getattr(args, opt.key, None) if args is not None else None
            if flag_value is not None:
                values[opt.key] = flag_value
            env_value = environ.get(opt.env)
            if env_value:
                values[opt.key] = env_value

        return cls.from_values(values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (token redacted unless opted in)."""
        return {
            "pbs": self.endpoint.to_dict(),
            "server": {
                "listen_address": self.server.listen_address,
                "metrics_path": self.server.metrics_path,
            },
            "log_level": self.log_level,
        }


# =============================================================================
# Sources
# =============================================================================


def _yaml_scalar(key: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if key == "timeout" and isinstance(value, (int, float)):
        return f"{value}s"
    return str(value)


def values_from_dict(data: Dict[str, Any]) -> Dict[str, str]:
    """Flatten the YAML document shape into raw values keyed by option key."""
    values: Dict[str, str] = {}
    for section, keys in _YAML_SECTIONS.items():
        section_data = data.get(section) or {}
        if not isinstance(section_data, dict):
            raise ConfigError(f"Config section {section!r} must be a mapping")
        for key in keys:
            if section_data.get(key) is not None:
                values[key] = _yaml_scalar(key, section_data[key])
    if data.get("log_level") is not None:
        values["log_level"] = str(data["log_level"])
    return values


def load_yaml_values(path: Path) -> Dict[str, str]:
    """Load raw values from a YAML config file.

    Raises:
        ConfigError: If the file is missing, unreadable, or not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"Unable to read config file {path}: {exc}")
    except yaml.YAMLError as exc:
        raise ConfigError(f"Unable to parse config file {path}: {exc}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return values_from_dict(data)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    """Register one flag per option. Defaults are shown in help but not set,
    so unset flags can be told apart from explicit ones."""
    for opt in OPTIONS:
        parser.add_argument(
            opt.flag,
            dest=opt.key,
            default=None,
            metavar=opt.key.upper(),
            help=f"{opt.help} (default: {opt.default!r}, env: {opt.env})",
        )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to a YAML config file (env: {CONFIG_FILE_ENV})",
    )
