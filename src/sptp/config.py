"""Configuration model, defaults, validation and file reader for the sptp client.

Configuration values come from three sources, in increasing precedence:

1. Built-in defaults (:func:`default_config`).
2. A YAML file (:func:`read_config`).
3. Command line overrides (see :mod:`sptp.loader`).

The YAML file is a flat mapping whose keys are the lower-cased field names of
the client, e.g.::

    iface: eth0
    interval: 2s
    exchangetimeout: 200ms
    servers:
      time1.example.com: 0
      192.0.2.10: 1
    measurement:
      path_delay_filter: median
      path_delay_filter_length: 59

Durations are written either in duration notation (``"100ms"``) or as an
integer number of nanoseconds. The resolved configuration is exposed as
immutable ``dataclasses``.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType

try:  # PyYAML is a runtime dependency (declared in pyproject.toml).
    import yaml
except Exception as exc:  # pragma: no cover - import failure is environmental
    raise RuntimeError(
        "PyYAML is required to load sptp configuration. Install with "
        "`pip install sptp-config` or ensure PyYAML>=6.0 is available."
    ) from exc

from .durations import MILLISECOND, SECOND, DurationError, format_duration, parse_duration

LOGGER = logging.getLogger(__name__)

HWTIMESTAMP = "hardware"
SWTIMESTAMP = "software"
TIMESTAMPING_MODES = (HWTIMESTAMP, SWTIMESTAMP)

FILTER_NONE = "none"
FILTER_MEAN = "mean"
FILTER_MEDIAN = "median"
PATH_DELAY_FILTERS = (FILTER_NONE, FILTER_MEAN, FILTER_MEDIAN)


class ConfigError(RuntimeError):
    """Base class for configuration failures."""


class ConfigFileError(ConfigError):
    """Raised when the configuration file cannot be used."""

    def __init__(self, message: str, *, path: Path | str) -> None:
        super().__init__(message)
        self.path = Path(path)


class ConfigReadError(ConfigFileError):
    """Raised when the configuration file is missing or unreadable."""


class ConfigParseError(ConfigFileError):
    """Raised when the configuration file is malformed or has wrong types."""


@dataclass(frozen=True)
class Violation:
    """A single failed validation check, keyed by the field it concerns."""

    field: str
    message: str

    def __str__(self) -> str:
        return self.message


class ConfigValidationError(ConfigError):
    """Raised when a resolved configuration violates an invariant.

    Only the first violation is reported in the message; ``violations`` keeps
    the full ordered list when it was collected.
    """

    def __init__(self, message: str, violations: tuple[Violation, ...]) -> None:
        super().__init__(message)
        self.violations = violations

    @property
    def field(self) -> str:
        """Return the field named by the reported violation."""
        return self.violations[0].field


@dataclass(frozen=True)
class MeasurementConfig:
    """How path delays are filtered before computing clock offset."""

    path_delay_filter_length: int = 0
    path_delay_filter: str = FILTER_NONE
    path_delay_discard_filter_enabled: bool = False
    path_delay_discard_below: int = 0

    def violations(self) -> list[Violation]:
        """Return every failed measurement check, in check order."""
        found: list[Violation] = []
        if self.path_delay_filter_length < 0:
            found.append(
                Violation(
                    "measurement.path_delay_filter_length",
                    "path_delay_filter_length must be 0 or positive",
                )
            )
        if self.path_delay_filter not in PATH_DELAY_FILTERS:
            found.append(
                Violation(
                    "measurement.path_delay_filter",
                    f"path_delay_filter must be either {FILTER_NONE!r}, "
                    f"{FILTER_MEAN!r} or {FILTER_MEDIAN!r}",
                )
            )
        return found

    def to_dict(self) -> dict[str, object]:
        """Return a serialisable representation."""
        return {
            "path_delay_filter_length": self.path_delay_filter_length,
            "path_delay_filter": self.path_delay_filter,
            "path_delay_discard_filter_enabled": self.path_delay_discard_filter_enabled,
            "path_delay_discard_below": format_duration(self.path_delay_discard_below),
        }


@dataclass(frozen=True)
class Config:
    """Resolved sptp client run options.

    Duration fields hold nanoseconds. ``servers`` maps a server address to
    its priority.
    """

    iface: str = ""
    timestamping: str = HWTIMESTAMP
    monitoring_port: int = 0
    interval: int = SECOND
    exchange_timeout: int = 100 * MILLISECOND
    dscp: int = 0
    first_step_threshold: int = 0
    servers: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    measurement: MeasurementConfig = field(default_factory=MeasurementConfig)
    metrics_aggregation_window: int = 60 * SECOND
    attempts_txts: int = 10
    timeout_txts: int = 50 * MILLISECOND
    free_running: bool = False

    def violations(self) -> list[Violation]:
        """Return every failed check, in the order :func:`validate` applies them."""
        found: list[Violation] = []
        if self.interval <= 0:
            found.append(Violation("interval", "interval must be greater than zero"))
        if self.attempts_txts <= 0:
            found.append(Violation("attemptstxts", "attemptstxts must be greater than zero"))
        if self.timeout_txts <= 0:
            found.append(Violation("timeouttxts", "timeouttxts must be greater than zero"))
        if self.metrics_aggregation_window <= 0:
            found.append(
                Violation(
                    "metricsaggregationwindow",
                    "metricsaggregationwindow must be greater than zero",
                )
            )
        if self.monitoring_port < 0:
            found.append(Violation("monitoringport", "monitoringport must be 0 or positive"))
        if self.dscp < 0:
            found.append(Violation("dscp", "dscp must be 0 or positive"))
        if self.exchange_timeout <= 0 or self.exchange_timeout >= self.interval:
            found.append(
                Violation(
                    "exchangetimeout",
                    "exchangetimeout must be greater than zero but less than interval",
                )
            )
        if not self.servers:
            found.append(Violation("servers", "at least one server must be specified"))
        if self.timestamping not in TIMESTAMPING_MODES:
            found.append(
                Violation(
                    "timestamping",
                    f"only {HWTIMESTAMP!r} and {SWTIMESTAMP!r} timestamping is supported",
                )
            )
        if not self.iface:
            found.append(Violation("iface", "iface must be specified"))
        for violation in self.measurement.violations():
            found.append(
                Violation(violation.field, f"invalid measurement config: {violation.message}")
            )
        return found

    def to_dict(self) -> dict[str, object]:
        """Return a serialisable representation keyed like the config file."""
        return {
            "iface": self.iface,
            "timestamping": self.timestamping,
            "monitoringport": self.monitoring_port,
            "interval": format_duration(self.interval),
            "exchangetimeout": format_duration(self.exchange_timeout),
            "dscp": self.dscp,
            "firststepthreshold": format_duration(self.first_step_threshold),
            "servers": dict(self.servers),
            "measurement": self.measurement.to_dict(),
            "metricsaggregationwindow": format_duration(self.metrics_aggregation_window),
            "attemptstxts": self.attempts_txts,
            "timeouttxts": format_duration(self.timeout_txts),
            "freerunning": self.free_running,
        }


def default_config() -> Config:
    """Return a :class:`Config` populated with the built-in defaults."""
    return Config()


def collect_violations(config: Config) -> list[Violation]:
    """Return all violations of *config*, first-reported violation first."""
    return config.violations()


def validate(config: Config) -> None:
    """Raise :class:`ConfigValidationError` for the first violation in *config*."""
    found = collect_violations(config)
    if found:
        raise ConfigValidationError(found[0].message, tuple(found))


# File key -> (Config attribute, kind)
_FIELDS: dict[str, tuple[str, str]] = {
    "iface": ("iface", "str"),
    "timestamping": ("timestamping", "str"),
    "monitoringport": ("monitoring_port", "int"),
    "interval": ("interval", "duration"),
    "exchangetimeout": ("exchange_timeout", "duration"),
    "dscp": ("dscp", "int"),
    "firststepthreshold": ("first_step_threshold", "duration"),
    "metricsaggregationwindow": ("metrics_aggregation_window", "duration"),
    "attemptstxts": ("attempts_txts", "int"),
    "timeouttxts": ("timeout_txts", "duration"),
    "freerunning": ("free_running", "bool"),
}

_MEASUREMENT_FIELDS: dict[str, str] = {
    "path_delay_filter_length": "int",
    "path_delay_filter": "str",
    "path_delay_discard_filter_enabled": "bool",
    "path_delay_discard_below": "duration",
}

ALLOWED_TOP_LEVEL_KEYS = set(_FIELDS) | {"servers", "measurement"}


def read_config(path: str | os.PathLike[str]) -> Config:
    """Read *path* and overlay its values onto :func:`default_config`.

    Keys absent from the file keep their default values.
    """
    config_path = Path(path)
    raw = _load_yaml_file(config_path)
    try:
        return _overlay(default_config(), raw)
    except _FieldError as exc:
        raise ConfigParseError(
            f"Invalid value in config file {config_path}: {exc}", path=config_path
        ) from exc


def _load_yaml_file(path: Path) -> dict[str, object]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigReadError(f"Failed to read config file {path}: {exc}", path=path) from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigParseError(f"Failed to parse config file {path}: {exc}", path=path) from exc
    if not isinstance(data, Mapping):
        raise ConfigParseError(
            f"Config file {path} must contain a mapping at the top level.", path=path
        )
    unknown_keys = {str(key) for key in data} - ALLOWED_TOP_LEVEL_KEYS
    if unknown_keys:
        LOGGER.warning(
            "Ignoring unknown configuration keys in %s: %s", path, ", ".join(sorted(unknown_keys))
        )
    return dict(data)


class _FieldError(ValueError):
    """Internal: a single file value had the wrong shape."""


def _overlay(base: Config, raw: Mapping[str, object]) -> Config:
    changes: dict[str, object] = {}
    for key, (attribute, kind) in _FIELDS.items():
        if key in raw:
            changes[attribute] = _coerce(raw[key], kind, key)

    if "servers" in raw:
        changes["servers"] = MappingProxyType(_expect_servers(raw["servers"]))

    if "measurement" in raw:
        changes["measurement"] = _overlay_measurement(base.measurement, raw["measurement"])

    return replace(base, **changes)


def _overlay_measurement(base: MeasurementConfig, value: object) -> MeasurementConfig:
    if value is None:
        return base
    if not isinstance(value, Mapping):
        raise _FieldError(f"measurement must be a mapping. Got {type(value).__name__}.")
    unknown = {str(key) for key in value} - set(_MEASUREMENT_FIELDS)
    if unknown:
        LOGGER.warning(
            "Ignoring unknown measurement configuration keys: %s", ", ".join(sorted(unknown))
        )
    changes = {
        key: _coerce(value[key], kind, f"measurement.{key}")
        for key, kind in _MEASUREMENT_FIELDS.items()
        if key in value
    }
    return replace(base, **changes)


def _coerce(value: object, kind: str, label: str) -> object:
    if kind == "int":
        return _expect_int(value, label)
    if kind == "duration":
        return _expect_duration(value, label)
    if kind == "bool":
        return _expect_bool(value, label)
    return _expect_str(value, label)


def _expect_int(value: object, label: str) -> int:
    if isinstance(value, bool):
        raise _FieldError(f"Expected {label} to be an integer. Got boolean {value!r}.")
    if isinstance(value, int):
        return value
    raise _FieldError(f"Expected {label} to be an integer. Got {type(value).__name__}.")


def _expect_duration(value: object, label: str) -> int:
    if isinstance(value, bool):
        raise _FieldError(f"Expected {label} to be a duration. Got boolean {value!r}.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return parse_duration(value)
        except DurationError as exc:
            raise _FieldError(f"Invalid duration for {label}: {exc}.") from exc
    raise _FieldError(f"Expected {label} to be a duration. Got {type(value).__name__}.")


def _expect_bool(value: object, label: str) -> bool:
    if isinstance(value, bool):
        return value
    raise _FieldError(f"Expected {label} to be a boolean. Got {type(value).__name__}.")


def _expect_str(value: object, label: str) -> str:
    if isinstance(value, str):
        return value
    raise _FieldError(f"Expected {label} to be a string. Got {value!r}.")


def _expect_servers(value: object) -> dict[str, int]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise _FieldError(f"Expected servers to be a mapping. Got {type(value).__name__}.")
    result: dict[str, int] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise _FieldError(f"Mapping servers must use string keys. Got {key!r}.")
        result[key] = _expect_int(item, f"servers[{key!r}]")
    return result


__all__ = [
    "ALLOWED_TOP_LEVEL_KEYS",
    "Config",
    "ConfigError",
    "ConfigFileError",
    "ConfigParseError",
    "ConfigReadError",
    "ConfigValidationError",
    "FILTER_MEAN",
    "FILTER_MEDIAN",
    "FILTER_NONE",
    "HWTIMESTAMP",
    "MeasurementConfig",
    "PATH_DELAY_FILTERS",
    "SWTIMESTAMP",
    "TIMESTAMPING_MODES",
    "Violation",
    "collect_violations",
    "default_config",
    "read_config",
    "validate",
]
