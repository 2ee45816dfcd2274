"""Resolve the effective client configuration from defaults, file and CLI.

:func:`prepare_config` runs a strictly sequential pipeline:

1. Built-in defaults.
2. The YAML file, when a path is given.
3. Command line overrides. Server identifiers are normalised to addresses.
4. Validation (first violation wins).

A scalar override that is ``None`` or its type's zero value (``""``, ``0``) counts
as "not supplied" and never replaces a field, so a zero cannot force a field
back to zero. Every override that changes a field is reported to the
``on_override`` sink.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from types import MappingProxyType

from .addresses import Resolver, lookup_host, normalize_address
from .config import (
    Config,
    ConfigFileError,
    ConfigValidationError,
    default_config,
    read_config,
    validate,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverrideEvent:
    """A configuration field replaced by a higher-precedence source."""

    field: str
    previous: object
    value: object
    source: str = "cli"


OverrideSink = Callable[[OverrideEvent], None]


def log_override(event: OverrideEvent) -> None:
    """Default sink: warn that *event.field* was overridden."""
    LOGGER.warning("overriding %s from CLI flag", event.field)


def prepare_config(
    config_file: str | os.PathLike[str] | None = None,
    targets: Sequence[str] = (),
    iface: str | None = None,
    monitoring_port: int | None = None,
    interval: int | None = None,
    dscp: int | None = None,
    *,
    resolver: Resolver = lookup_host,
    on_override: OverrideSink | None = None,
) -> Config:
    """Return the validated configuration for the given sources.

    Parameters
    ----------
    config_file:
        Optional YAML file to overlay on the defaults. ``None`` or an empty
        path skips the file.
    targets:
        Server identifiers from the command line. A non-empty sequence
        replaces the configured servers; priorities follow list order.
    iface, monitoring_port, interval, dscp:
        Optional scalar overrides. ``interval`` is in nanoseconds. ``None``,
        ``""`` and ``0`` mean "not supplied".
    resolver:
        Name resolution callable used to normalise server identifiers.
    on_override:
        Receives an :class:`OverrideEvent` for every field changed by the
        command line. Defaults to :func:`log_override`.

    Raises
    ------
    ConfigFileError
        The file could not be read or parsed.
    ConfigValidationError
        The merged configuration is invalid.
    """
    emit = on_override if on_override is not None else log_override

    config = default_config()
    if config_file:
        try:
            config = read_config(config_file)
        except ConfigFileError as exc:
            raise type(exc)(
                f"reading config from {os.fspath(config_file)!r}: {exc}", path=exc.path
            ) from exc

    if targets:
        servers = _servers_from_targets(targets, resolver)
        emit(OverrideEvent("targets", dict(config.servers), servers))
    else:
        servers = _renormalize_servers(config.servers, resolver)
    config = replace(config, servers=MappingProxyType(servers))

    config = _apply_overrides(
        config,
        (
            ("iface", "iface", iface),
            ("monitoringport", "monitoring_port", monitoring_port),
            ("interval", "interval", interval),
            ("dscp", "dscp", dscp),
        ),
        emit,
    )

    try:
        validate(config)
    except ConfigValidationError as exc:
        raise ConfigValidationError(f"validating config: {exc}", exc.violations) from exc

    LOGGER.debug("config: %s", config.to_dict())
    return config


def _servers_from_targets(targets: Sequence[str], resolver: Resolver) -> dict[str, int]:
    servers: dict[str, int] = {}
    for index, target in enumerate(targets):
        servers[normalize_address(target, resolver)] = index
    return servers


def _renormalize_servers(servers: Mapping[str, int], resolver: Resolver) -> dict[str, int]:
    return {normalize_address(name, resolver): priority for name, priority in servers.items()}


def _apply_overrides(
    config: Config,
    overrides: Iterable[tuple[str, str, object | None]],
    emit: OverrideSink,
) -> Config:
    changes: dict[str, object] = {}
    for name, attribute, value in overrides:
        current = getattr(config, attribute)
        if not value or value == current:
            continue
        emit(OverrideEvent(name, current, value))
        changes[attribute] = value
    if not changes:
        return config
    return replace(config, **changes)


__all__ = ["OverrideEvent", "OverrideSink", "log_override", "prepare_config"]
