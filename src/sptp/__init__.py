"""Configuration resolution for the sptp time synchronization client.

Start with :func:`sptp.loader.prepare_config`, which merges defaults, the
YAML config file and command line flags into a validated
:class:`sptp.config.Config`.
"""
from __future__ import annotations

__all__ = ["__version__", "get_version"]

__version__ = "0.1.0"  # keep in step with pyproject.toml


def get_version() -> str:
    """Return the installed sptp-config version string."""
    return __version__
