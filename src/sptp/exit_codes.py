"""Process exit statuses of the ``sptp`` command."""
from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit status for each way configuration resolution can end.

    ``VALIDATION`` covers a malformed config file, an invalid flag value and a
    resolved configuration that fails its checks. ``ENVIRONMENT`` means the
    config file could not be read at all.
    """

    OK = 0
    VALIDATION = 2
    ENVIRONMENT = 3
