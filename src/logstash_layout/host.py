"""Local host name resolution."""

from __future__ import annotations

import functools
import logging
import socket

logger = logging.getLogger(__name__)

UNKNOWN_HOST = "unknown-host"


@functools.lru_cache(maxsize=1)
def resolve_hostname() -> str:
    """Return the local host name, resolved once per process.

    Returns:
        The host name, or ``"unknown-host"`` if it cannot be determined.
    """
    try:
        hostname = socket.gethostname()
    except OSError as e:
        logger.debug("Could not resolve local host name: %s", e)
        return UNKNOWN_HOST
    return hostname or UNKNOWN_HOST
