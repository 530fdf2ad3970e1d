"""Host name metric."""

import logging
import socket
from typing import Callable

from ..errors import MetricUnavailable, NameTooLong


logger = logging.getLogger(__name__)


# The name plus its terminator must fit in a 1025-byte buffer
HOSTNAME_LIMIT = 1024


def read_hostname(provider: Callable[[], str] = socket.gethostname) -> str:
    """
    Return the configured host name.

    A name of HOSTNAME_LIMIT bytes or more is an error, never a truncated
    result.

    Raises:
        NameTooLong: Encoded name does not fit the bound.
        MetricUnavailable: The provider failed or returned undecodable bytes.
    """
    try:
        name = provider()
    except OSError as e:
        raise MetricUnavailable(f"Could not fetch host name: {e}", source="hostname")

    try:
        size = len(name.encode("utf-8"))
    except UnicodeEncodeError as e:
        raise MetricUnavailable(f"Host name is not valid UTF-8: {e}", source="hostname")

    if size >= HOSTNAME_LIMIT:
        raise NameTooLong(
            f"Host name to be returned is too long ({size} bytes, "
            f"limit is {HOSTNAME_LIMIT - 1})",
            source="hostname",
        )

    logger.debug(f"Host name is {name!r}")
    return name
