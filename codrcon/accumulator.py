"""
Response accumulation.

The protocol has no length prefix and no end-of-message marker, so a reply
is considered complete once no further datagram arrives within the read
extension window after the last one.
"""

import logging
import time

from .config import DEFAULT_READ_TIMEOUT
from .errors import RconTimeoutError
from .text import decode_payload, normalize_response, split_lines

logger = logging.getLogger("codrcon.accumulator")


def read_response(transport, read_timeout: float, read_extension: float) -> list[str]:
    """
    Collect datagrams from ``transport`` into one logical response.

    Args:
        transport: anything with ``read_datagram(deadline)``
        read_timeout: seconds to wait for the first datagram
        read_extension: idle window after each datagram; 0 keeps the
            original deadline

    Returns:
        trimmed, non-empty lines; ``[]`` if the reply was only framing

    Raises:
        RconTimeoutError if nothing arrived at all. Other transport
        errors propagate unchanged.
    """
    if read_timeout is None or read_timeout <= 0:
        read_timeout = DEFAULT_READ_TIMEOUT
    if read_extension < 0:
        read_extension = 0

    chunks = []
    deadline = time.monotonic() + read_timeout

    while True:
        try:
            data = transport.read_datagram(deadline)
        except RconTimeoutError:
            if not chunks:
                raise
            break
        if data:
            chunks.append(data)
            if read_extension > 0:
                deadline = time.monotonic() + read_extension

    logger.debug(f"Accumulated {len(chunks)} datagram(s)")
    raw = normalize_response(decode_payload(b"".join(chunks)))
    return split_lines(raw)
