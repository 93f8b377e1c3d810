"""Host network interface discovery."""

import logging
import socket

logger = logging.getLogger(__name__)


def list_interfaces() -> list[str]:
    """
    List network interface names on this host, in kernel index order.

    Returns:
        Interface names, empty if the platform cannot enumerate them.
    """
    try:
        return [name for _, name in socket.if_nameindex()]
    except OSError as e:
        logger.warning(f"Could not enumerate interfaces: {e}")
        return []
