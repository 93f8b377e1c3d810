"""
IPv4 CIDR validation for tc u32 filter matches.
"""

import logging

logger = logging.getLogger(__name__)

WILDCARD_CIDR = "0.0.0.0/0"


def _parse_int(text: str):
    # ASCII digits only: the value ends up verbatim in a shell command.
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


def is_valid_cidr(address) -> bool:
    """
    Check whether a string is an IPv4 network in ``a.b.c.d/mask`` form.

    All four octets must be integers in 0-255 and the mask an integer in
    0-32. Malformed input returns False rather than raising.

    Example:
        >>> is_valid_cidr("192.168.1.1/24")
        True
        >>> is_valid_cidr("10.0.0.1/33")
        False
    """
    if not isinstance(address, str):
        return False

    parts = address.split("/")
    if len(parts) != 2:
        return False

    octets = parts[0].split(".")
    if len(octets) != 4:
        return False

    for octet in octets:
        value = _parse_int(octet)
        if value is None or not 0 <= value <= 255:
            return False

    mask = _parse_int(parts[1])
    if mask is None or not 0 <= mask <= 32:
        return False

    return True


def resolve_cidr(address: str) -> str:
    """Return the address unchanged if valid, otherwise the wildcard network."""
    if is_valid_cidr(address):
        return address
    logger.debug(f"Invalid CIDR {address!r}, using {WILDCARD_CIDR}")
    return WILDCARD_CIDR
