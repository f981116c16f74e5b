"""IP literal validation helpers."""

import ipaddress


def parse_ip_literal(value: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    """Parse a bare IPv4 or IPv6 literal.

    Only plain addresses are accepted: no CIDR prefix, no port suffix and no
    IPv6 zone identifier.

    Args:
        value: Candidate IP literal, already trimmed.

    Returns:
        IPv4Address | IPv6Address: Parsed address.

    Raises:
        ValueError: If value is not a plain IP literal.

    Examples:
        >>> parse_ip_literal("203.0.113.45").version
        4
        >>> parse_ip_literal("2001:db8::1").version
        6
    """
    if "%" in value:
        raise ValueError(f"IPv6 zone identifiers are not accepted: {value}")
    return ipaddress.ip_address(value)


def ip_version(value: str) -> int:
    """Return the IP version (4 or 6) of a valid literal.

    Raises:
        ValueError: If value is not a plain IP literal.
    """
    return parse_ip_literal(value).version
