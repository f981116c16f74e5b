"""Validated IP address value type."""

from dataclasses import dataclass

from ipstash.errors import InvalidIPFormatError
from ipstash.utils.ip_utils import ip_version


@dataclass(frozen=True)
class IPAddress:
    """Public IP address that has passed validation.

    Attributes:
        value: Trimmed IP literal exactly as received (no normalization).
        version: 4 or 6.
    """

    value: str
    version: int

    @classmethod
    def parse(cls, raw: str) -> "IPAddress":
        """Build an IPAddress from a raw string.

        Surrounding whitespace is trimmed before validation.

        Args:
            raw: Raw value, e.g. an HTTP response body.

        Returns:
            IPAddress: Validated address holding the trimmed literal.

        Raises:
            InvalidIPFormatError: If the trimmed value is not an IP literal.
                The error names the untrimmed raw value.
        """
        trimmed = raw.strip()
        try:
            version = ip_version(trimmed)
        except ValueError:
            raise InvalidIPFormatError(raw) from None
        return cls(value=trimmed, version=version)

    def __str__(self) -> str:
        return self.value
