"""Exceptions raised by ipstash.

Every error is terminal for the current run. Business code raises them and
only the top-level handler in ``ipstash.main`` logs and maps them to an exit
code.
"""


class IPStashError(Exception):
    """Base exception for all ipstash errors."""

    pass


class FetchFailedError(IPStashError):
    """The IP fetch endpoint could not be reached or returned an HTTP error."""

    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to fetch IP from {url}: {cause}")


class InvalidIPFormatError(IPStashError, ValueError):
    """A value did not parse as an IPv4 or IPv6 literal."""

    def __init__(self, raw_value: str):
        self.raw_value = raw_value
        super().__init__(f"Invalid IP format received: {raw_value!r}")


class PublishFailedError(IPStashError):
    """The broker was unreachable or rejected a publish/record operation."""

    def __init__(self, target: str, cause: Exception):
        self.target = target
        self.cause = cause
        super().__init__(f"Failed to propagate IP to Redis target '{target}': {cause}")


class ConfigInvalidError(IPStashError, ValueError):
    """Configuration failed validation at startup."""

    def __init__(self, setting: str, message: str):
        self.setting = setting
        super().__init__(message)
