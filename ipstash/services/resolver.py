"""Public IP resolvers."""

import logging
import time
from typing import Optional

import requests

from ipstash.errors import FetchFailedError
from ipstash.models.ip_address import IPAddress
from ipstash.services.logger import log_ip_resolved


logger = logging.getLogger(__name__)

USER_AGENT = "ipstash/1.0"


class HTTPResolver:
    """Resolves the public IP from an endpoint that returns it as the whole body."""

    def __init__(
        self,
        url: str,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        """Initialize HTTP resolver.

        Args:
            url: HTTP(S) endpoint returning the caller's IP as plain text.
            timeout: Connect and read timeout in seconds.
            session: Optional requests session; one is created if omitted.
        """
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def resolve(self) -> IPAddress:
        """Fetch and validate the current public IP.

        Returns:
            IPAddress: Validated, trimmed IP literal.

        Raises:
            FetchFailedError: On transport errors or a non-2xx response.
                The body is never parsed in that case.
            InvalidIPFormatError: If the body is not an IP literal.
        """
        start = time.time()
        logger.debug(f"Fetching public IP from {self.url} (timeout {self.timeout}s)")

        try:
            with self.session.get(
                self.url,
                timeout=(self.timeout, self.timeout),
                headers={"User-Agent": USER_AGENT},
            ) as response:
                response.raise_for_status()
                body = response.text
        except requests.RequestException as e:
            raise FetchFailedError(self.url, e) from e

        ip = IPAddress.parse(body)
        log_ip_resolved(ip.value, self.url, int((time.time() - start) * 1000))
        return ip

    def close(self) -> None:
        self.session.close()


class StaticResolver:
    """Resolver that returns an operator-supplied literal without any network call."""

    source = "static"

    def __init__(self, literal: str):
        self.literal = literal

    def resolve(self) -> IPAddress:
        """Validate and return the injected literal.

        Raises:
            InvalidIPFormatError: If the literal is not an IP address.
        """
        ip = IPAddress.parse(self.literal)
        log_ip_resolved(ip.value, self.source, 0)
        return ip

    def close(self) -> None:
        pass
