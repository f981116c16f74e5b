"""Unit tests for the public IP resolvers."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from ipstash.errors import FetchFailedError, InvalidIPFormatError
from ipstash.services.resolver import HTTPResolver, StaticResolver


FETCH_URL = "https://api.ipify.org"


def make_session(body="", status_error=None, get_error=None):
    """Build a mock requests session whose GET returns body."""
    session = MagicMock()
    response = MagicMock()
    response.text = body
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    session.get.return_value.__enter__.return_value = response
    if get_error is not None:
        session.get.side_effect = get_error
    return session


class TestHTTPResolver:
    """Test HTTPResolver.resolve() method."""

    @pytest.mark.parametrize(
        "body, expected",
        [
            ("203.0.113.45", "203.0.113.45"),
            ("203.0.113.45\n", "203.0.113.45"),
            ("  2001:db8::1  ", "2001:db8::1"),
        ],
    )
    def test_resolve_valid_body(self, body, expected):
        """Test valid bodies resolve to the trimmed literal."""
        resolver = HTTPResolver(FETCH_URL, session=make_session(body))

        ip = resolver.resolve()

        assert ip.value == expected

    @pytest.mark.parametrize(
        "body", ["", "ipstash.example.com", "203.0.113.45 OK", "300.1.1.1", '{"ip": "203.0.113.45"}']
    )
    def test_resolve_invalid_body(self, body):
        """Test bodies that are not IP literals raise InvalidIPFormatError."""
        resolver = HTTPResolver(FETCH_URL, session=make_session(body))

        with pytest.raises(InvalidIPFormatError) as exc_info:
            resolver.resolve()

        assert exc_info.value.raw_value == body

    @pytest.mark.parametrize(
        "error",
        [
            requests.ConnectionError("Connection refused"),
            requests.Timeout("Read timed out"),
            requests.exceptions.SSLError("certificate verify failed"),
        ],
    )
    def test_resolve_transport_error(self, error):
        """Test transport failures raise FetchFailedError without parsing."""
        resolver = HTTPResolver(FETCH_URL, session=make_session(get_error=error))

        with patch("ipstash.services.resolver.IPAddress.parse") as mock_parse:
            with pytest.raises(FetchFailedError) as exc_info:
                resolver.resolve()

        mock_parse.assert_not_called()
        assert exc_info.value.url == FETCH_URL
        assert exc_info.value.cause is error
        assert FETCH_URL in str(exc_info.value)

    def test_resolve_http_error_status(self):
        """Test a 500 response raises FetchFailedError without parsing the body."""
        session = make_session(
            "Internal Server Error",
            status_error=requests.HTTPError("500 Server Error"),
        )
        resolver = HTTPResolver(FETCH_URL, session=session)

        with pytest.raises(FetchFailedError, match="500 Server Error"):
            resolver.resolve()

    def test_resolve_sets_timeout(self):
        """Test that an explicit timeout is passed to the request."""
        session = make_session("203.0.113.45")
        resolver = HTTPResolver(FETCH_URL, timeout=3, session=session)

        resolver.resolve()

        args, kwargs = session.get.call_args
        assert args[0] == FETCH_URL
        assert kwargs["timeout"] == (3, 3)

    def test_resolve_releases_response(self):
        """Test the response is closed via its context manager, even on bad bodies."""
        session = make_session("garbage")
        resolver = HTTPResolver(FETCH_URL, session=session)

        with pytest.raises(InvalidIPFormatError):
            resolver.resolve()

        session.get.return_value.__exit__.assert_called_once()

    def test_close_closes_session(self):
        """Test close() releases the session."""
        session = make_session()
        HTTPResolver(FETCH_URL, session=session).close()

        session.close.assert_called_once()

    @patch("ipstash.services.resolver.requests.Session")
    def test_creates_session_when_omitted(self, mock_session_class):
        """Test a session is created when none is injected."""
        resolver = HTTPResolver(FETCH_URL)

        assert resolver.session is mock_session_class.return_value


class TestStaticResolver:
    """Test StaticResolver.resolve() method."""

    def test_resolve_literal(self):
        """Test injected literals are validated and returned."""
        assert StaticResolver(" 198.51.100.7 ").resolve().value == "198.51.100.7"

    @patch("ipstash.services.resolver.requests.Session")
    def test_resolve_makes_no_http_call(self, mock_session_class):
        """Test the static resolver never touches the network."""
        StaticResolver("198.51.100.7").resolve()

        mock_session_class.assert_not_called()

    def test_resolve_invalid_literal(self):
        """Test invalid literals raise InvalidIPFormatError."""
        with pytest.raises(InvalidIPFormatError):
            StaticResolver("localhost").resolve()
