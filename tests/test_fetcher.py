# tests/test_fetcher.py
"""
Fetcher tests. The HTTP session is replaced by a mock, so no request ever
leaves the process.
"""

import itertools
import socket
from unittest import mock

import pytest
import requests

from cleanread.exceptions import (
    Blocked,
    FetchError,
    InvalidURL,
    NotFound,
    Unreachable,
    UpstreamHTTPError,
    UpstreamUnavailable,
)
from cleanread.fetcher import fetch_document, validate_url


def _session(status=200, url="https://example.com/story", content=b"<html></html>",
             content_type="text/html; charset=utf-8", side_effect=None):
    session = mock.Mock(spec=requests.Session)
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        response = mock.Mock()
        response.status_code = status
        response.url = url
        response.iter_content.return_value = [content[:5], content[5:]]
        response.headers = {"Content-Type": content_type}
        session.get.return_value = response
    return session


@pytest.mark.parametrize(
    "url",
    ["not-a-url", "", "   ", "example.com/path", "ftp://example.com/file", "https://", None, 42],
)
def test_validate_url_rejects(url):
    with pytest.raises(InvalidURL):
        validate_url(url)


def test_validate_url_strips_whitespace():
    assert validate_url("  https://example.com/a?b=1 ") == "https://example.com/a?b=1"


def test_invalid_url_never_reaches_the_network():
    session = _session()
    with pytest.raises(InvalidURL):
        fetch_document("not-a-url", session=session)
    session.get.assert_not_called()


def test_successful_fetch_returns_result():
    session = _session(url="https://example.com/final")

    result = fetch_document("https://example.com/start", session=session, timeout=7)

    assert result.status_code == 200
    assert result.url == "https://example.com/final"
    assert result.content == b"<html></html>"
    assert result.content_type == "text/html; charset=utf-8"
    session.get.assert_called_once_with(
        "https://example.com/start", timeout=7, allow_redirects=True, stream=True
    )
    session.get.return_value.close.assert_called_once_with()
    session.close.assert_not_called()


def test_redirect_status_without_location_is_accepted():
    result = fetch_document("https://example.com/", session=_session(status=304))
    assert result.status_code == 304


@pytest.mark.parametrize(
    "status, error",
    [(403, Blocked), (404, NotFound), (500, UpstreamUnavailable), (503, UpstreamUnavailable)],
)
def test_error_statuses(status, error):
    with pytest.raises(error) as excinfo:
        fetch_document("https://example.com/", session=_session(status=status))
    assert excinfo.value.status == status
    assert excinfo.value.url == "https://example.com/"


def test_other_client_errors_keep_their_status():
    with pytest.raises(UpstreamHTTPError) as excinfo:
        fetch_document("https://example.com/", session=_session(status=410))
    assert type(excinfo.value) is UpstreamHTTPError
    assert excinfo.value.status == 410


def test_dns_failure_is_not_found():
    dns_error = requests.exceptions.ConnectionError(socket.gaierror(-2, "Name or service not known"))
    with pytest.raises(NotFound) as excinfo:
        fetch_document("https://no-such-host.invalid/", session=_session(side_effect=dns_error))
    assert excinfo.value.status is None


def test_refused_connection_is_unreachable():
    refused = requests.exceptions.ConnectionError(ConnectionRefusedError(111, "Connection refused"))
    with pytest.raises(Unreachable) as excinfo:
        fetch_document("https://example.com/", session=_session(side_effect=refused))
    assert excinfo.value.reason == "connection"


def test_timeout_is_unreachable():
    timeout = requests.exceptions.ConnectTimeout("timed out")
    with pytest.raises(Unreachable) as excinfo:
        fetch_document("https://example.com/", session=_session(side_effect=timeout))
    assert excinfo.value.reason == "timeout"


def test_redirect_loop_is_upstream_unavailable():
    loop = requests.exceptions.TooManyRedirects("Exceeded 5 redirects.")
    with pytest.raises(UpstreamUnavailable):
        fetch_document("https://example.com/", session=_session(side_effect=loop))


def test_unknown_request_failure_is_a_fetch_error():
    broken = requests.exceptions.ChunkedEncodingError("broken stream")
    with pytest.raises(FetchError) as excinfo:
        fetch_document("https://example.com/", session=_session(side_effect=broken))
    assert isinstance(excinfo.value.__cause__, requests.exceptions.ChunkedEncodingError)


def test_owned_session_is_closed():
    session = _session()
    with mock.patch("cleanread.fetcher.build_session", return_value=session) as factory:
        fetch_document("https://example.com/", max_redirects=2)
    factory.assert_called_once_with(max_redirects=2)
    session.close.assert_called_once_with()


def test_slow_body_hits_the_overall_deadline():
    session = _session()
    # every clock read is 100 s after the previous one
    with mock.patch("cleanread.fetcher.time.monotonic", side_effect=itertools.count(step=100)):
        with pytest.raises(Unreachable) as excinfo:
            fetch_document("https://example.com/", session=session, timeout=30)
    assert excinfo.value.reason == "timeout"
    session.get.return_value.close.assert_called_once_with()


def test_error_status_closes_the_response():
    session = _session(status=404)
    with pytest.raises(NotFound):
        fetch_document("https://example.com/", session=session)
    session.get.return_value.iter_content.assert_not_called()
    session.get.return_value.close.assert_called_once_with()
