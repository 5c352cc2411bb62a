"""
Download a web page for extraction.

The fetcher performs a single HTTP GET with an overall deadline and a capped
number of redirects, and translates every transport or status failure into
one of the typed errors from :mod:`cleanread.exceptions`.
"""

import logging
import socket
import time
from typing import Optional
from urllib.parse import urlparse

import requests
from urllib3.exceptions import NameResolutionError

from .exceptions import (
    Blocked,
    FetchError,
    InvalidURL,
    NotFound,
    Unreachable,
    UpstreamHTTPError,
    UpstreamUnavailable,
)
from .http_session import build_session
from .models import FetchResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_REDIRECTS = 5
CHUNK_SIZE = 64 * 1024


def validate_url(url) -> str:
    """
    Make sure *url* is an absolute http(s) URL with a host.

    Parameters
    ----------
    url : str
        Candidate URL supplied by the caller.

    Returns
    -------
    str
        The URL with surrounding whitespace removed.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURL(url)
    url = url.strip()
    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError:
        raise InvalidURL(url)
    if parsed.scheme.lower() not in ("http", "https") or not host:
        raise InvalidURL(url)
    return url


def _is_name_resolution_error(exc: BaseException) -> bool:
    """Walk the exception chain looking for a DNS failure."""
    pending = [exc]
    seen = set()
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, (socket.gaierror, NameResolutionError)):
            return True
        pending.append(current.__cause__)
        pending.append(current.__context__)
        reason = getattr(current, "reason", None)
        if isinstance(reason, BaseException):
            pending.append(reason)
        pending.extend(arg for arg in current.args if isinstance(arg, BaseException))
    return False


def _read_body(resp, url: str, deadline: float) -> bytes:
    """Read the streamed body, giving up once *deadline* has passed."""
    chunks = []
    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
        if time.monotonic() > deadline:
            logger.warning("Download of %s exceeded its time limit", url)
            raise Unreachable(url, reason="timeout")
        chunks.append(chunk)
    return b"".join(chunks)


def _status_error(url: str, status: int) -> FetchError:
    if status == 403:
        return Blocked(url, status)
    if status == 404:
        return NotFound(url, status)
    if status >= 500:
        return UpstreamUnavailable(url, status)
    return UpstreamHTTPError(url, status)


def fetch_document(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
) -> FetchResult:
    """
    Download the page at *url*.

    Parameters
    ----------
    url : str
        Absolute http(s) URL of the page.
    session : requests.Session, optional
        Session to use. When omitted a fresh one is built and closed
        before returning.
    timeout : float
        Seconds the whole download may take. Connecting, waiting for the
        response and reading the body all count against the same deadline.
    max_redirects : int
        Upper bound on followed redirects.

    Returns
    -------
    FetchResult
        Status, final URL, raw body and content type of the response.
    """
    url = validate_url(url)
    deadline = time.monotonic() + timeout

    owns_session = session is None
    if owns_session:
        session = build_session(max_redirects=max_redirects)

    logger.info("Fetching %s", url)
    try:
        resp = session.get(url, timeout=timeout, allow_redirects=True, stream=True)
        try:
            status = resp.status_code
            if not 200 <= status < 400:
                logger.warning("Upstream answered %d for %s", status, url)
                raise _status_error(url, status)
            content = _read_body(resp, url, deadline)
        finally:
            resp.close()
    except requests.exceptions.TooManyRedirects as exc:
        logger.warning("Too many redirects for %s", url)
        raise UpstreamUnavailable(url) from exc
    except requests.exceptions.Timeout as exc:
        logger.warning("Timed out fetching %s", url)
        raise Unreachable(url, reason="timeout") from exc
    except requests.exceptions.ConnectionError as exc:
        if _is_name_resolution_error(exc):
            logger.warning("Could not resolve host for %s", url)
            raise NotFound(url) from exc
        logger.warning("Connection failed for %s: %s", url, exc)
        raise Unreachable(url, reason="connection") from exc
    except (
        requests.exceptions.InvalidURL,
        requests.exceptions.MissingSchema,
        requests.exceptions.InvalidSchema,
    ) as exc:
        raise InvalidURL(url) from exc
    except requests.exceptions.RequestException as exc:
        logger.error("Request for %s failed: %s", url, exc)
        raise FetchError(url) from exc
    finally:
        if owns_session:
            session.close()

    logger.info("Fetched %s (%d, %d bytes)", resp.url, status, len(content))
    return FetchResult(
        status_code=status,
        url=resp.url or url,
        content=content,
        content_type=resp.headers.get("Content-Type"),
    )
