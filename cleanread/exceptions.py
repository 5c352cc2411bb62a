"""
Typed failures raised by the extraction pipeline.

Every failure carries structured fields only (the URL, an HTTP status, a
reason code); turning them into user-facing messages is the job of the
serving layer.
"""

from typing import Optional


class CleanReadError(Exception):
    """Base class for every pipeline failure."""

    def __init__(self, url: Optional[str] = None, *args):
        super().__init__(url, *args)
        self.url = url


class InvalidURL(CleanReadError):
    """The input is not an absolute http(s) URL. No request was attempted."""


class FetchError(CleanReadError):
    """The page could not be retrieved."""


class NotFound(FetchError):
    """DNS resolution failed, or the server answered 404."""

    def __init__(self, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(url, status)
        self.status = status


class Unreachable(FetchError):
    """The connection was refused or timed out."""

    def __init__(self, url: Optional[str] = None, reason: str = "connection"):
        super().__init__(url, reason)
        self.reason = reason


class UpstreamHTTPError(FetchError):
    """The server answered with a status outside [200, 400)."""

    def __init__(self, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(url, status)
        self.status = status


class Blocked(UpstreamHTTPError):
    """The server refused the request (403)."""


class UpstreamUnavailable(UpstreamHTTPError):
    """The server failed (5xx) or redirected too many times."""


class UnparsableDocument(CleanReadError):
    """The payload is not decodable as text/HTML."""

    def __init__(self, url: Optional[str] = None, content_type: Optional[str] = None):
        super().__init__(url, content_type)
        self.content_type = content_type


class ExtractionFailed(CleanReadError):
    """
    The page was fetched and parsed but holds no article.
    This is the expected outcome for login pages, listings and navigation
    pages; callers should treat it as a distinct case, not a system fault.
    """

    def __init__(self, url: Optional[str] = None, reason: str = "no_content"):
        super().__init__(url, reason)
        self.reason = reason
