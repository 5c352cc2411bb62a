"""
Turn raw response bytes into a BeautifulSoup document tree.

Decoding follows the ``Content-Type`` charset first and falls back to
``UnicodeDammit`` sniffing. Markup is parsed with ``html.parser``, which is
lenient about unclosed tags, unquoted attributes and bad nesting, so only a
payload that is not text at all is rejected.
"""

import codecs
import logging
import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, UnicodeDammit

from .exceptions import UnparsableDocument

logger = logging.getLogger(__name__)

URL_ATTRIBUTES = ("href", "src", "poster")

_BINARY_MEDIA_PREFIXES = ("image/", "audio/", "video/", "font/")
_BINARY_MEDIA_TYPES = frozenset(
    {
        "application/pdf",
        "application/zip",
        "application/gzip",
        "application/x-gzip",
        "application/x-tar",
        "application/x-7z-compressed",
        "application/vnd.ms-excel",
        "application/msword",
    }
)
_CHARSET = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.I)


def _media_type(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def _declared_charset(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    match = _CHARSET.search(content_type)
    return match.group(1) if match else None


def _looks_binary(content: bytes) -> bool:
    if content.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return False
    return b"\x00" in content[:1024]


def decode_html(content: bytes, url: Optional[str] = None, content_type: Optional[str] = None) -> str:
    """
    Decode *content* to text, raising UnparsableDocument for binary payloads.
    """
    media_type = _media_type(content_type)
    if media_type.startswith(_BINARY_MEDIA_PREFIXES) or media_type in _BINARY_MEDIA_TYPES:
        raise UnparsableDocument(url, content_type)
    if isinstance(content, str):
        return content

    charset = _declared_charset(content_type)
    # NUL bytes are legitimate in a declared UTF-16/32 body
    if charset is None and _looks_binary(content):
        raise UnparsableDocument(url, content_type)
    dammit = UnicodeDammit(
        content,
        known_definite_encodings=[charset] if charset else [],
        is_html=True,
    )
    if dammit.unicode_markup is None or "\x00" in dammit.unicode_markup[:1024]:
        raise UnparsableDocument(url, content_type)
    logger.debug("Decoded %s as %s", url, dammit.original_encoding)
    return dammit.unicode_markup


def _resolve(base_url: str, value: str) -> str:
    value = value.strip()
    if not value or value.startswith("#"):
        return value
    return urljoin(base_url, value)


def _resolve_srcset(base_url: str, srcset: str) -> str:
    candidates = []
    for candidate in srcset.split(","):
        parts = candidate.split()
        if not parts:
            continue
        parts[0] = _resolve(base_url, parts[0])
        candidates.append(" ".join(parts))
    return ", ".join(candidates)


def resolve_relative_urls(document: BeautifulSoup, url: str) -> None:
    """Rewrite relative link and resource URLs as absolute ones, in place."""
    base_url = url
    base_tag = document.find("base", href=True)
    if base_tag is not None:
        base_url = urljoin(url, base_tag["href"].strip())

    for tag in document.find_all(True):
        for attr in URL_ATTRIBUTES:
            value = tag.get(attr)
            if isinstance(value, str):
                tag[attr] = _resolve(base_url, value)
        srcset = tag.get("srcset")
        if isinstance(srcset, str):
            tag["srcset"] = _resolve_srcset(base_url, srcset)


def build_document(content: bytes, url: str, content_type: Optional[str] = None) -> BeautifulSoup:
    """
    Parse the response body into a mutable document tree.

    Parameters
    ----------
    content : bytes
        Raw response body.
    url : str
        URL the body was served from; relative URLs are resolved against it.
    content_type : str, optional
        ``Content-Type`` header of the response.

    Returns
    -------
    BeautifulSoup
        The parsed document.
    """
    markup = decode_html(content, url, content_type)
    document = BeautifulSoup(markup, "html.parser")
    resolve_relative_urls(document, url)
    return document
