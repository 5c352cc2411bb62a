"""
Read article metadata (title, byline, excerpt, site name, publish time)
from a parsed page.

Sources are tried from the most specific to the most generic: JSON-LD
structured data, ``<meta>`` tags, then visible markup. The document is only
read, never modified.
"""

import json
import logging
import re
from datetime import datetime
from typing import Optional

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from .models import PageMetadata
from .scoring import BYLINE, inner_text

logger = logging.getLogger(__name__)

JSON_LD_ARTICLE_TYPES = re.compile(
    r"^(Article|AdvertiserContentArticle|NewsArticle|AnalysisNewsArticle|AskPublicNewsArticle|"
    r"BackgroundNewsArticle|OpinionNewsArticle|ReportageNewsArticle|ReviewNewsArticle|Report|"
    r"SatiricalArticle|ScholarlyArticle|MedicalScholarlyArticle|SocialMediaPosting|BlogPosting|"
    r"LiveBlogPosting|DiscussionForumPosting|TechArticle|APIReference)$"
)
TITLE_SEPARATORS = re.compile(r" [\|\-–—\\/>»] ")
_SEPARATOR_CHARS = r"\|\-–—\\/>»"
SENTENCE = re.compile(r"^(.+?[.!?])(?:\s|$)")

BYLINE_META = ("author", "article:author", "dc.creator", "dcterm:creator", "parsely-author")
EXCERPT_META = (
    "description",
    "og:description",
    "twitter:description",
    "dc.description",
    "dcterm:description",
)
SITE_NAME_META = ("og:site_name", "application-name", "publisher")
TITLE_META = ("og:title", "twitter:title", "dc.title", "dcterm:title", "parsely-title")
PUBLISHED_META = (
    "article:published_time",
    "og:published_time",
    "datepublished",
    "publish_date",
    "pubdate",
    "date",
    "dc.date",
    "dcterms.created",
    "parsely-pub-date",
    "sailthru.date",
)

MAX_BYLINE_LENGTH = 100
MIN_EXCERPT_PARAGRAPH = 25

# Two different fallbacks: a date that parses identically against both was
# fully specified in the source string.
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _clean(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = " ".join(value.split())
    return value or None


def _first(*values) -> Optional[str]:
    for value in values:
        value = _clean(value)
        if value:
            return value
    return None


def word_count(text: str) -> int:
    return len(text.split())


# ---------------------------------------------------------------- meta tags
def collect_meta(document: BeautifulSoup) -> dict:
    """
    Map lowercased ``name``/``property``/``itemprop`` keys to the content of
    the first ``<meta>`` tag declaring them.
    """
    values = {}
    for tag in document.find_all("meta"):
        content = _clean(tag.get("content"))
        if not content:
            continue
        keys = []
        for attr in ("property", "name", "itemprop"):
            raw = tag.get(attr)
            if isinstance(raw, list):
                raw = " ".join(raw)
            if raw:
                keys.extend(raw.lower().split())
        for key in keys:
            values.setdefault(key, content)
    return values


# ----------------------------------------------------------------- JSON-LD
def _json_ld_types(node: dict) -> list:
    types = node.get("@type")
    if isinstance(types, str):
        return [types]
    if isinstance(types, list):
        return [t for t in types if isinstance(t, str)]
    return []


def _iter_json_ld_nodes(data):
    if isinstance(data, list):
        for item in data:
            yield from _iter_json_ld_nodes(item)
    elif isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, list):
            for item in graph:
                yield from _iter_json_ld_nodes(item)


def _json_ld_author(author) -> Optional[str]:
    if isinstance(author, str):
        return _clean(author)
    if isinstance(author, dict):
        return _clean(author.get("name"))
    if isinstance(author, list):
        names = [_json_ld_author(item) for item in author]
        names = [name for name in names if name]
        return ", ".join(names) or None
    return None


def read_json_ld(document: BeautifulSoup) -> dict:
    """
    Return the metadata of the first article-typed JSON-LD object, with keys
    ``title``, ``byline``, ``excerpt``, ``site_name`` and ``published_time``.
    """
    scripts = document.find_all("script", attrs={"type": re.compile(r"application/ld\+json", re.I)})
    for script in scripts:
        raw = script.string or script.get_text()
        raw = re.sub(r"^\s*<!\[CDATA\[|\]\]>\s*$", "", raw.strip())
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.debug("Skipping malformed JSON-LD block: %s", e)
            continue

        for node in _iter_json_ld_nodes(data):
            if not any(JSON_LD_ARTICLE_TYPES.match(t) for t in _json_ld_types(node)):
                continue
            publisher = node.get("publisher")
            return {
                "title": _first(node.get("headline"), node.get("name")),
                "byline": _json_ld_author(node.get("author")),
                "excerpt": _clean(node.get("description")),
                "site_name": _clean(publisher.get("name")) if isinstance(publisher, dict) else None,
                "published_time": _clean(node.get("datePublished")),
            }
    return {}


# -------------------------------------------------------------------- title
def _heading_texts(document: BeautifulSoup, *names) -> list:
    return [text for text in (inner_text(h) for h in document.find_all(list(names))) if text]


def shorten_title(document: BeautifulSoup, original: str) -> str:
    """
    Strip site names and section prefixes from a ``<title>`` value, e.g.
    ``"Story headline | Site"`` becomes ``"Story headline"``.
    """
    original = " ".join(original.split())
    title = original
    had_separator = False

    if TITLE_SEPARATORS.search(title):
        had_separator = True
        title = re.sub(rf"(.*)[{_SEPARATOR_CHARS}] .*", r"\1", original)
        if word_count(title) < 3:
            title = re.sub(rf"[^{_SEPARATOR_CHARS}]*[{_SEPARATOR_CHARS}](.*)", r"\1", original, count=1)
    elif ": " in title:
        headings = _heading_texts(document, "h1", "h2")
        if title.strip() not in headings:
            title = original[original.rfind(":") + 1:]
            if word_count(title) < 3:
                title = original[original.find(":") + 1:]
            elif word_count(original[: original.find(":")]) > 5:
                title = original
    elif len(title) > 150 or len(title) < 15:
        h1s = document.find_all("h1")
        if len(h1s) == 1:
            title = inner_text(h1s[0])

    title = " ".join(title.split())
    title_words = word_count(title)
    if title_words <= 4 and (
        not had_separator
        or title_words != word_count(re.sub(TITLE_SEPARATORS, " ", original)) - 1
    ):
        title = original
    return title


def find_title(document: BeautifulSoup, json_ld: dict, meta: dict, content=None) -> Optional[str]:
    """
    Pick the most specific non-empty title the page declares.

    *content* is the extracted article node; its sole ``<h1>`` beats the
    ``<title>`` tag, which usually carries the site name.
    """
    h1s = _heading_texts(document, "h1")
    if len(h1s) == 1:
        return h1s[0]

    title = _first(json_ld.get("title"), *(meta.get(key) for key in TITLE_META))
    if title:
        return title

    if content is not None:
        h1s = _heading_texts(content, "h1")
        if len(h1s) == 1:
            return h1s[0]

    title_tag = document.find("title")
    if title_tag is not None and inner_text(title_tag):
        return shorten_title(document, inner_text(title_tag))

    headings = _heading_texts(document, "h1", "h2")
    return headings[0] if headings else None


# ------------------------------------------------------------------- byline
def looks_like_byline(node) -> bool:
    """True for short elements marked up as the author line."""
    rel = node.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    itemprop = node.get("itemprop") or ""
    if isinstance(itemprop, list):
        itemprop = " ".join(itemprop)
    classes = node.get("class") or []
    match_string = (" ".join(classes) if isinstance(classes, list) else classes) + " " + (node.get("id") or "")

    if not ("author" in rel or "author" in itemprop or BYLINE.search(match_string)):
        return False
    text = inner_text(node)
    return 0 < len(text) < MAX_BYLINE_LENGTH


def find_byline(document: BeautifulSoup) -> Optional[str]:
    body = document.body or document
    for node in body.find_all(True):
        if node.name in ("script", "style", "meta", "link"):
            continue
        if looks_like_byline(node):
            return inner_text(node)
    return None


def _meta_byline(meta: dict) -> Optional[str]:
    for key in BYLINE_META:
        value = meta.get(key)
        # article:author is often a profile URL
        if value and not re.match(r"^https?://", value):
            return value
    return None


# ---------------------------------------------------------- published time
def normalize_published_time(value: Optional[str]) -> Optional[str]:
    """
    Convert a date string to ISO-8601.

    Returns None when the string cannot be parsed or does not name a full
    calendar date, so the result never depends on the current date.
    """
    value = _clean(value)
    if not value:
        return None
    try:
        parsed = [date_parser.parse(value, default=default) for default in _DATE_DEFAULTS]
    except (ValueError, OverflowError, TypeError) as e:
        logger.debug("Unparseable publish date %r: %s", value, e)
        return None
    if parsed[0].date() != parsed[1].date():
        logger.debug("Incomplete publish date %r", value)
        return None
    return parsed[0].isoformat()


def _time_element_value(document: BeautifulSoup) -> Optional[str]:
    for attrs in ({"pubdate": True}, {"itemprop": "datePublished"}):
        node = document.find(["time", "meta", "span"], attrs=attrs)
        if node is not None:
            value = _first(node.get("datetime"), node.get("content"), inner_text(node))
            if value:
                return value
    node = document.find("time", datetime=True)
    if node is not None:
        return _clean(node["datetime"])
    return None


def find_published_time(document: BeautifulSoup, json_ld: dict, meta: dict) -> Optional[str]:
    candidates = [json_ld.get("published_time")]
    candidates.extend(meta.get(key) for key in PUBLISHED_META)
    candidates.append(_time_element_value(document))
    for candidate in candidates:
        normalized = normalize_published_time(candidate)
        if normalized:
            return normalized
    return None


# ------------------------------------------------------------------ excerpt
def first_sentence(content) -> Optional[str]:
    """First sentence of the first paragraph holding real prose."""
    for paragraph in content.find_all("p"):
        text = inner_text(paragraph)
        if len(text) < MIN_EXCERPT_PARAGRAPH:
            continue
        match = SENTENCE.match(text)
        return match.group(1) if match else text
    return None


def extract_metadata(document: BeautifulSoup, content=None) -> PageMetadata:
    """
    Read every metadata field from *document*, using the extracted article
    *content* as a title source when the page metadata is ambiguous.

    The excerpt may still be None here; the extractor falls back to the
    first sentence of the article body.
    """
    json_ld = read_json_ld(document)
    meta = collect_meta(document)

    metadata = PageMetadata(
        title=find_title(document, json_ld, meta, content),
        byline=_first(json_ld.get("byline"), _meta_byline(meta)) or find_byline(document),
        excerpt=_first(json_ld.get("excerpt"), *(meta.get(key) for key in EXCERPT_META)),
        site_name=_first(json_ld.get("site_name"), *(meta.get(key) for key in SITE_NAME_META)),
        published_time=find_published_time(document, json_ld, meta),
    )
    logger.debug("Metadata: %s", metadata)
    return metadata
