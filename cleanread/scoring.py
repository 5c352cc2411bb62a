"""
Keyword tables and text-density measures shared by the extractor and the
metadata reader.

The tables are module-level constants built once at import time and never
mutated: compiled patterns, frozensets and read-only mappings.
"""

import re
from types import MappingProxyType

from bs4 import BeautifulSoup, Tag

# class/id patterns
UNLIKELY_CANDIDATES = re.compile(
    r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|extra|"
    r"footer|gdpr|header|legends|menu|related|remark|replies|rss|shoutbox|sidebar|"
    r"skyscraper|social|sponsor|supplemental|ad-break|agegate|pagination|pager|popup|"
    r"yom-remote",
    re.I,
)
MAYBE_CANDIDATE = re.compile(r"and|article|body|column|content|main|shadow", re.I)
POSITIVE = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|blog|story",
    re.I,
)
NEGATIVE = re.compile(
    r"-ad-|hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|footer|gdpr|"
    r"masthead|media|meta|outbrain|promo|related|scroll|share|shoutbox|sidebar|skyscraper|"
    r"sponsor|shopping|tags|widget",
    re.I,
)
BYLINE = re.compile(r"byline|author|dateline|writtenby|p-author", re.I)
COMMAS = re.compile("[,،﹐︐︑⹁⸴⸲，]")
HASH_URL = re.compile(r"^#.+")

# Pattern -> weight applied to an element's class and, separately, its id.
CLASS_WEIGHTS = MappingProxyType({NEGATIVE: -25, POSITIVE: 25})

# Starting score of a candidate, by tag name.
TAG_WEIGHTS = MappingProxyType(
    {
        "div": 5,
        "article": 5,
        "pre": 3,
        "td": 3,
        "blockquote": 3,
        "address": -3,
        "ol": -3,
        "ul": -3,
        "dl": -3,
        "dd": -3,
        "dt": -3,
        "li": -3,
        "form": -3,
        "h1": -5,
        "h2": -5,
        "h3": -5,
        "h4": -5,
        "h5": -5,
        "h6": -5,
        "th": -5,
    }
)

HASH_LINK_WEIGHT = 0.3

UNLIKELY_TAGS = frozenset({"nav", "aside", "footer"})
UNLIKELY_ROLES = frozenset(
    {"menu", "menubar", "complementary", "navigation", "alert", "alertdialog", "dialog"}
)
SCORE_TAGS = frozenset({"section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre"})
# A div holding any of these is a container rather than a paragraph.
DIV_BLOCK_TAGS = frozenset({"blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul"})
BLOCK_TAGS = DIV_BLOCK_TAGS | frozenset(
    {
        "address", "article", "aside", "details", "fieldset", "figcaption", "figure",
        "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "li",
        "main", "nav", "section", "summary",
    }
)
MEDIA_TAGS = frozenset({"img", "picture", "video", "audio", "embed", "object", "iframe", "svg"})
PRESERVED_TAGS = frozenset({"img", "picture", "figure", "figcaption", "video", "audio", "source"})
PRESENTATIONAL_ATTRIBUTES = (
    "align", "background", "bgcolor", "border", "cellpadding", "cellspacing",
    "frame", "hspace", "rules", "style", "valign", "vspace",
)
DEPRECATED_SIZE_TAGS = frozenset({"table", "th", "td", "hr", "pre"})

MIN_PARAGRAPH_LENGTH = 25
MAX_SCORED_ANCESTORS = 5


def is_element(node) -> bool:
    """True for real elements, False for strings and the document root."""
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def element_children(node):
    return [child for child in node.children if isinstance(child, Tag)]


def inner_text(node, normalize: bool = True) -> str:
    text = node.get_text()
    if normalize:
        return " ".join(text.split())
    return text.strip()


def count_commas(text: str) -> int:
    return len(COMMAS.findall(text))


def class_and_id(node) -> str:
    classes = node.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    return " ".join(classes) + " " + (node.get("id") or "")


def get_class_weight(node) -> int:
    """Sum the keyword weights matched by the element's class and id."""
    weight = 0
    classes = node.get("class") or []
    class_name = " ".join(classes) if isinstance(classes, list) else classes
    element_id = node.get("id") or ""
    for value in (class_name, element_id):
        if not value:
            continue
        for pattern, pattern_weight in CLASS_WEIGHTS.items():
            if pattern.search(value):
                weight += pattern_weight
    return weight


def link_density(node) -> float:
    """Share of the element's text that sits inside links."""
    text_length = len(inner_text(node))
    if text_length == 0:
        return 0.0
    link_length = 0.0
    for link in node.find_all("a"):
        href = link.get("href") or ""
        coefficient = HASH_LINK_WEIGHT if HASH_URL.match(href) else 1.0
        link_length += len(inner_text(link)) * coefficient
    return min(link_length / text_length, 1.0)


def has_ancestor_tag(node, tag_name: str, max_depth: int = 3) -> bool:
    """Check the element's ancestors for *tag_name*; max_depth <= 0 means unlimited."""
    depth = 0
    for parent in node.parents:
        if max_depth > 0 and depth >= max_depth:
            return False
        if parent.name == tag_name and is_element(parent):
            return True
        depth += 1
    return False


def has_media(node) -> bool:
    return node.name in MEDIA_TAGS or node.find(list(MEDIA_TAGS)) is not None
