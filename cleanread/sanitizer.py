"""
Final clean-up of the extracted article and the derived fields.

The extractor already drops scripts and frames, but the fragment is parsed
again here and every executable or embeddable element is removed a second
time before it leaves the pipeline.
"""

import logging
import math
import re
from typing import Optional

from bs4 import BeautifulSoup, CData, Comment, Declaration, Doctype, ProcessingInstruction

from .models import Article, ExtractedContent

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200

FORBIDDEN_TAGS = frozenset(
    {
        "script", "style", "iframe", "frame", "frameset", "object", "embed", "applet",
        "noscript", "template", "link", "meta", "base",
    }
)
FORBIDDEN_NAME_PARTS = ("script", "style", "iframe")
URL_ATTRIBUTES = ("href", "src", "action", "formaction", "xlink:href", "poster")
UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:text/html")
MARKUP_STRINGS = (Comment, CData, Declaration, Doctype, ProcessingInstruction)
# html.parser accepts names like "scr<script" from broken markup
VALID_TAG_NAME = re.compile(r"^[a-z][a-z0-9:_.-]*$", re.I)


def _is_forbidden(name: str) -> bool:
    name = (name or "").lower()
    return name in FORBIDDEN_TAGS or any(part in name for part in FORBIDDEN_NAME_PARTS)


def sanitize_html(fragment: str) -> str:
    """
    Remove executable and embeddable markup from an HTML fragment.

    Parameters
    ----------
    fragment : str
        HTML produced by the extractor.

    Returns
    -------
    str
        The fragment without script/style/frame/plugin elements, comments,
        event-handler attributes or script URLs. Elements with malformed
        names are unwrapped, keeping their text.
    """
    soup = BeautifulSoup(fragment or "", "html.parser")

    doomed = [tag for tag in soup.find_all(True) if _is_forbidden(tag.name)]
    doomed.extend(soup.find_all(string=lambda text: isinstance(text, MARKUP_STRINGS)))
    if doomed:
        logger.debug("Sanitizer dropped %d nodes", len(doomed))
    for node in doomed:
        node.extract()

    for tag in soup.find_all(lambda tag: not VALID_TAG_NAME.match(tag.name or "")):
        tag.unwrap()

    for tag in soup.find_all(True):
        for attr in list(tag.attrs):
            if attr.lower().startswith("on"):
                del tag[attr]
        for attr in URL_ATTRIBUTES:
            value = tag.get(attr)
            if isinstance(value, str) and "".join(value.split()).lower().startswith(UNSAFE_SCHEMES):
                del tag[attr]

    return soup.decode()


def strip_tags(fragment: str) -> str:
    """Return the text of an HTML fragment with all markup removed."""
    return BeautifulSoup(fragment or "", "html.parser").get_text()


def reading_time(word_count: int, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """Minutes needed to read *word_count* words, rounded up."""
    return math.ceil(word_count / words_per_minute)


def _trim(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def finalize(draft: ExtractedContent, words_per_minute: int = WORDS_PER_MINUTE) -> Article:
    """
    Sanitize the draft content and compute the derived fields.

    Parameters
    ----------
    draft : ExtractedContent
        Output of the extractor.
    words_per_minute : int
        Reading speed used for the reading time.

    Returns
    -------
    Article
        Immutable result. ``title`` is an empty string when the page had
        none; the pipeline treats that as a failed extraction.
    """
    content = sanitize_html(draft.content)
    text = strip_tags(content)
    words = len(text.split())

    return Article(
        title=_trim(draft.title) or "",
        content=content,
        length=len(text),
        reading_time=reading_time(words, words_per_minute),
        byline=_trim(draft.byline),
        excerpt=_trim(draft.excerpt),
        site_name=_trim(draft.site_name),
        published_time=draft.published_time,
    )
