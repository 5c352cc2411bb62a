"""
End-to-end extraction: URL in, Article out.

Each call builds its own session, document tree and score table, so calls
share no mutable state and can run concurrently.
"""

import functools
import logging
from typing import Callable, Optional

from .config import load_config
from .dom import build_document
from .exceptions import ExtractionFailed
from .fetcher import fetch_document, validate_url
from .models import Article, FetchResult
from .readability import Readability
from .sanitizer import finalize

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], FetchResult]


def extract_article(
    url: str,
    fetcher: Optional[Fetcher] = None,
    config: Optional[dict] = None,
) -> Article:
    """
    Fetch *url* and return its main article.

    Parameters
    ----------
    url : str
        Absolute http(s) URL of the page.
    fetcher : callable, optional
        ``fetcher(url) -> FetchResult``. Defaults to :func:`fetch_document`
        with the configured timeout and redirect limit.
    config : dict, optional
        Configuration as returned by :func:`load_config`.

    Returns
    -------
    Article
        The extracted article. Any failure raises one of the errors from
        :mod:`cleanread.exceptions` instead; nothing partial is returned.
    """
    cfg = config or load_config()
    url = validate_url(url)

    if fetcher is None:
        fetcher = functools.partial(
            fetch_document,
            timeout=cfg["fetch_timeout"],
            max_redirects=cfg["max_redirects"],
        )

    result = fetcher(url)
    document = build_document(result.content, result.url, result.content_type)

    draft = Readability(
        document,
        url=result.url,
        char_threshold=cfg["char_threshold"],
        min_score=cfg["min_score"],
        nb_top_candidates=cfg["nb_top_candidates"],
    ).parse()
    if draft is None:
        raise ExtractionFailed(url, reason="no_content")

    article = finalize(draft, words_per_minute=cfg["words_per_minute"])
    if article.reading_time == 0:
        raise ExtractionFailed(url, reason="empty_content")
    if not article.title:
        raise ExtractionFailed(url, reason="missing_title")

    logger.info(f"Extracted \"{article.title}\" from {url} ({article.reading_time} min read)")
    return article
