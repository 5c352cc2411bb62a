"""
Content-scoring extractor that isolates the main article of a page.

The algorithm follows the well-known readability heuristics:

1. drop noise (scripts, styles, hidden and unlikely nodes);
2. score paragraph-like elements by comma count and length, and credit a
   decreasing share of that score to their ancestors;
3. scale every candidate by ``1 - link density`` and pick the best one,
   breaking ties by document order;
4. pull in related siblings of the winner;
5. clean the assembled content (presentational attributes, forms,
   negatively weighted and link-heavy blocks, empty containers).

When the result is shorter than ``char_threshold`` characters the whole
process is repeated with progressively fewer heuristics enabled, and the
longest attempt wins.

Every attempt works on its own copy of the document. Node removals are
always done in two phases: collect first, then detach.
"""

import copy
import enum
import logging
import re
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .metadata import extract_metadata, first_sentence, looks_like_byline
from .models import ExtractedContent
from .scoring import (
    BLOCK_TAGS,
    DEPRECATED_SIZE_TAGS,
    DIV_BLOCK_TAGS,
    MAX_SCORED_ANCESTORS,
    MAYBE_CANDIDATE,
    MIN_PARAGRAPH_LENGTH,
    PRESENTATIONAL_ATTRIBUTES,
    PRESERVED_TAGS,
    SCORE_TAGS,
    TAG_WEIGHTS,
    UNLIKELY_CANDIDATES,
    UNLIKELY_ROLES,
    UNLIKELY_TAGS,
    class_and_id,
    count_commas,
    element_children,
    get_class_weight,
    has_ancestor_tag,
    has_media,
    inner_text,
    is_element,
    link_density,
)

logger = logging.getLogger(__name__)

DEFAULT_CHAR_THRESHOLD = 500
DEFAULT_MIN_SCORE = 5.0
DEFAULT_TOP_CANDIDATES = 5
# Alternatives needed before the winner is promoted to their common ancestor.
MINIMUM_TOP_CANDIDATES = 3

NOISE_TAGS = ("script", "style", "noscript", "template", "link", "iframe", "object", "embed")
REMOVED_IN_CONTENT = (
    "object", "embed", "footer", "link", "aside", "iframe", "input", "textarea", "select", "button",
)
EMPTY_CONTAINER_TAGS = (
    "p", "div", "section", "article", "header", "span", "li", "ul", "ol", "blockquote",
    "figure", "h1", "h2", "h3", "h4", "h5", "h6",
)
WITHOUT_CONTENT_TAGS = ("div", "section", "header", "h1", "h2", "h3", "h4", "h5", "h6")
SIBLING_TAGS = frozenset({"div", "article", "section", "p"})
HIDDEN_STYLE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.I)
SENTENCE_END = re.compile(r"\.( |$)")

ARTICLE_ID = "readability-content"


class Flags(enum.IntFlag):
    STRIP_UNLIKELYS = 1
    WEIGHT_CLASSES = 2
    CLEAN_CONDITIONALLY = 4


ALL_FLAGS = Flags.STRIP_UNLIKELYS | Flags.WEIGHT_CLASSES | Flags.CLEAN_CONDITIONALLY
# Heuristics switched off one at a time when an attempt comes out too short.
FLAG_RETRY_ORDER = (Flags.STRIP_UNLIKELYS, Flags.WEIGHT_CLASSES, Flags.CLEAN_CONDITIONALLY)


class ScoreTable:
    """
    Candidate scores for one extraction attempt, keyed by node identity.

    Nodes are held alongside their score so identities stay valid for the
    lifetime of the table. Insertion order is preserved.
    """

    def __init__(self):
        self._entries: Dict[int, List] = {}

    def __contains__(self, node) -> bool:
        return id(node) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def initialize(self, node, score: float) -> None:
        self._entries[id(node)] = [node, score]

    def add(self, node, delta: float) -> None:
        self._entries[id(node)][1] += delta

    def get(self, node, default: float = 0.0) -> float:
        entry = self._entries.get(id(node))
        return entry[1] if entry else default

    def set(self, node, score: float) -> None:
        self._entries[id(node)][1] = score

    def items(self):
        return [(node, score) for node, score in self._entries.values()]


def _remove_nodes(nodes) -> None:
    """Detach every collected node; detaching inside a removed subtree is harmless."""
    for node in nodes:
        node.extract()


def _document_order(page) -> Dict[int, int]:
    return {id(node): index for index, node in enumerate(page.find_all(True))}


def _is_hidden(node) -> bool:
    if node.has_attr("hidden"):
        return True
    if (node.get("aria-hidden") or "").lower() == "true":
        return True
    return bool(HIDDEN_STYLE.search(node.get("style") or ""))


def _is_without_content(node) -> bool:
    if inner_text(node):
        return False
    children = element_children(node)
    return all(child.name in ("br", "hr") for child in children)


def _has_block_descendant(node) -> bool:
    return node.find(list(DIV_BLOCK_TAGS)) is not None


def _is_phrasing(node) -> bool:
    if isinstance(node, Tag):
        return node.name not in BLOCK_TAGS
    return isinstance(node, NavigableString) and not isinstance(node, Comment)


def _is_boundary(node) -> bool:
    """True past the last node a candidate may climb to."""
    return not is_element(node) or node.name in ("body", "html")


def _ancestors(node, max_depth: int) -> list:
    ancestors = []
    parent = node.parent
    # the root element is never a candidate
    while is_element(parent) and parent.name != "html" and len(ancestors) < max_depth:
        ancestors.append(parent)
        parent = parent.parent
    return ancestors


def _is_ancestor(ancestor, node) -> bool:
    return any(parent is ancestor for parent in node.parents)


def _is_data_table(table) -> bool:
    if (table.get("role") or "").lower() == "presentation":
        return False
    if (table.get("datatable") or "") == "0":
        return False
    if table.get("summary") or table.find("caption") is not None:
        return True
    if table.find(["th", "col", "colgroup", "tfoot", "thead"]) is not None:
        return True
    if table.find("table") is not None:
        return False
    rows = table.find_all("tr")
    columns = max((len(row.find_all(["td", "th"])) for row in rows), default=0)
    if len(rows) >= 10 or columns > 4:
        return True
    return len(rows) * columns > 10


class Readability:
    """
    Extract the main article from a parsed page.

    Parameters
    ----------
    document : BeautifulSoup
        Parsed page. It is never modified.
    url : str, optional
        Page URL, used only in log messages.
    char_threshold : int
        Minimum text length of an attempt before retrying with looser rules.
    min_score : float
        Minimum score of the best candidate for a page to count as an article.
    nb_top_candidates : int
        Number of runner-up candidates considered for ancestor promotion.
    """

    def __init__(
        self,
        document: BeautifulSoup,
        url: Optional[str] = None,
        char_threshold: int = DEFAULT_CHAR_THRESHOLD,
        min_score: float = DEFAULT_MIN_SCORE,
        nb_top_candidates: int = DEFAULT_TOP_CANDIDATES,
    ):
        self._document = document
        self.url = url
        self.char_threshold = char_threshold
        self.min_score = min_score
        self.nb_top_candidates = nb_top_candidates

    # ------------------------------------------------------------ public
    def parse(self) -> Optional[ExtractedContent]:
        """
        Run the extraction.

        Returns
        -------
        ExtractedContent or None
            None when the page holds no article (no candidate reaches the
            minimum score, or the content has no text).
        """
        attempts: List[Tuple[Tag, int]] = []
        flags = ALL_FLAGS
        retries = list(FLAG_RETRY_ORDER)
        while True:
            page = self._prepare_page()
            article = self._grab_article(page, flags)
            if article is not None:
                text_length = len(inner_text(article))
                if text_length >= self.char_threshold:
                    break
                attempts.append((article, text_length))
            if not retries:
                article = None
                break
            flags &= ~retries.pop(0)
            logger.debug("Retrying %s with flags %r", self.url, flags)

        if article is None:
            # longest attempt wins; the stable sort keeps the earliest on ties
            attempts.sort(key=lambda attempt: -attempt[1])
            if not attempts or attempts[0][1] == 0:
                logger.info("No article content found in %s", self.url)
                return None
            article = attempts[0][0]

        metadata = extract_metadata(self._document, content=article)
        excerpt = metadata.excerpt or first_sentence(article)
        return ExtractedContent(
            title=metadata.title,
            content=article.decode(),
            byline=metadata.byline,
            excerpt=excerpt,
            site_name=metadata.site_name,
            published_time=metadata.published_time,
        )

    def rank_candidates(self, flags: Flags = ALL_FLAGS) -> List[Tuple[Tag, float]]:
        """
        Score a fresh copy of the page and return its candidates, best
        first, ties in document order.
        """
        page = self._prepare_page()
        self._strip_unlikely_nodes(page, flags)
        scores = self._score_elements(page, flags)
        return self._ranked(scores, _document_order(page))

    # ------------------------------------------------------ preprocessing
    def _prepare_page(self) -> BeautifulSoup:
        page = copy.copy(self._document)
        noise = page.find_all(NOISE_TAGS)
        noise.extend(page.find_all(string=lambda text: isinstance(text, Comment)))
        _remove_nodes(noise)
        return page

    def _strip_unlikely_nodes(self, page: BeautifulSoup, flags: Flags) -> None:
        body = page.body or page
        doomed = []
        for node in body.find_all(True):
            if _is_hidden(node):
                doomed.append(node)
                continue
            if looks_like_byline(node):
                doomed.append(node)
                continue
            if flags & Flags.STRIP_UNLIKELYS:
                if node.name in UNLIKELY_TAGS:
                    doomed.append(node)
                    continue
                if (node.get("role") or "").lower() in UNLIKELY_ROLES:
                    doomed.append(node)
                    continue
                match_string = class_and_id(node)
                if (
                    UNLIKELY_CANDIDATES.search(match_string)
                    and not MAYBE_CANDIDATE.search(match_string)
                    and node.name not in ("body", "a")
                    and not has_ancestor_tag(node, "table")
                    and not has_ancestor_tag(node, "code")
                ):
                    logger.debug("Removing unlikely candidate <%s %s>", node.name, match_string.strip())
                    doomed.append(node)
                    continue
            if node.name in WITHOUT_CONTENT_TAGS and _is_without_content(node):
                doomed.append(node)
        _remove_nodes(doomed)

    def _wrap_loose_text(self, page: BeautifulSoup) -> None:
        """Wrap runs of inline content inside block divs in paragraphs."""
        body = page.body or page
        runs = []
        for div in body.find_all("div"):
            if not _has_block_descendant(div):
                continue
            run = []
            for child in list(div.children):
                if _is_phrasing(child):
                    run.append(child)
                    continue
                runs.append(run)
                run = []
            runs.append(run)

        for run in runs:
            text = "".join(
                node.get_text() if isinstance(node, Tag) else str(node) for node in run
            )
            if not text.strip():
                continue
            paragraph = page.new_tag("p")
            run[0].insert_before(paragraph)
            for node in run:
                paragraph.append(node)

    # ------------------------------------------------------------ scoring
    def _initial_score(self, node, flags: Flags) -> float:
        score = TAG_WEIGHTS.get(node.name, 0)
        if flags & Flags.WEIGHT_CLASSES:
            score += get_class_weight(node)
        return float(score)

    def _score_elements(self, page: BeautifulSoup, flags: Flags) -> ScoreTable:
        self._wrap_loose_text(page)
        body = page.body or page

        elements = [
            node
            for node in body.find_all(True)
            if node.name in SCORE_TAGS or (node.name == "div" and not _has_block_descendant(node))
        ]

        scores = ScoreTable()
        for element in elements:
            text = inner_text(element)
            if len(text) < MIN_PARAGRAPH_LENGTH:
                continue
            ancestors = _ancestors(element, MAX_SCORED_ANCESTORS)
            if not ancestors:
                continue

            content_score = 1 + count_commas(text) + min(len(text) // 100, 3)
            for level, ancestor in enumerate(ancestors):
                if ancestor not in scores:
                    scores.initialize(ancestor, self._initial_score(ancestor, flags))
                if level == 0:
                    divider = 1
                elif level == 1:
                    divider = 2
                else:
                    divider = level * 3
                scores.add(ancestor, content_score / divider)

        for node, score in scores.items():
            scores.set(node, score * (1 - link_density(node)))
        return scores

    @staticmethod
    def _ranked(scores: ScoreTable, order: Dict[int, int]) -> List[Tuple[Tag, float]]:
        return sorted(scores.items(), key=lambda item: (-item[1], order.get(id(item[0]), 0)))

    def _select_top_candidate(self, page: BeautifulSoup, scores: ScoreTable, flags: Flags) -> Optional[Tag]:
        ranked = self._ranked(scores, _document_order(page))
        if not ranked:
            return None
        top, top_score = ranked[0]
        if top_score < self.min_score:
            logger.debug("Best candidate <%s> scored %.2f, below %.2f", top.name, top_score, self.min_score)
            return None

        # several strong alternatives under one ancestor: the ancestor is the article
        alternatives = [
            node
            for node, score in ranked[1 : self.nb_top_candidates]
            if score / top_score >= 0.75
        ]
        if len(alternatives) >= MINIMUM_TOP_CANDIDATES:
            parent = top.parent
            while not _is_boundary(parent):
                containing = sum(1 for node in alternatives if _is_ancestor(parent, node))
                if containing >= MINIMUM_TOP_CANDIDATES:
                    top = parent
                    break
                parent = parent.parent
        if top not in scores:
            scores.initialize(top, self._initial_score(top, flags))

        # climb while the parent scores better
        parent = top.parent
        last_score = scores.get(top)
        threshold = last_score / 3
        while not _is_boundary(parent):
            if parent not in scores:
                parent = parent.parent
                continue
            parent_score = scores.get(parent)
            if parent_score < threshold:
                break
            if parent_score > last_score:
                top = parent
                break
            last_score = parent_score
            parent = parent.parent

        # climb through single-child wrappers
        parent = top.parent
        while not _is_boundary(parent) and len(element_children(parent)) == 1:
            top = parent
            parent = top.parent
        if top not in scores:
            scores.initialize(top, self._initial_score(top, flags))
        return top

    # ---------------------------------------------------- article assembly
    def _collect_siblings(self, top: Tag, scores: ScoreTable) -> List[Tag]:
        top_score = scores.get(top)
        threshold = max(10.0, top_score * 0.2)
        parent = top.parent
        if not is_element(parent):
            return [top]

        top_class = " ".join(top.get("class") or [])
        absorbed = []
        for sibling in element_children(parent):
            if sibling is top:
                absorbed.append(sibling)
                continue
            bonus = 0.0
            if top_class and " ".join(sibling.get("class") or []) == top_class:
                bonus += top_score * 0.2

            if sibling in scores and scores.get(sibling) + bonus >= threshold:
                absorbed.append(sibling)
            elif sibling.name == "p":
                density = link_density(sibling)
                text = inner_text(sibling)
                if len(text) > 80 and density < 0.25:
                    absorbed.append(sibling)
                elif 0 < len(text) < 80 and density == 0 and SENTENCE_END.search(text):
                    absorbed.append(sibling)
        return absorbed

    def _grab_article(self, page: BeautifulSoup, flags: Flags) -> Optional[Tag]:
        self._strip_unlikely_nodes(page, flags)
        scores = self._score_elements(page, flags)
        top = self._select_top_candidate(page, scores, flags)
        if top is None:
            return None
        logger.debug("Top candidate for %s: <%s> %.2f", self.url, top.name, scores.get(top))

        siblings = self._collect_siblings(top, scores)
        article = page.new_tag("div", attrs={"id": ARTICLE_ID})
        for sibling in siblings:
            if sibling.name not in SIBLING_TAGS:
                sibling.name = "div"
            article.append(sibling)

        self._prep_article(article, scores, flags)
        return article

    # ------------------------------------------------------------ cleanup
    def _prep_article(self, article: Tag, scores: ScoreTable, flags: Flags) -> None:
        self._clean_styles(article)
        self._clean_conditionally(article, "form", scores, flags)
        self._clean_conditionally(article, "fieldset", scores, flags)
        _remove_nodes(article.find_all(REMOVED_IN_CONTENT))
        self._clean_headers(article, flags)
        self._clean_conditionally(article, "table", scores, flags)
        self._clean_conditionally(article, "ul", scores, flags)
        self._clean_conditionally(article, "div", scores, flags)
        self._remove_negative_nodes(article, flags)
        self._remove_empty_containers(article)

    @staticmethod
    def _clean_styles(article: Tag) -> None:
        for node in [article] + article.find_all(True):
            if node.name == "svg":
                continue
            for attr in PRESENTATIONAL_ATTRIBUTES:
                if attr in node.attrs:
                    del node[attr]
            if node.name in DEPRECATED_SIZE_TAGS:
                for attr in ("width", "height"):
                    if attr in node.attrs:
                        del node[attr]

    @staticmethod
    def _clean_headers(article: Tag, flags: Flags) -> None:
        if not flags & Flags.WEIGHT_CLASSES:
            return
        _remove_nodes([node for node in article.find_all(["h1", "h2"]) if get_class_weight(node) < 0])

    def _clean_conditionally(self, article: Tag, tag: str, scores: ScoreTable, flags: Flags) -> None:
        """
        Remove *tag* elements that look fishy: negative weight, too many
        images or inputs for their text, link-heavy, or almost empty.
        """
        if not flags & Flags.CLEAN_CONDITIONALLY:
            return

        is_list = tag in ("ul", "ol")
        doomed = []
        for node in article.find_all(tag):
            if tag == "table" and _is_data_table(node):
                continue
            if any(_is_data_table(table) for table in node.find_parents("table")):
                continue
            if has_ancestor_tag(node, "code", max_depth=-1):
                continue

            weight = get_class_weight(node) if flags & Flags.WEIGHT_CLASSES else 0
            if weight + scores.get(node) < 0:
                doomed.append(node)
                continue

            text = inner_text(node)
            if count_commas(text) >= 10:
                continue

            paragraphs = len(node.find_all("p"))
            images = len(node.find_all("img"))
            list_items = len(node.find_all("li")) - 100
            inputs = len(node.find_all("input"))
            embeds = len(node.find_all(["object", "embed", "iframe"]))
            density = link_density(node)
            content_length = len(text)
            in_figure = has_ancestor_tag(node, "figure", max_depth=-1)

            remove = (
                (images > 1 and paragraphs / images < 0.5 and not in_figure)
                or (not is_list and list_items > paragraphs)
                or (inputs > paragraphs // 3)
                or (not is_list and content_length < 25 and (images == 0 or images > 2) and not in_figure)
                or (not is_list and weight < 25 and density > 0.2)
                or (weight >= 25 and density > 0.5)
                or (embeds == 1 and content_length < 75)
                or embeds > 1
            )
            if remove and is_list:
                # keep galleries: every item holds exactly one image
                items = node.find_all("li", recursive=False)
                if items and all(len(item.find_all("img")) == 1 for item in items):
                    remove = False
            if remove:
                doomed.append(node)
        _remove_nodes(doomed)

    @staticmethod
    def _remove_negative_nodes(article: Tag, flags: Flags) -> None:
        if not flags & Flags.WEIGHT_CLASSES:
            return
        roots = element_children(article)
        doomed = [
            node
            for node in article.find_all(True)
            if node.name not in PRESERVED_TAGS
            and not any(node is root for root in roots)
            and get_class_weight(node) < 0
            and not has_media(node)
        ]
        _remove_nodes(doomed)

    @staticmethod
    def _remove_empty_containers(article: Tag) -> None:
        doomed = [
            node
            for node in article.find_all(EMPTY_CONTAINER_TAGS)
            if not inner_text(node) and not has_media(node)
        ]
        _remove_nodes(doomed)
