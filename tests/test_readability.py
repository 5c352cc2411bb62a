# tests/test_readability.py
from bs4 import BeautifulSoup

from cleanread.readability import ARTICLE_ID, Flags, Readability
from pages import NAV_ONLY_PAGE, PARAGRAPH, article_page


def _doc(html):
    return BeautifulSoup(html, "html.parser")


def test_article_element_is_selected():
    draft = Readability(_doc(article_page())).parse()

    assert draft is not None
    assert draft.title == "A Long Read About Writing"
    assert draft.content.startswith(f'<div id="{ARTICLE_ID}">')
    assert draft.content.count(PARAGRAPH) == 10
    assert "Section0" not in draft.content
    assert draft.excerpt == PARAGRAPH


def test_unlikely_and_hidden_blocks_are_dropped():
    html = article_page(
        extra_body=f'<div class="comments"><p>Great post, thanks, really, {PARAGRAPH}</p></div>'
    ).replace(
        "<h1>", '<p style="display: none">Hidden teaser that should never be shown to readers.</p><h1>'
    )
    draft = Readability(_doc(html)).parse()

    assert "Great post" not in draft.content
    assert "Hidden teaser" not in draft.content


def test_forms_are_cleaned_from_content():
    html = article_page().replace(
        "</article>", '<form><input name="email"><label>Get the newsletter</label></form></article>'
    )
    draft = Readability(_doc(html)).parse()
    assert "<input" not in draft.content
    assert "newsletter" not in draft.content


def test_navigation_page_has_no_article():
    assert Readability(_doc(NAV_ONLY_PAGE)).parse() is None


def test_empty_page_has_no_article():
    assert Readability(_doc("<html><body></body></html>")).parse() is None


def test_relaxed_retry_recovers_content():
    body = "\n".join(f"<p>{PARAGRAPH}</p>" for _ in range(10))
    html = f'<html><head><title>Tree Planting In Cities</title></head><body><div class="social">{body}</div></body></html>'

    draft = Readability(_doc(html)).parse()

    assert draft is not None
    assert draft.content.count(PARAGRAPH) == 10


def test_equal_scores_resolve_to_document_order():
    html = (
        "<html><body>"
        f'<div id="first"><p>{PARAGRAPH}</p></div>'
        f'<div id="second"><p>{PARAGRAPH}</p></div>'
        "</body></html>"
    )
    ranked = Readability(_doc(html)).rank_candidates()

    assert ranked[0][1] == ranked[1][1]
    assert ranked[0][0]["id"] == "first"
    assert ranked[1][0]["id"] == "second"


def test_class_weights_can_be_disabled():
    html = f'<html><body><div class="article-body"><p>{PARAGRAPH}</p></div></body></html>'
    readability = Readability(_doc(html))

    weighted = dict((node.name, score) for node, score in readability.rank_candidates())
    unweighted = dict(
        (node.name, score) for node, score in readability.rank_candidates(Flags.STRIP_UNLIKELYS)
    )
    assert weighted["div"] - unweighted["div"] == 25


def test_parse_leaves_the_document_untouched():
    document = _doc(article_page())
    before = document.decode()
    readability = Readability(document)

    first = readability.parse()
    second = readability.parse()

    assert first == second
    assert document.decode() == before


def test_char_threshold_controls_retries():
    html = article_page(paragraphs=2)
    assert Readability(_doc(html), char_threshold=100).parse().content.count(PARAGRAPH) == 2
    # below the threshold every attempt is kept and the longest one wins
    assert Readability(_doc(html), char_threshold=100000).parse().content.count(PARAGRAPH) == 2


def test_related_sibling_blocks_are_merged():
    def block(cls, label, count):
        return f'<div class="{cls}">' + "".join(f"<p>{label}: {PARAGRAPH}</p>" for _ in range(count)) + "</div>"

    html = (
        "<html><head><title>Tree Planting In Cities</title></head><body><div>"
        + block("intro", "Intro", 4)
        + block("story", "Story", 6)
        + block("credits", "Credits", 3)
        + "</div></body></html>"
    )
    readability = Readability(_doc(html))

    top_node, _ = readability.rank_candidates()[0]
    assert top_node["class"] == ["story"]

    content = readability.parse().content
    assert content.count(PARAGRAPH) == 13
    assert content.index("Intro:") < content.index("Story:") < content.index("Credits:")


def test_parse_keeps_the_earlier_of_equal_candidates():
    html = (
        "<html><head><title>Tree Planting In Cities</title></head><body>"
        f"<div><div><p>First copy: {PARAGRAPH}</p></div></div>"
        f"<div><div><p>Second copy: {PARAGRAPH}</p></div></div>"
        "</body></html>"
    )
    draft = Readability(_doc(html)).parse()

    assert "First copy" in draft.content
    assert "Second copy" not in draft.content
