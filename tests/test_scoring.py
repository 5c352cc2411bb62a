# tests/test_scoring.py
from bs4 import BeautifulSoup

from cleanread.scoring import (
    count_commas,
    get_class_weight,
    has_ancestor_tag,
    has_media,
    inner_text,
    link_density,
)


def _first(html, name):
    return BeautifulSoup(html, "html.parser").find(name)


def test_inner_text_collapses_whitespace():
    node = _first("<div>  one\n\n two <b>three</b>\t</div>", "div")
    assert inner_text(node) == "one two three"


def test_count_commas_includes_other_scripts():
    assert count_commas("a, b, c") == 2
    assert count_commas("一，二") == 1


def test_class_weight():
    assert get_class_weight(_first('<div class="article-body"></div>', "div")) == 25
    assert get_class_weight(_first('<div id="sidebar"></div>', "div")) == -25
    assert get_class_weight(_first('<div class="post" id="comments"></div>', "div")) == 0
    assert get_class_weight(_first("<div></div>", "div")) == 0


def test_link_density():
    node = _first('<p>abcdefghij<a href="/x">abcdefghij</a></p>', "p")
    assert link_density(node) == 0.5


def test_hash_links_count_less():
    node = _first('<p>abcdefghij<a href="#x">abcdefghij</a></p>', "p")
    assert abs(link_density(node) - 0.15) < 1e-9


def test_link_density_of_empty_node():
    assert link_density(_first("<p></p>", "p")) == 0.0


def test_has_ancestor_tag_depth():
    doc = BeautifulSoup("<table><tr><td><div><span><b>x</b></span></div></td></tr></table>", "html.parser")
    bold = doc.find("b")
    assert not has_ancestor_tag(bold, "table")
    assert has_ancestor_tag(bold, "table", max_depth=-1)
    assert has_ancestor_tag(bold, "div")


def test_has_media():
    assert has_media(_first('<figure><img src="a.png"></figure>', "figure"))
    assert not has_media(_first("<div><p>text</p></div>", "div"))
