"""Tests for comment markup rendering."""

from hackstack.core.text.render import TextStyle, render_markup


def test_paragraphs_are_separated() -> None:
    assert render_markup("First<p>Second<p>Third") == "First\n\nSecond\n\nThird"


def test_entities_are_decoded() -> None:
    assert render_markup("It&#x27;s &quot;fine&quot; &amp; done") == "It's \"fine\" & done"


def test_italic_and_bold_markers() -> None:
    assert render_markup("an <i>important</i> <b>point</b>") == "an _important_ **point**"


def test_links_show_target_when_text_differs() -> None:
    raw = '<a href="https://example.com/post" rel="nofollow">the post</a>'
    assert render_markup(raw) == "the post <https://example.com/post>"


def test_links_with_url_text_are_not_duplicated() -> None:
    raw = '<a href="https://example.com">https://example.com</a>'
    assert render_markup(raw) == "https://example.com"


def test_code_blocks_are_indented() -> None:
    raw = "Try this:<p><pre><code>x = 1\ny = 2\n</code></pre>"
    assert render_markup(raw) == "Try this:\n\n    x = 1\n    y = 2"


def test_custom_style() -> None:
    style = TextStyle(paragraph_separator="\n", italic_marker="/", show_link_targets=False)
    raw = '<i>a</i><p><a href="https://x.test">b</a>'
    assert render_markup(raw, style) == "/a/\nb"


def test_empty_input() -> None:
    assert render_markup("") == ""
