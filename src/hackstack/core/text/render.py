"""Render Hacker News comment markup as styled plain text."""

import io
from dataclasses import dataclass
from html.parser import HTMLParser


@dataclass(frozen=True)
class TextStyle:
    """Formatting choices for rendered comment text."""

    paragraph_separator: str = "\n\n"
    code_indent: str = "    "
    italic_marker: str = "_"
    bold_marker: str = "**"
    show_link_targets: bool = True


DEFAULT_STYLE = TextStyle()


class _MarkupRenderer(HTMLParser):
    """Single-use parser; call ``feed`` then ``result``."""

    def __init__(self, style: TextStyle) -> None:
        super().__init__(convert_charrefs=True)
        self._style = style
        self._out = io.StringIO()
        self._in_pre = False
        self._pre_buffer = io.StringIO()
        self._link_href: str | None = None
        self._link_text = io.StringIO()

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "p":
            self._write(self._style.paragraph_separator)
        elif tag == "pre":
            self._in_pre = True
            self._pre_buffer = io.StringIO()
        elif tag == "i":
            self._write(self._style.italic_marker)
        elif tag == "b":
            self._write(self._style.bold_marker)
        elif tag == "a":
            self._link_href = dict(attrs).get("href") or ""
            self._link_text = io.StringIO()
        elif tag == "br":
            self._write("\n")

    def handle_endtag(self, tag: str) -> None:
        if tag == "pre":
            self._in_pre = False
            code = self._pre_buffer.getvalue().strip("\n")
            indent = self._style.code_indent
            block = "\n".join(indent + line for line in code.split("\n"))
            written = self._out.getvalue()
            if written and not written.endswith("\n"):
                self._out.write(self._style.paragraph_separator)
            self._out.write(block)
        elif tag == "i":
            self._write(self._style.italic_marker)
        elif tag == "b":
            self._write(self._style.bold_marker)
        elif tag == "a" and self._link_href is not None:
            href = self._link_href
            text = self._link_text.getvalue() or href
            self._link_href = None
            if self._style.show_link_targets and href and text != href:
                self._write(f"{text} <{href}>")
            else:
                self._write(text)

    def handle_data(self, data: str) -> None:
        if self._link_href is not None:
            self._link_text.write(data)
        else:
            self._write(data)

    def _write(self, text: str) -> None:
        if self._in_pre:
            self._pre_buffer.write(text)
        else:
            self._out.write(text)

    def result(self) -> str:
        return self._out.getvalue().strip()


def render_markup(raw: str, style: TextStyle = DEFAULT_STYLE) -> str:
    """Convert comment HTML into plain text laid out per ``style``.

    HN markup is a small subset of HTML: paragraphs are introduced by ``<p>``
    without closing tags, links are ``<a href>``, code blocks are
    ``<pre><code>``. Entities are decoded.
    """
    if not raw:
        return ""
    renderer = _MarkupRenderer(style)
    renderer.feed(raw)
    renderer.close()
    return renderer.result()
