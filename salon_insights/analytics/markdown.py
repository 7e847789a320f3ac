"""Renderer for the small markdown subset the assistant is told to use.

The model answers with ``## `` / ``### `` headings, ``- `` bullet lists,
``**bold**`` and ``*italic*``.  Rather than chaining regex substitutions, the
text is scanned line by line into typed blocks and inline nodes which are
then rendered to HTML:

    "## Title\\n- a\\n- b"
      → [Heading(2, [Text("Title")]), BulletList([[Text("a")], [Text("b")]])]
      → '<h2 ...>Title</h2>\\n<ul ...><li>a</li><li>b</li></ul>'

Anything outside the subset is passed through literally.  No escaping is
done here; the frontend renders the markup inside a sanitizing container.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_LIST_ITEM_RE = re.compile(r"^\s*-\s(.*)$")

_H2_CLASS = "text-xl font-bold mt-6 mb-3 border-b pb-2"
_H3_CLASS = "text-lg font-semibold mt-4 mb-2"
_UL_CLASS = "list-disc list-inside space-y-1 my-3"


# ── Nodes ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Bold:
    children: tuple[Inline, ...]


@dataclass(frozen=True)
class Italic:
    children: tuple[Inline, ...]


Inline = Text | Bold | Italic


@dataclass(frozen=True)
class Heading:
    level: int
    children: tuple[Inline, ...]


@dataclass(frozen=True)
class BulletList:
    items: tuple[tuple[Inline, ...], ...]


@dataclass(frozen=True)
class Paragraph:
    lines: tuple[tuple[Inline, ...], ...]


Block = Heading | BulletList | Paragraph


# ── Inline scanning ──────────────────────────────────────────────────


def parse_inline(text: str, *, allow_bold: bool = True) -> tuple[Inline, ...]:
    """Split *text* into Text/Bold/Italic nodes.

    A marker only opens a span if a matching closing marker follows with at
    least one character in between; otherwise it is kept as literal text.
    Bold spans may contain italics.
    """
    nodes: list[Inline] = []
    buffer: list[str] = []
    i = 0

    def flush() -> None:
        if buffer:
            nodes.append(Text("".join(buffer)))
            buffer.clear()

    while i < len(text):
        if allow_bold and text.startswith("**", i):
            end = text.find("**", i + 2)
            if end > i + 2:
                flush()
                nodes.append(Bold(parse_inline(text[i + 2:end], allow_bold=False)))
                i = end + 2
                continue
        if text[i] == "*" and not text.startswith("**", i):
            end = text.find("*", i + 1)
            if end > i + 1:
                flush()
                nodes.append(Italic((Text(text[i + 1:end]),)))
                i = end + 1
                continue
        buffer.append(text[i])
        i += 1

    flush()
    return tuple(nodes)


# ── Block scanning ───────────────────────────────────────────────────


@dataclass
class _Scanner:
    blocks: list[Block] = field(default_factory=list)
    list_items: list[tuple[Inline, ...]] = field(default_factory=list)
    paragraph: list[tuple[Inline, ...]] = field(default_factory=list)
    # Blank lines seen since the last list item; dropped if the list resumes
    pending_blank: int = 0

    def close_list(self) -> None:
        if self.list_items:
            self.blocks.append(BulletList(tuple(self.list_items)))
            self.list_items = []

    def close_paragraph(self) -> None:
        if self.paragraph:
            self.blocks.append(Paragraph(tuple(self.paragraph)))
            self.paragraph = []

    def flush_blanks(self) -> None:
        for _ in range(self.pending_blank):
            self.paragraph.append(())
        self.pending_blank = 0

    def feed(self, line: str) -> None:
        item = _LIST_ITEM_RE.match(line)
        if item:
            self.close_paragraph()
            self.pending_blank = 0
            self.list_items.append(parse_inline(item.group(1)))
            return

        if not line.strip() and self.list_items:
            self.pending_blank += 1
            return

        self.close_list()
        if line.startswith("### "):
            self.flush_blanks()
            self.close_paragraph()
            self.blocks.append(Heading(3, parse_inline(line[4:])))
        elif line.startswith("## "):
            self.flush_blanks()
            self.close_paragraph()
            self.blocks.append(Heading(2, parse_inline(line[3:])))
        else:
            self.flush_blanks()
            self.paragraph.append(parse_inline(line))

    def finish(self) -> list[Block]:
        self.close_list()
        self.close_paragraph()
        return self.blocks


def parse_markdown(text: str) -> list[Block]:
    """Scan *text* into a list of blocks.

    List items separated only by blank lines end up in the same list.
    """
    scanner = _Scanner()
    for line in text.split("\n"):
        scanner.feed(line)
    return scanner.finish()


# ── Rendering ────────────────────────────────────────────────────────


def _render_inline(nodes: tuple[Inline, ...]) -> str:
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Bold):
            parts.append(f"<strong>{_render_inline(node.children)}</strong>")
        elif isinstance(node, Italic):
            parts.append(f"<em>{_render_inline(node.children)}</em>")
        else:
            parts.append(node.value)
    return "".join(parts)


def _render_block(block: Block) -> str:
    if isinstance(block, Heading):
        css = _H2_CLASS if block.level == 2 else _H3_CLASS
        return f'<h{block.level} class="{css}">{_render_inline(block.children)}</h{block.level}>'
    if isinstance(block, BulletList):
        items = "".join(f"<li>{_render_inline(item)}</li>" for item in block.items)
        return f'<ul class="{_UL_CLASS}">{items}</ul>'
    return "\n".join(_render_inline(line) for line in block.lines)


def render_html(text: str) -> str:
    """Render the assistant's markdown subset to HTML markup."""
    return "\n".join(_render_block(block) for block in parse_markdown(text))
