"""Tests for the markdown subset renderer."""

from __future__ import annotations

from salon_insights.analytics.markdown import (
    Bold,
    BulletList,
    Heading,
    Italic,
    Paragraph,
    Text,
    parse_inline,
    parse_markdown,
    render_html,
)


class TestBlocks:
    def test_heading_followed_by_single_list(self):
        blocks = parse_markdown("## Title\n- a\n- b")
        assert blocks == [
            Heading(2, (Text("Title"),)),
            BulletList(((Text("a"),), (Text("b"),))),
        ]

    def test_heading_and_list_render(self):
        html = render_html("## Title\n- a\n- b")
        assert html.count("<ul") == 1
        assert "<li>a</li><li>b</li>" in html
        assert html.startswith('<h2 class="text-xl font-bold mt-6 mb-3 border-b pb-2">Title</h2>')

    def test_level_three_heading(self):
        assert parse_markdown("### Detalhes") == [Heading(3, (Text("Detalhes"),))]

    def test_lists_separated_by_blank_lines_are_merged(self):
        blocks = parse_markdown("- a\n\n- b\n- c")
        assert blocks == [BulletList(((Text("a"),), (Text("b"),), (Text("c"),)))]

    def test_indented_list_items(self):
        blocks = parse_markdown("  - recuo")
        assert blocks == [BulletList(((Text("recuo"),),))]

    def test_text_between_lists_splits_them(self):
        blocks = parse_markdown("- a\nmeio\n- b")
        assert [type(b) for b in blocks] == [BulletList, Paragraph, BulletList]

    def test_plain_text_passes_through(self):
        text = "Faturamento subiu 10%.\nOutra linha"
        assert render_html(text) == text

    def test_unknown_syntax_is_literal(self):
        assert render_html("# Não é título\n1. item") == "# Não é título\n1. item"

    def test_rendering_is_deterministic(self):
        text = "## Resumo\n- **Corte**: *R$ 50,00*\n\nFim"
        assert render_html(text) == render_html(text)


class TestInline:
    def test_bold_and_italic(self):
        assert render_html("**x** and *y*") == "<strong>x</strong> and <em>y</em>"

    def test_inline_nodes(self):
        assert parse_inline("**x** and *y*") == (
            Bold((Text("x"),)),
            Text(" and "),
            Italic((Text("y"),)),
        )

    def test_italic_nested_in_bold(self):
        assert render_html("**a *b* c**") == "<strong>a <em>b</em> c</strong>"

    def test_unterminated_bold_is_literal(self):
        assert render_html("**sem fim") == "**sem fim"

    def test_unterminated_italic_is_literal(self):
        assert render_html("5 * 3") == "5 * 3"

    def test_formatting_inside_list_item(self):
        html = render_html("- **Ana**: R$ 1.200,00")
        assert "<li><strong>Ana</strong>: R$ 1.200,00</li>" in html

    def test_formatting_inside_heading(self):
        assert render_html("### *Top*") == (
            '<h3 class="text-lg font-semibold mt-4 mb-2"><em>Top</em></h3>'
        )
