"""Unit tests for the SVG infographic renderer."""

import re
import xml.etree.ElementTree as ET

import pytest
from agents.renderer import (
    MAX_CODE_LINES,
    THEMES,
    code_panel_height,
    render_topic_svg,
    split_code_lines,
)
from models.tutor import ImageMetadata, default_image_metadata

SVG_NS = "{http://www.w3.org/2000/svg}"


def _texts(svg: str) -> list[str]:
    root = ET.fromstring(svg)
    return [(el.text or "").strip() for el in root.iter(f"{SVG_NS}text")]


@pytest.mark.unit
def test_render_is_deterministic(sample_metadata):
    assert render_topic_svg(sample_metadata) == render_topic_svg(sample_metadata.model_copy(deep=True))


@pytest.mark.unit
def test_document_has_fixed_canvas_and_no_external_refs(sample_metadata):
    svg = render_topic_svg(sample_metadata)
    root = ET.fromstring(svg)

    assert root.tag == f"{SVG_NS}svg"
    assert root.get("width") == "700"
    assert root.get("height") == "560"
    assert "http" not in svg.replace('xmlns="http://www.w3.org/2000/svg"', "")
    assert "href" not in svg


@pytest.mark.unit
@pytest.mark.parametrize("category", sorted(THEMES))
def test_every_theme_renders_well_formed_markup(category, sample_metadata):
    metadata = sample_metadata.model_copy(update={"category": category})

    svg = render_topic_svg(metadata)

    ET.fromstring(svg)
    assert THEMES[category].gradient[1] in svg


@pytest.mark.unit
def test_unknown_category_uses_general_theme(sample_metadata):
    metadata = sample_metadata.model_copy(update={"category": "quantum"})

    svg = render_topic_svg(metadata)

    assert THEMES["general"].gradient[1] in svg
    assert "QUANTUM" in svg


@pytest.mark.unit
def test_reserved_characters_are_escaped():
    hostile = "<script>alert(\"x\")</script> & 'y'"
    metadata = ImageMetadata(
        title=hostile,
        subtitle=hostile,
        key_concepts=["<b>&'\""],
        code_snippet="if (a < b && c > d) { s = \"'\"; }",
        interview_tip=hostile,
    )

    svg = render_topic_svg(metadata)
    texts = _texts(svg)

    assert "<script>" not in svg
    assert "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt; &amp; &apos;y&apos;" in svg
    assert hostile in texts
    assert "<b>&'\"" in texts
    assert "if (a < b && c > d) { s = \"'\"; }" in texts


@pytest.mark.unit
def test_truncation_happens_before_escaping():
    metadata = ImageMetadata(title="T", key_concepts=["a" * 16 + "&&&&"])

    svg = render_topic_svg(metadata)

    assert "a" * 16 + "&amp;&amp;<" in svg


@pytest.mark.unit
def test_at_most_four_concept_cards_cycle_palette():
    metadata = ImageMetadata(title="T", key_concepts=[f"c{i}" for i in range(6)])
    theme = THEMES["general"]

    svg = render_topic_svg(metadata)
    strokes = re.findall(r'stroke="([^"]+)" stroke-width="0\.8" stroke-opacity="0\.4"', svg)

    assert len(metadata.key_concepts) == 4
    assert strokes == [theme.accent, theme.accent_alt, "#10b981", "#f59e0b"]
    assert "Concept 4" in svg
    assert "Concept 5" not in svg


@pytest.mark.unit
def test_code_block_omitted_without_snippet():
    svg = render_topic_svg(default_image_metadata("Heaps"))

    assert "CODE SNIPPET" not in svg
    assert "Heaps" in _texts(svg)


@pytest.mark.unit
def test_code_panel_height_tracks_line_count():
    snippet = "\\n".join(f"line {i}" for i in range(5))

    svg = render_topic_svg(ImageMetadata(title="T", code_snippet=snippet))

    assert code_panel_height(5) == 24 + 5 * 18
    assert f'y="234" width="628" height="{code_panel_height(5)}"' in svg


@pytest.mark.unit
def test_split_on_literal_delimiter_drops_blank_lines():
    assert split_code_lines("a = 1\\n\\n  \\nb = 2") == ["a = 1", "b = 2"]


@pytest.mark.unit
def test_split_on_real_newlines():
    assert split_code_lines("x = 1\ny = 2\r\nz = 3") == ["x = 1", "y = 2", "z = 3"]


@pytest.mark.unit
def test_long_single_line_is_rewrapped_on_braces():
    snippet = "function check(a) { if (a) { return 1; } return 0; }"

    assert split_code_lines(snippet) == [
        "function check(a) {",
        "  if (a) {",
        "    return 1;",
        "  }",
        "  return 0;",
        "}",
    ]


@pytest.mark.unit
def test_long_single_line_without_braces_is_word_wrapped():
    snippet = "SELECT name FROM users WHERE age > 21 ORDER BY name DESC LIMIT 10"

    lines = split_code_lines(snippet)

    assert lines == ["SELECT name FROM users WHERE age > 21 ORDER BY", "  name DESC LIMIT 10"]
    assert all(len(line) <= 50 for line in lines)


@pytest.mark.unit
def test_short_single_line_is_kept():
    assert split_code_lines("print('hi')") == ["print('hi')"]


@pytest.mark.unit
def test_code_is_capped_at_ten_lines():
    snippet = "\\n".join(f"x{i}" for i in range(15))

    lines = split_code_lines(snippet)

    assert len(lines) == MAX_CODE_LINES
    assert lines[-1] == "x9"
