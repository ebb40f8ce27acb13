# mypy: ignore-errors
"""Tests for comment markdown rendering."""

from threadline.services.markdown import render_markdown


def test_renders_basic_markdown() -> None:
    assert render_markdown("Hello **world**") == "<p>Hello <strong>world</strong></p>"


def test_rendering_is_deterministic() -> None:
    source = "# Title\n\n* one\n* two\n\n`code` and [link](https://example.com)"

    assert render_markdown(source) == render_markdown(source)


def test_strips_script_tags() -> None:
    html = render_markdown("<script>alert(1)</script> hi")

    assert "<script>" not in html
    assert "hi" in html


def test_headings_are_not_allowed() -> None:
    assert "<h1>" not in render_markdown("# Title")


def test_links_are_nofollow() -> None:
    html = render_markdown("[site](https://example.com)")

    assert 'href="https://example.com"' in html
    assert "nofollow" in html


def test_javascript_links_are_dropped() -> None:
    assert "javascript:" not in render_markdown("[x](javascript:alert(1))")
