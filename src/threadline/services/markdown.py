"""Markdown rendering for comment bodies."""

from __future__ import annotations

import bleach
import markdown as markdown_lib

# Tags a rendered comment may keep; everything else is stripped.
ALLOWED_TAGS = frozenset(
    {
        "a",
        "b",
        "blockquote",
        "br",
        "code",
        "del",
        "em",
        "i",
        "li",
        "ol",
        "p",
        "pre",
        "strong",
        "ul",
    }
)
ALLOWED_ATTRIBUTES = {"a": ["href", "title"]}
ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})


def _nofollow(attrs: dict, new: bool = False) -> dict:
    attrs[(None, "rel")] = "nofollow noopener"
    attrs[(None, "target")] = "_blank"
    return attrs


def render_markdown(markdown: str) -> str:
    """Render comment markdown to sanitised HTML.

    HTML tags outside the allow-list are stripped and links become
    ``nofollow`` and open in a new tab. Output depends only on the input.
    """
    html = markdown_lib.markdown(markdown, extensions=["fenced_code"], output_format="html")
    cleaned = bleach.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )
    return bleach.linkify(cleaned, callbacks=[_nofollow], skip_tags={"pre", "code"}).strip()
