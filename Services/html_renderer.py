"""Markup emitter: classified tree -> index.html text."""

from __future__ import annotations

import html
from typing import Iterable, List

from Services.ir_types import ClassifiedNode, RenderStrategy
from Services.naming import css_class, fallback_asset_name, span_class

ASSETS_URL = "./assets"


def escape_text(text: str) -> str:
    return html.escape(text, quote=True).replace("\n", "<br/>")


def fallback_src(node_id: str) -> str:
    return f"{ASSETS_URL}/{fallback_asset_name(node_id)}"


def render_text(node: ClassifiedNode) -> str:
    """Render a text node; styled runs become one <span> each."""
    cls = css_class(node.id)
    runs = node.node.runs

    if node.node.has_styled_runs:
        inner = "".join(
            f'<span class="{span_class(node.id, i)}">{escape_text(run.text)}</span>'
            for i, run in enumerate(runs)
        )
    else:
        inner = escape_text(node.node.text or "")

    return f'<p class="{cls}">{inner}</p>'


def render_node(node: ClassifiedNode) -> str:
    cls = css_class(node.id)

    if node.strategy is RenderStrategy.TEXT:
        return render_text(node)

    if node.strategy is RenderStrategy.IMAGE_FALLBACK:
        # the asset layer writes the file behind this address later
        return f'<img class="{cls}" src="{fallback_src(node.id)}" alt="" />'

    children = "".join(render_node(c) for c in node.children)
    return f'<div class="{cls}">{children}</div>'


def render_body(frames: Iterable[ClassifiedNode]) -> str:
    return "\n".join(render_node(f) for f in frames)


def build_index_html(title: str, frames: Iterable[ClassifiedNode]) -> str:
    lines: List[str] = [
        "<!doctype html>",
        '<html lang="en">',
        "<head>",
        '  <meta charset="utf-8"/>',
        '  <meta name="viewport" content="width=device-width,initial-scale=1"/>',
        f"  <title>{html.escape(title)}</title>",
        '  <link rel="stylesheet" href="./styles.css"/>',
        "  <style>body{margin:0;position:relative;min-height:100vh;background:#fff}</style>",
        "</head>",
        "<body>",
        render_body(frames),
        "</body>",
        "</html>",
    ]
    return "\n".join(lines) + "\n"
