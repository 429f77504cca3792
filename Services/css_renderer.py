"""Stylesheet emitter: classified tree -> styles.css text.

One rule block per node, in traversal order. Within a block declarations
are appended in a fixed order: layout, fills, image fill, stroke, effects,
opacity, radius, typography.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence

from Services.ir_types import (
    AbsoluteLayout,
    ClassifiedNode,
    ColorStop,
    ConicGradientFill,
    Effect,
    Fill,
    FlowItemLayout,
    FlowLayout,
    ImageAsset,
    ImageFill,
    LayoutModel,
    LinearGradientFill,
    RadialGradientFill,
    RenderStrategy,
    RGBA,
    SolidFill,
    Stroke,
    StyleModel,
    TextRun,
    Typography,
    BorderRadii,
)
from Services.naming import css_class, span_class

ROOT_RULE = ":root{color-scheme:light;}"

FLEX_ALIGN = {
    "start": "flex-start",
    "center": "center",
    "end": "flex-end",
    "space-between": "space-between",
    "stretch": "stretch",
    "baseline": "baseline",
}

TEXT_ALIGN = {
    "LEFT": "left",
    "CENTER": "center",
    "RIGHT": "right",
    "JUSTIFIED": "justify",
}

TEXT_DECORATION = {
    "UNDERLINE": "underline",
    "STRIKETHROUGH": "line-through",
}

TEXT_TRANSFORM = {
    "UPPER": "uppercase",
    "LOWER": "lowercase",
    "TITLE": "capitalize",
}

SCALE_MODE_RULES = {
    "FILL": ["background-position:center;", "background-repeat:no-repeat;", "background-size:cover;"],
    "FIT": ["background-position:center;", "background-repeat:no-repeat;", "background-size:contain;"],
    "TILE": ["background-repeat:repeat;", "background-size:auto;"],
    # best effort: an exact crop needs the image transform
    "CROP": [
        "background-position:center;",
        "background-repeat:no-repeat;",
        "background-size:cover;",
        "overflow:hidden;",
    ],
}

DEFAULT_SHADOW_COLOR = "rgba(0,0,0,0.25)"
FONT_FALLBACK = "system-ui, sans-serif"


# ===============================
# FORMATTING
# ===============================

def num(n: float) -> str:
    r = round(float(n), 3)
    if r == int(r):
        return str(int(r))
    return str(r)


def px(n: float) -> str:
    return f"{num(n)}px"


def clamp01(n: float) -> float:
    return max(0.0, min(1.0, n))


def _channel(v: float) -> int:
    # half-up, like browsers
    return max(0, min(255, int(clamp01(v) * 255 + 0.5)))


def rgba(c: RGBA) -> str:
    """0..1 channels -> css rgba() with 0..255 channels."""
    return f"rgba({_channel(c.r)},{_channel(c.g)},{_channel(c.b)},{num(clamp01(c.a))})"


def gradient_stops_css(stops: Sequence[ColorStop]) -> str:
    return ", ".join(
        f"{rgba(s.color)} {num(round(s.position * 100, 1))}%" for s in stops
    )


# ===============================
# LAYOUT
# ===============================

def _size(value) -> str:
    return "auto" if value == "auto" else px(value)


def layout_rules(layout: LayoutModel) -> List[str]:
    rules: List[str] = []

    if isinstance(layout, FlowLayout):
        p = layout.padding
        rules.append("display:flex;")
        rules.append(f"flex-direction:{layout.direction};")
        rules.append(f"gap:{px(layout.gap)};")
        rules.append(f"padding:{px(p.top)} {px(p.right)} {px(p.bottom)} {px(p.left)};")
        if layout.align in FLEX_ALIGN:
            rules.append(f"align-items:{FLEX_ALIGN[layout.align]};")
        if layout.justify in FLEX_ALIGN:
            rules.append(f"justify-content:{FLEX_ALIGN[layout.justify]};")
        rules.append(f"width:{_size(layout.width)};")
        rules.append(f"height:{_size(layout.height)};")
        # containing block for children that opt out of the flow
        rules.append("position:relative;")
    elif isinstance(layout, FlowItemLayout):
        rules.append(f"width:{px(layout.width)};")
        rules.append(f"height:{px(layout.height)};")
    elif isinstance(layout, AbsoluteLayout):
        rules.append(f"position:absolute;left:{px(layout.x)};top:{px(layout.y)};")
        rules.append(f"width:{px(layout.width)};")
        rules.append(f"height:{px(layout.height)};")

    return rules


# ===============================
# FILLS
# ===============================

def fill_layer(f: Fill) -> Optional[str]:
    if isinstance(f, SolidFill):
        return rgba(f.color)
    if isinstance(f, LinearGradientFill):
        return f"linear-gradient({num(f.angle)}deg, {gradient_stops_css(f.stops)})"
    if isinstance(f, RadialGradientFill):
        # centered circle approximates Figma's ellipse handles
        return f"radial-gradient(circle at center, {gradient_stops_css(f.stops)})"
    if isinstance(f, ConicGradientFill):
        return f"conic-gradient(from {num(f.angle)}deg at 50% 50%, {gradient_stops_css(f.stops)})"
    return None


def background_layers(fills: Sequence[Fill]) -> List[str]:
    """Figma paints the last fill on top; CSS paints the first layer on top."""
    layers = []
    for f in reversed(fills):
        if isinstance(f, ImageFill):
            continue
        layer = fill_layer(f)
        if layer:
            layers.append(layer)
    return layers


def push_fill(rules: List[str], fills: Sequence[Fill]) -> None:
    layers = background_layers(fills)
    if layers:
        rules.append(f"background:{','.join(layers)};")


def push_text_color(rules: List[str], fills: Sequence[Fill]) -> None:
    for f in fills:
        if isinstance(f, SolidFill):
            rules.append(f"color:{rgba(f.color)};")
            return


def css_for_scale_mode(scale_mode: str) -> List[str]:
    return list(SCALE_MODE_RULES.get(scale_mode, SCALE_MODE_RULES["FILL"]))


def push_image_asset(rules: List[str], asset: Optional[ImageAsset]) -> None:
    if asset is None:
        return
    rules.append(f'background-image:url("{asset.relative_path}");')
    rules.extend(css_for_scale_mode(asset.scale_mode))


# ===============================
# STROKES / EFFECTS
# ===============================

def _single_solid_stroke(strokes: Sequence[Stroke]) -> Optional[Stroke]:
    """At most one solid, undashed stroke is drawn; anything else is skipped."""
    if len(strokes) != 1:
        return None
    s = strokes[0]
    if s.kind != "solid" or s.color is None or s.dash_pattern:
        return None
    return s


def push_stroke(rules: List[str], strokes: Sequence[Stroke]) -> None:
    s = _single_solid_stroke(strokes)
    if s is not None and s.alignment == "CENTER":
        rules.append(f"border:{px(s.width)} solid {rgba(s.color)};")


def stroke_ring_css(strokes: Sequence[Stroke]) -> Optional[str]:
    """INSIDE / OUTSIDE strokes become a zero-blur box-shadow ring."""
    s = _single_solid_stroke(strokes)
    if s is None:
        return None
    if s.alignment == "INSIDE":
        return f"inset 0 0 0 {px(s.width)} {rgba(s.color)}"
    if s.alignment == "OUTSIDE":
        return f"0 0 0 {px(s.width)} {rgba(s.color)}"
    return None


def shadow_css(e: Effect) -> str:
    color = rgba(e.color) if e.color else DEFAULT_SHADOW_COLOR
    inset = " inset" if e.type == "INNER_SHADOW" else ""
    return f"{px(e.x)} {px(e.y)} {px(e.blur)} {px(e.spread)} {color}{inset}"


def push_effects(rules: List[str], effects: Sequence[Effect], strokes: Sequence[Stroke] = ()) -> None:
    # ring and shadows share one declaration
    shadows = []
    ring = stroke_ring_css(strokes)
    if ring:
        shadows.append(ring)
    shadows.extend(shadow_css(e) for e in effects if e.is_shadow)
    if shadows:
        rules.append(f"box-shadow:{','.join(shadows)};")


# ===============================
# OPACITY / RADIUS
# ===============================

def push_opacity(rules: List[str], opacity: Optional[float]) -> None:
    if opacity is not None and opacity < 1:
        rules.append(f"opacity:{num(clamp01(opacity))};")


def push_radius(rules: List[str], radius) -> None:
    if radius is None:
        return
    if isinstance(radius, BorderRadii):
        rules.append(
            f"border-radius:{px(radius.top_left)} {px(radius.top_right)} "
            f"{px(radius.bottom_right)} {px(radius.bottom_left)};"
        )
    else:
        rules.append(f"border-radius:{px(radius)};")


# ===============================
# TYPOGRAPHY
# ===============================

def font_family_css(family: str) -> str:
    family = family.replace("'", "").replace('"', "").strip()
    if not family:
        return FONT_FALLBACK
    return f"'{family}', {FONT_FALLBACK}"


def typography_rules(t: Typography) -> List[str]:
    out = [
        f"font-family:{font_family_css(t.font_family)};",
        f"font-size:{px(t.font_size)};",
    ]
    if t.font_weight:
        out.append(f"font-weight:{num(t.font_weight)};")
    if t.line_height:
        out.append(f"line-height:{px(t.line_height)};")
    if t.letter_spacing:
        out.append(f"letter-spacing:{px(t.letter_spacing)};")
    if t.text_align:
        out.append(f"text-align:{TEXT_ALIGN.get(t.text_align, 'left')};")
    if t.text_decoration in TEXT_DECORATION:
        out.append(f"text-decoration:{TEXT_DECORATION[t.text_decoration]};")
    if t.text_case in TEXT_TRANSFORM:
        out.append(f"text-transform:{TEXT_TRANSFORM[t.text_case]};")
    return out


def _changed_typography(run: Typography, base: Optional[Typography]) -> List[str]:
    base_rules = set(typography_rules(base)) if base else set()
    return [r for r in typography_rules(run) if r not in base_rules]


def run_rules(run: TextRun, base: Optional[Typography]) -> List[str]:
    rules: List[str] = []
    if run.color is not None:
        rules.append(f"color:{rgba(run.color)};")
    if run.typography is not None:
        rules.extend(_changed_typography(run.typography, base))
    return rules


# ===============================
# NODE
# ===============================

def node_rules(node: ClassifiedNode, image_asset: Optional[ImageAsset] = None) -> List[str]:
    n = node.node
    style: StyleModel = n.style
    rules = layout_rules(n.layout)

    # the exported asset is the only visual source for fallback nodes
    if node.strategy is RenderStrategy.IMAGE_FALLBACK:
        return rules

    if node.strategy is RenderStrategy.TEXT:
        push_text_color(rules, style.fills)
    else:
        push_fill(rules, style.fills)
        push_image_asset(rules, image_asset)

    push_stroke(rules, style.strokes)
    push_effects(rules, style.effects, style.strokes)
    push_opacity(rules, style.opacity)
    push_radius(rules, style.border_radius)

    if node.strategy is RenderStrategy.TEXT and style.typography:
        rules.extend(typography_rules(style.typography))
        # keep Figma line breaks and spacing
        rules.append("white-space:pre-wrap;")

    return rules


def _block(selector: str, rules: List[str]) -> Optional[str]:
    if not rules:
        return None
    return f".{selector}{{{''.join(rules)}}}"


def node_blocks(node: ClassifiedNode, image_assets: Mapping[str, ImageAsset]) -> List[str]:
    blocks = []
    block = _block(css_class(node.id), node_rules(node, image_assets.get(node.id)))
    if block:
        blocks.append(block)

    if node.strategy is RenderStrategy.TEXT and node.node.has_styled_runs:
        base = node.node.style.typography
        for i, run in enumerate(node.node.runs):
            run_block = _block(span_class(node.id, i), run_rules(run, base))
            if run_block:
                blocks.append(run_block)
    return blocks


def build_styles(
    frames: Iterable[ClassifiedNode],
    image_assets: Optional[Mapping[str, ImageAsset]] = None,
) -> str:
    assets = image_assets or {}
    chunks = [ROOT_RULE]

    def _visit(node: ClassifiedNode) -> None:
        chunks.extend(node_blocks(node, assets))
        for child in node.children:
            _visit(child)

    for frame in frames:
        _visit(frame)

    return "\n".join(chunks)
