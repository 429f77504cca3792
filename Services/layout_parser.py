"""Geometry/style mapper: one raw Figma node -> typed layout + style model.

Pure functions only. Every numeric field goes through ``to_number`` so a
malformed value degrades to a fallback instead of raising, and every
unsupported paint/effect type becomes a warning string.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from Services.ir_types import (
    AbsoluteLayout,
    BorderRadii,
    BorderRadius,
    ColorStop,
    ConicGradientFill,
    Effect,
    Fill,
    FlowItemLayout,
    FlowLayout,
    ImageFill,
    LayoutModel,
    LinearGradientFill,
    NodeKind,
    Padding,
    RadialGradientFill,
    RawNode,
    RGBA,
    SolidFill,
    Stroke,
    StyleModel,
    TextRun,
    Typography,
)

# ===============================
# LOOKUP TABLES
# ===============================

NODE_KINDS: Dict[str, NodeKind] = {
    "FRAME": NodeKind.CONTAINER,
    "GROUP": NodeKind.CONTAINER,
    "COMPONENT": NodeKind.CONTAINER,
    "COMPONENT_SET": NodeKind.CONTAINER,
    "INSTANCE": NodeKind.CONTAINER,
    "SECTION": NodeKind.CONTAINER,
    "TEXT": NodeKind.TEXT,
    "VECTOR": NodeKind.VECTOR,
    "LINE": NodeKind.VECTOR,
    "ELLIPSE": NodeKind.VECTOR,
    "REGULAR_POLYGON": NodeKind.VECTOR,
    "STAR": NodeKind.VECTOR,
    "BOOLEAN_OPERATION": NodeKind.VECTOR,
}

FLOW_DIRECTIONS = {"HORIZONTAL": "row", "VERTICAL": "column"}

PRIMARY_AXIS_JUSTIFY = {
    "MIN": "start",
    "CENTER": "center",
    "MAX": "end",
    "SPACE_BETWEEN": "space-between",
}

# No flex model spreads items on the cross axis; stretch is the closest.
COUNTER_AXIS_ALIGN = {
    "MIN": "start",
    "CENTER": "center",
    "MAX": "end",
    "BASELINE": "baseline",
    "SPACE_BETWEEN": "stretch",
}

GRADIENT_PAINTS = {
    "GRADIENT_LINEAR",
    "GRADIENT_RADIAL",
    "GRADIENT_ANGULAR",
    "GRADIENT_CONIC",
    "GRADIENT_DIAMOND",
}

STROKE_ALIGNMENTS = {"CENTER", "INSIDE", "OUTSIDE"}
IMAGE_SCALE_MODES = {"FILL", "FIT", "TILE", "CROP"}

EFFECT_TYPES = {"DROP_SHADOW", "INNER_SHADOW", "LAYER_BLUR", "BACKGROUND_BLUR"}


# ===============================
# NUMBERS
# ===============================

def to_number(value: Any, fallback: float = 0.0) -> float:
    """Finite float from ``value`` or ``fallback``."""
    if isinstance(value, bool):
        return fallback
    try:
        n = float(value)
    except (TypeError, ValueError):
        return fallback
    return n if math.isfinite(n) else fallback


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


# ===============================
# COLOR
# ===============================

def map_color(color: Any, opacity: Any = None) -> RGBA:
    c = color if isinstance(color, dict) else {}
    if isinstance(opacity, (int, float)) and not isinstance(opacity, bool):
        alpha = to_number(opacity, 1.0)
    else:
        alpha = to_number(c.get("a"), 1.0)
    return RGBA(
        r=to_number(c.get("r")),
        g=to_number(c.get("g")),
        b=to_number(c.get("b")),
        a=alpha,
    )


def map_stops(stops: Any) -> Tuple[ColorStop, ...]:
    out = []
    for s in stops if isinstance(stops, list) else []:
        if not isinstance(s, dict):
            continue
        out.append(ColorStop(
            position=to_number(s.get("position")),
            color=map_color(s.get("color"), s.get("opacity")),
        ))
    return tuple(out)


# ===============================
# GRADIENT ANGLE
# ===============================

def css_angle(dx: float, dy: float) -> float:
    """Direction vector -> CSS gradient angle (0 = up, clockwise)."""
    if abs(dx) < 1e-9 and abs(dy) < 1e-9:
        return 0.0
    geometric = math.degrees(math.atan2(dy, dx)) % 360.0
    return round((90.0 - geometric) % 360.0, 4) % 360.0


def gradient_direction(paint: Mapping[str, Any]) -> Tuple[float, float]:
    transform = paint.get("gradientTransform")
    if (
        isinstance(transform, list)
        and len(transform) >= 2
        and all(isinstance(row, list) and row for row in transform[:2])
    ):
        return to_number(transform[0][0]), to_number(transform[1][0])

    handles = paint.get("gradientHandlePositions")
    if isinstance(handles, list) and len(handles) >= 2:
        start = handles[0] if isinstance(handles[0], dict) else {}
        end = handles[1] if isinstance(handles[1], dict) else {}
        return (
            to_number(end.get("x")) - to_number(start.get("x")),
            to_number(end.get("y")) - to_number(start.get("y")),
        )
    return 0.0, 0.0


def gradient_angle(paint: Mapping[str, Any]) -> float:
    return css_angle(*gradient_direction(paint))


# ===============================
# FILLS (backgrounds, images)
# ===============================

def parse_fills(fills: List[Dict[str, Any]]) -> Tuple[Tuple[Fill, ...], Tuple[str, ...]]:
    out: List[Fill] = []
    warnings: List[str] = []

    for f in fills:
        if f.get("visible") is False:
            continue

        paint = str(f.get("type") or "")

        if paint == "SOLID":
            out.append(SolidFill(color=map_color(f.get("color"), f.get("opacity"))))
        elif paint == "GRADIENT_LINEAR":
            out.append(LinearGradientFill(
                stops=map_stops(f.get("gradientStops")),
                angle=gradient_angle(f),
            ))
        elif paint == "GRADIENT_RADIAL":
            out.append(RadialGradientFill(stops=map_stops(f.get("gradientStops"))))
        elif paint in ("GRADIENT_ANGULAR", "GRADIENT_CONIC"):
            out.append(ConicGradientFill(
                stops=map_stops(f.get("gradientStops")),
                angle=gradient_angle(f),
            ))
        elif paint == "IMAGE":
            mode = f.get("scaleMode")
            out.append(ImageFill(
                image_ref=str(f.get("imageRef") or ""),
                scale_mode=mode if mode in IMAGE_SCALE_MODES else "FILL",
            ))
        else:
            warnings.append(f"Unsupported fill type: {paint}")

    return tuple(out), tuple(warnings)


def has_image_fill(fills: List[Dict[str, Any]]) -> bool:
    return any(f.get("type") == "IMAGE" and f.get("visible") is not False for f in fills)


# ===============================
# STROKES (borders)
# ===============================

def parse_strokes(node: RawNode) -> Tuple[Tuple[Stroke, ...], Tuple[str, ...]]:
    out: List[Stroke] = []
    warnings: List[str] = []

    for s in node.strokes:
        if s.get("visible") is False:
            continue

        width = to_number(
            s.get("weight", s.get("strokeWeight", node.stroke_weight)), 1.0
        )
        alignment = str(s.get("alignment") or node.stroke_align or "CENTER")
        if alignment not in STROKE_ALIGNMENTS:
            alignment = "CENTER"
        dashes = s.get("dashPattern")
        if not isinstance(dashes, list):
            dashes = node.stroke_dashes
        dash_pattern = tuple(to_number(d) for d in dashes)

        paint = str(s.get("type") or "")
        if paint == "SOLID":
            out.append(Stroke(
                kind="solid",
                alignment=alignment,
                width=width,
                color=map_color(s.get("color"), s.get("opacity")),
                dash_pattern=dash_pattern,
            ))
        elif paint in GRADIENT_PAINTS:
            out.append(Stroke(
                kind="gradient",
                alignment=alignment,
                width=width,
                gradient_stops=map_stops(s.get("gradientStops")),
                gradient_angle=gradient_angle(s),
                dash_pattern=dash_pattern,
            ))
        else:
            warnings.append(f"Unsupported stroke type: {paint}")

    return tuple(out), tuple(warnings)


# ===============================
# EFFECTS (shadow, blur)
# ===============================

def parse_effects(effects: List[Dict[str, Any]]) -> Tuple[Tuple[Effect, ...], Tuple[str, ...]]:
    out: List[Effect] = []
    warnings: List[str] = []

    for e in effects:
        if e.get("visible") is False:
            continue

        kind = str(e.get("type") or "")
        if kind not in EFFECT_TYPES:
            warnings.append(f"Unsupported effect type: {kind}")
            continue

        if kind in ("DROP_SHADOW", "INNER_SHADOW"):
            offset = e.get("offset") if isinstance(e.get("offset"), dict) else {}
            out.append(Effect(
                type=kind,
                x=to_number(offset.get("x")),
                y=to_number(offset.get("y")),
                blur=to_number(e.get("radius")),
                spread=to_number(e.get("spread")),
                color=map_color(e.get("color"), e.get("opacity")),
            ))
        else:
            out.append(Effect(type=kind, blur=to_number(e.get("radius"))))

    return tuple(out), tuple(warnings)


# ===============================
# RADIUS
# ===============================

def parse_radius(node: RawNode) -> Optional[BorderRadius]:
    uniform = node.corner_radius
    if isinstance(uniform, (int, float)) and not isinstance(uniform, bool) and math.isfinite(uniform):
        return float(uniform)

    raw = list(node.corner_radii[:4]) + [0, 0, 0, 0]
    corners = [to_number(v) for v in raw[:4]]
    if any(corners):
        return BorderRadii(*corners)
    return None


# ===============================
# TYPOGRAPHY
# ===============================

def parse_typography(s: Mapping[str, Any], base: Optional[Typography] = None) -> Typography:
    """Figma TypeStyle -> Typography. Missing keys inherit from ``base``."""
    base = base or Typography()

    font_size = to_number(s.get("fontSize"), base.font_size)

    letter_spacing = s.get("letterSpacing", base.letter_spacing)
    if isinstance(letter_spacing, dict):
        ls_value = to_number(letter_spacing.get("value"))
        if letter_spacing.get("unit") == "PERCENT":
            letter_spacing = (font_size * ls_value) / 100
        else:
            letter_spacing = ls_value
    elif letter_spacing is not None:
        letter_spacing = to_number(letter_spacing)

    weight = s.get("fontWeight", base.font_weight)
    line_height = s.get("lineHeightPx", base.line_height)

    return Typography(
        font_family=str(s.get("fontFamily") or base.font_family),
        font_size=font_size,
        font_weight=to_number(weight) if weight is not None else None,
        line_height=to_number(line_height) if line_height is not None else None,
        letter_spacing=letter_spacing,
        text_case=str(s.get("textCase") or base.text_case),
        text_decoration=str(s.get("textDecoration") or base.text_decoration),
        text_align=str(s.get("textAlignHorizontal") or base.text_align),
    )


def parse_text_runs(node: RawNode, base: Typography) -> Tuple[TextRun, ...]:
    """Split characters into runs along characterStyleOverrides.

    Override id 0 (or an index past the end of the override list) means
    "base style". Returns an empty tuple when the text has a single style.
    The override list is indexed in UTF-16 code units, so a character
    outside the BMP (most emoji) takes two slots.
    """
    text = node.characters or ""
    overrides = node.style_overrides
    if not text or not any(overrides):
        return ()

    def _override_at(unit: int) -> Any:
        return overrides[unit] if unit < len(overrides) else 0

    keys: List[Any] = []
    unit = 0
    for ch in text:
        keys.append(_override_at(unit))
        unit += 2 if ord(ch) > 0xFFFF else 1

    runs: List[TextRun] = []
    start = 0
    for i in range(1, len(text) + 1):
        if i < len(text) and keys[i] == keys[start]:
            continue
        key = keys[start]
        entry = node.style_override_table.get(str(key)) if key else None
        if isinstance(entry, dict):
            typography = parse_typography(entry, base) if _has_type_keys(entry) else None
            fills = entry.get("fills") if isinstance(entry.get("fills"), list) else []
            color = None
            for f in fills:
                if isinstance(f, dict) and f.get("type") == "SOLID" and f.get("visible") is not False:
                    color = map_color(f.get("color"), f.get("opacity"))
                    break
            runs.append(TextRun(text=text[start:i], typography=typography, color=color))
        else:
            runs.append(TextRun(text=text[start:i]))
        start = i

    return tuple(runs)


def _has_type_keys(entry: Mapping[str, Any]) -> bool:
    return any(k != "fills" for k in entry)


# ===============================
# CONSTRAINTS & AUTO-LAYOUT
# ===============================

def parse_layout(
    node: RawNode,
    parent_box: Optional[Mapping[str, Any]],
    parent_flow: Optional[str],
) -> LayoutModel:
    bb = node.box or {}
    width = to_number(bb.get("width"))
    height = to_number(bb.get("height"))

    # 1. own auto-layout
    direction = FLOW_DIRECTIONS.get(str(node.layout_mode or ""))
    if direction:
        return FlowLayout(
            direction=direction,
            width=width,
            height=height if height else "auto",
            gap=to_number(node.item_spacing),
            padding=Padding(
                top=to_number(node.padding.get("top")),
                right=to_number(node.padding.get("right")),
                bottom=to_number(node.padding.get("bottom")),
                left=to_number(node.padding.get("left")),
            ),
            align=COUNTER_AXIS_ALIGN.get(str(node.counter_axis_align or "")),
            justify=PRIMARY_AXIS_JUSTIFY.get(str(node.primary_axis_align or "")),
        )

    # 2. participates in the parent's auto-layout
    if parent_flow and node.layout_positioning != "ABSOLUTE":
        return FlowItemLayout(width=width, height=height)

    # 3. absolute, relative to the parent's origin
    parent = parent_box or {}
    return AbsoluteLayout(
        x=to_number(bb.get("x")) - to_number(parent.get("x")),
        y=to_number(bb.get("y")) - to_number(parent.get("y")),
        width=width,
        height=height,
    )


def flow_direction(node: RawNode) -> Optional[str]:
    return FLOW_DIRECTIONS.get(str(node.layout_mode or ""))


# ===============================
# NODE
# ===============================

def map_node_kind(node: RawNode) -> Optional[NodeKind]:
    if node.type == "RECTANGLE":
        return NodeKind.IMAGE if has_image_fill(node.fills) else NodeKind.CONTAINER
    return NODE_KINDS.get(node.type)


def parse_style(node: RawNode, kind: NodeKind) -> Tuple[StyleModel, Tuple[str, ...]]:
    fills, fill_warnings = parse_fills(node.fills)
    strokes, stroke_warnings = parse_strokes(node)
    effects, effect_warnings = parse_effects(node.effects)

    style = StyleModel(
        fills=fills,
        strokes=strokes,
        effects=effects,
        border_radius=parse_radius(node),
        typography=parse_typography(node.text_style) if kind is NodeKind.TEXT else None,
        opacity=clamp01(to_number(node.opacity, 1.0)),
        blend_mode=str(node.blend_mode) if node.blend_mode else None,
        is_mask=node.is_mask,
    )
    return style, fill_warnings + stroke_warnings + effect_warnings


@dataclass(frozen=True)
class NodeMapping:
    kind: NodeKind
    layout: LayoutModel
    style: StyleModel
    text: Optional[str]
    runs: Tuple[TextRun, ...]
    warnings: Tuple[str, ...]


def map_node(
    node: RawNode,
    parent_box: Optional[Mapping[str, Any]] = None,
    parent_flow: Optional[str] = None,
) -> Optional[NodeMapping]:
    """Map one raw node; ``None`` means the kind is not renderable."""
    kind = map_node_kind(node)
    if kind is None:
        return None

    style, warnings = parse_style(node, kind)

    text = None
    runs: Tuple[TextRun, ...] = ()
    if kind is NodeKind.TEXT:
        text = node.characters or ""
        runs = parse_text_runs(node, style.typography or Typography())

    return NodeMapping(
        kind=kind,
        layout=parse_layout(node, parent_box, parent_flow),
        style=style,
        text=text,
        runs=runs,
        warnings=warnings,
    )
