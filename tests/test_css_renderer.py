"""Tests for the stylesheet emitter (Services/css_renderer.py)."""

import pytest

from Services.classifier import classify_tree
from Services.css_renderer import (
    ROOT_RULE,
    build_styles,
    css_for_scale_mode,
    fill_layer,
    font_family_css,
    layout_rules,
    node_blocks,
    node_rules,
    num,
    rgba,
)
from Services.ir_types import (
    AbsoluteLayout,
    BorderRadii,
    ClassifiedNode,
    ColorStop,
    ConicGradientFill,
    Effect,
    FlowItemLayout,
    FlowLayout,
    ImageAsset,
    LinearGradientFill,
    NodeKind,
    NormalizedNode,
    Padding,
    RadialGradientFill,
    RenderStrategy,
    RGBA,
    SolidFill,
    Stroke,
    StyleModel,
    TextRun,
    Typography,
)

RED = RGBA(1, 0, 0, 1)
BLUE = RGBA(0, 0, 1, 1)
BLACK = RGBA(0, 0, 0, 1)
STOPS = (ColorStop(0, RED), ColorStop(1, BLUE))
BOX = AbsoluteLayout(0, 0, 10, 10)
INTER = Typography(font_family="Inter", font_size=16, font_weight=400)


def classified(strategy=RenderStrategy.MARKUP, kind=NodeKind.CONTAINER, node_id="1:2",
               layout=BOX, text=None, runs=(), **style):
    node = NormalizedNode(
        id=node_id, name="n", kind=kind, layout=layout, style=StyleModel(**style), text=text, runs=runs,
    )
    return ClassifiedNode(node=node, strategy=strategy)


# ─── formatting ─────────────────────────────────────────────────────────────


@pytest.mark.parametrize("value,expected", [(1.0, "1"), (12, "12"), (1.23456, "1.235"), (0.5, "0.5")])
def test_num(value, expected):
    assert num(value) == expected


def test_rgba_rounds_channels_half_up_and_clamps_alpha():
    assert rgba(RGBA(1, 0.5, 0, 1)) == "rgba(255,128,0,1)"
    assert rgba(RGBA(0, 0, 0, 1.4)) == "rgba(0,0,0,1)"
    assert rgba(RGBA(0, 0, 0, 0.25)) == "rgba(0,0,0,0.25)"


def test_font_family_strips_quotes():
    assert font_family_css('"Inter"') == "'Inter', system-ui, sans-serif"
    assert font_family_css("") == "system-ui, sans-serif"


# ─── layout ─────────────────────────────────────────────────────────────────


def test_flow_layout_rules():
    layout = FlowLayout("column", 320, "auto", 12, Padding(16, 8, 16, 8), "center", "space-between")
    assert "".join(layout_rules(layout)) == (
        "display:flex;flex-direction:column;gap:12px;padding:16px 8px 16px 8px;"
        "align-items:center;justify-content:space-between;width:320px;height:auto;position:relative;"
    )


def test_flow_item_has_size_only():
    assert layout_rules(FlowItemLayout(80, 24)) == ["width:80px;", "height:24px;"]


def test_absolute_layout_rules():
    assert "".join(layout_rules(AbsoluteLayout(280, 16, 24, 24))) == (
        "position:absolute;left:280px;top:16px;width:24px;height:24px;"
    )


# ─── fills ──────────────────────────────────────────────────────────────────


def test_fill_layers_are_reversed_so_top_paint_comes_first():
    n = classified(fills=(SolidFill(RED), LinearGradientFill(STOPS, 90)))
    assert "background:linear-gradient(90deg, rgba(255,0,0,1) 0%, rgba(0,0,255,1) 100%),rgba(255,0,0,1);" in (
        node_rules(n)
    )


def test_radial_and_conic_layers():
    assert fill_layer(RadialGradientFill(STOPS)) == (
        "radial-gradient(circle at center, rgba(255,0,0,1) 0%, rgba(0,0,255,1) 100%)"
    )
    assert fill_layer(ConicGradientFill(STOPS, 45)) == (
        "conic-gradient(from 45deg at 50% 50%, rgba(255,0,0,1) 0%, rgba(0,0,255,1) 100%)"
    )


def test_text_gets_color_not_background():
    n = classified(RenderStrategy.TEXT, NodeKind.TEXT, text="hi", fills=(SolidFill(RGBA(1, 0.5, 0, 1)),))
    rules = node_rules(n)
    assert rules[len(layout_rules(BOX))] == "color:rgba(255,128,0,1);"
    assert not any(r.startswith("background") for r in rules)


@pytest.mark.parametrize(
    "mode,expected",
    [
        ("FIT", "background-size:contain;"),
        ("FILL", "background-size:cover;"),
        ("TILE", "background-repeat:repeat;"),
        ("CROP", "overflow:hidden;"),
        ("UNKNOWN", "background-size:cover;"),
    ],
)
def test_scale_modes(mode, expected):
    assert expected in css_for_scale_mode(mode)


def test_image_asset_is_referenced_on_markup_node():
    rules = node_rules(classified(), ImageAsset("./assets/1_2@2x.png", "FIT"))
    assert 'background-image:url("./assets/1_2@2x.png");' in rules
    assert "background-size:contain;" in rules


# ─── stroke / effects / opacity / radius ────────────────────────────────────


@pytest.mark.parametrize(
    "alignment,expected",
    [
        ("CENTER", "border:2px solid rgba(0,0,0,1);"),
        ("INSIDE", "box-shadow:inset 0 0 0 2px rgba(0,0,0,1);"),
        ("OUTSIDE", "box-shadow:0 0 0 2px rgba(0,0,0,1);"),
    ],
)
def test_single_solid_stroke(alignment, expected):
    stroke = Stroke(kind="solid", alignment=alignment, width=2, color=BLACK)
    assert expected in node_rules(classified(strokes=(stroke,)))


def test_shadows_join_into_one_declaration():
    effects = (
        Effect(type="DROP_SHADOW", x=0, y=2, blur=4, color=RGBA(0, 0, 0, 0.25)),
        Effect(type="INNER_SHADOW", x=1, y=1, blur=0),
    )
    assert "box-shadow:0px 2px 4px 0px rgba(0,0,0,0.25),1px 1px 0px 0px rgba(0,0,0,0.25) inset;" in (
        node_rules(classified(effects=effects))
    )


@pytest.mark.parametrize("opacity,expected", [(-0.2, "opacity:0;"), (0.5, "opacity:0.5;")])
def test_opacity_is_clamped(opacity, expected):
    assert expected in node_rules(classified(opacity=opacity))


@pytest.mark.parametrize("opacity", [1.0, 1.5])
def test_opaque_nodes_omit_opacity(opacity):
    assert not any(r.startswith("opacity") for r in node_rules(classified(opacity=opacity)))


def test_radius_forms():
    assert "border-radius:8px;" in node_rules(classified(border_radius=8))
    assert "border-radius:1px 2px 3px 4px;" in node_rules(classified(border_radius=BorderRadii(1, 2, 3, 4)))


# ─── typography / runs ──────────────────────────────────────────────────────


def test_text_block_includes_typography_and_pre_wrap():
    n = classified(RenderStrategy.TEXT, NodeKind.TEXT, text="hi", typography=INTER, fills=(SolidFill(BLACK),))
    rules = node_rules(n)
    assert rules[-5:] == [
        "font-family:'Inter', system-ui, sans-serif;",
        "font-size:16px;",
        "font-weight:400;",
        "text-align:left;",
        "white-space:pre-wrap;",
    ]


def test_decoration_and_case():
    t = Typography(font_family="Inter", font_size=12, text_case="UPPER", text_decoration="UNDERLINE")
    rules = node_rules(classified(RenderStrategy.TEXT, NodeKind.TEXT, text="x", typography=t))
    assert "text-decoration:underline;" in rules
    assert "text-transform:uppercase;" in rules


def test_run_blocks_only_carry_differences():
    runs = (
        TextRun("Hello "),
        TextRun("world", Typography(font_family="Inter", font_size=16, font_weight=700), RED),
    )
    n = classified(RenderStrategy.TEXT, NodeKind.TEXT, text="Hello world", runs=runs, typography=INTER)
    blocks = node_blocks(n, {})
    assert len(blocks) == 2
    assert blocks[1] == ".n-1_2-f9adeea0__span-1{color:rgba(255,0,0,1);font-weight:700;}"


def test_fallback_node_gets_layout_only():
    n = classified(
        RenderStrategy.IMAGE_FALLBACK,
        is_mask=True,
        fills=(SolidFill(RED),),
        opacity=0.5,
        border_radius=4,
    )
    assert node_rules(n, ImageAsset("./assets/x.png")) == layout_rules(BOX)


# ─── document ───────────────────────────────────────────────────────────────


def test_build_styles_starts_with_root_rule_in_traversal_order():
    parent = NormalizedNode(
        id="1", name="p", kind=NodeKind.CONTAINER, layout=BOX, style=StyleModel(),
        children=(NormalizedNode(id="2", name="c", kind=NodeKind.CONTAINER, layout=BOX, style=StyleModel()),),
    )
    css = build_styles([classify_tree(parent)])
    lines = css.split("\n")
    assert lines[0] == ROOT_RULE
    assert lines[1].startswith(".n-1-")
    assert lines[2].startswith(".n-2-")


def test_build_styles_is_deterministic(sample_file):
    from Services.converter import classify_document

    frames = classify_document(sample_file).frames
    assert build_styles(frames) == build_styles(frames)


def test_single_styled_run_gets_span_block():
    runs = (TextRun("Hi", color=RED),)
    n = classified(RenderStrategy.TEXT, NodeKind.TEXT, text="Hi", runs=runs, typography=INTER)
    assert node_blocks(n, {})[1] == ".n-1_2-f9adeea0__span-0{color:rgba(255,0,0,1);}"


@pytest.mark.parametrize(
    "alignment,ring",
    [("INSIDE", "inset 0 0 0 2px rgba(255,0,0,1)"), ("OUTSIDE", "0 0 0 2px rgba(255,0,0,1)")],
)
def test_stroke_ring_and_shadows_share_one_box_shadow(alignment, ring):
    stroke = Stroke(kind="solid", alignment=alignment, width=2, color=RED)
    shadow = Effect(type="DROP_SHADOW", x=0, y=1, blur=2, color=RGBA(0, 0, 0, 0.5))
    rules = node_rules(classified(strokes=(stroke,), effects=(shadow,)))
    shadows = [r for r in rules if r.startswith("box-shadow:")]
    assert shadows == [f"box-shadow:{ring},0px 1px 2px 0px rgba(0,0,0,0.5);"]
    assert not any(r.startswith("border:") for r in rules)


def test_decoration_none_emits_no_declaration():
    t = Typography(font_family="Inter", font_size=12, text_decoration="NONE")
    rules = node_rules(classified(RenderStrategy.TEXT, NodeKind.TEXT, text="x", typography=t))
    assert not any(r.startswith("text-decoration") for r in rules)
