"""Typed intermediate representation shared by the normalizer, classifier
and both renderers.

Every record is a frozen dataclass holding tuples instead of lists, so a
normalized tree is immutable once built and style models are hashable
(the classifier memoizes on them).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Union


class NodeKind(str, Enum):
    CONTAINER = "container"
    TEXT = "text"
    VECTOR = "vector"
    IMAGE = "image"


class RenderStrategy(str, Enum):
    TEXT = "text"
    MARKUP = "markup"
    IMAGE_FALLBACK = "image-fallback"


# ===============================
# RAW INPUT
# ===============================

def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


@dataclass(frozen=True)
class RawNode:
    """One Figma node with every field the mapper reads pulled out once.

    Children stay as raw mappings; the normalizer wraps each of them when
    (and if) it visits them.
    """

    id: str
    name: str
    type: str
    visible: bool = True
    box: Optional[Dict[str, Any]] = None
    layout_mode: Optional[str] = None
    layout_positioning: Optional[str] = None
    padding: Dict[str, Any] = field(default_factory=dict)
    item_spacing: Any = None
    primary_axis_align: Optional[str] = None
    counter_axis_align: Optional[str] = None
    fills: List[Dict[str, Any]] = field(default_factory=list)
    strokes: List[Dict[str, Any]] = field(default_factory=list)
    stroke_weight: Any = None
    stroke_align: Optional[str] = None
    stroke_dashes: List[Any] = field(default_factory=list)
    effects: List[Dict[str, Any]] = field(default_factory=list)
    opacity: Any = None
    blend_mode: Optional[str] = None
    is_mask: bool = False
    corner_radius: Any = None
    corner_radii: List[Any] = field(default_factory=list)
    text_style: Dict[str, Any] = field(default_factory=dict)
    characters: Optional[str] = None
    style_overrides: List[Any] = field(default_factory=list)
    style_override_table: Dict[str, Any] = field(default_factory=dict)
    children: List[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, node: Mapping[str, Any]) -> "RawNode":
        bb = node.get("absoluteBoundingBox")
        characters = node.get("characters")
        return cls(
            id=str(node.get("id") or ""),
            name=str(node.get("name") or ""),
            type=str(node.get("type") or ""),
            visible=node.get("visible") is not False,
            box=bb if isinstance(bb, dict) else None,
            layout_mode=node.get("layoutMode"),
            layout_positioning=node.get("layoutPositioning"),
            padding={
                "top": node.get("paddingTop"),
                "right": node.get("paddingRight"),
                "bottom": node.get("paddingBottom"),
                "left": node.get("paddingLeft"),
            },
            item_spacing=node.get("itemSpacing"),
            primary_axis_align=node.get("primaryAxisAlignItems"),
            counter_axis_align=node.get("counterAxisAlignItems"),
            fills=[f for f in _list(node.get("fills")) if isinstance(f, dict)],
            strokes=[s for s in _list(node.get("strokes")) if isinstance(s, dict)],
            stroke_weight=node.get("strokeWeight"),
            stroke_align=node.get("strokeAlign"),
            stroke_dashes=_list(node.get("strokeDashes")),
            effects=[e for e in _list(node.get("effects")) if isinstance(e, dict)],
            opacity=node.get("opacity"),
            blend_mode=node.get("blendMode"),
            is_mask=bool(node.get("isMask")),
            corner_radius=node.get("cornerRadius"),
            corner_radii=_list(node.get("rectangleCornerRadii")),
            text_style=_dict(node.get("style")),
            characters=characters if isinstance(characters, str) else None,
            style_overrides=_list(node.get("characterStyleOverrides")),
            style_override_table=_dict(node.get("styleOverrideTable")),
            children=_list(node.get("children")),
        )


# ===============================
# COLOR
# ===============================

@dataclass(frozen=True)
class RGBA:
    """Color with every channel in 0..1."""

    r: float
    g: float
    b: float
    a: float = 1.0


@dataclass(frozen=True)
class ColorStop:
    position: float
    color: RGBA


# ===============================
# FILLS
# ===============================

@dataclass(frozen=True)
class SolidFill:
    kind: ClassVar[str] = "solid"
    color: RGBA


@dataclass(frozen=True)
class LinearGradientFill:
    kind: ClassVar[str] = "linear-gradient"
    stops: Tuple[ColorStop, ...]
    angle: float  # CSS degrees: 0 = up, clockwise


@dataclass(frozen=True)
class RadialGradientFill:
    kind: ClassVar[str] = "radial-gradient"
    stops: Tuple[ColorStop, ...]


@dataclass(frozen=True)
class ConicGradientFill:
    kind: ClassVar[str] = "conic-gradient"
    stops: Tuple[ColorStop, ...]
    angle: float


@dataclass(frozen=True)
class ImageFill:
    kind: ClassVar[str] = "image"
    image_ref: str
    scale_mode: str = "FILL"  # FILL | FIT | TILE | CROP


Fill = Union[SolidFill, LinearGradientFill, RadialGradientFill, ConicGradientFill, ImageFill]

GRADIENT_FILL_KINDS = frozenset({"linear-gradient", "radial-gradient", "conic-gradient"})


# ===============================
# STROKES / EFFECTS
# ===============================

@dataclass(frozen=True)
class Stroke:
    kind: str  # "solid" | "gradient"
    alignment: str  # CENTER | INSIDE | OUTSIDE
    width: float
    color: Optional[RGBA] = None
    gradient_stops: Tuple[ColorStop, ...] = ()
    gradient_angle: Optional[float] = None
    dash_pattern: Tuple[float, ...] = ()


SHADOW_EFFECTS = frozenset({"DROP_SHADOW", "INNER_SHADOW"})
BLUR_EFFECTS = frozenset({"LAYER_BLUR", "BACKGROUND_BLUR"})


@dataclass(frozen=True)
class Effect:
    type: str  # DROP_SHADOW | INNER_SHADOW | LAYER_BLUR | BACKGROUND_BLUR
    x: float = 0.0
    y: float = 0.0
    blur: float = 0.0
    spread: float = 0.0
    color: Optional[RGBA] = None

    @property
    def is_shadow(self) -> bool:
        return self.type in SHADOW_EFFECTS

    @property
    def is_blur(self) -> bool:
        return self.type in BLUR_EFFECTS


# ===============================
# TYPOGRAPHY / RADIUS
# ===============================

@dataclass(frozen=True)
class Typography:
    font_family: str = "system-ui"
    font_size: float = 14.0
    font_weight: Optional[float] = None
    line_height: Optional[float] = None
    letter_spacing: Optional[float] = None
    text_case: str = "ORIGINAL"
    text_decoration: str = "NONE"
    text_align: str = "LEFT"


@dataclass(frozen=True)
class BorderRadii:
    top_left: float
    top_right: float
    bottom_right: float
    bottom_left: float


BorderRadius = Union[float, BorderRadii]


@dataclass(frozen=True)
class StyleModel:
    fills: Tuple[Fill, ...] = ()
    strokes: Tuple[Stroke, ...] = ()
    effects: Tuple[Effect, ...] = ()
    border_radius: Optional[BorderRadius] = None
    typography: Optional[Typography] = None
    opacity: float = 1.0
    blend_mode: Optional[str] = None
    is_mask: bool = False

    @property
    def has_gradient(self) -> bool:
        return any(f.kind in GRADIENT_FILL_KINDS for f in self.fills)

    def first_image_fill(self) -> Optional[ImageFill]:
        for f in self.fills:
            if isinstance(f, ImageFill):
                return f
        return None


# ===============================
# LAYOUT
# ===============================

@dataclass(frozen=True)
class Padding:
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0


@dataclass(frozen=True)
class FlowLayout:
    """Auto-layout container; its own position is never explicit."""

    direction: str  # "row" | "column"
    width: float
    height: Union[float, str]  # number or "auto"
    gap: float = 0.0
    padding: Padding = Padding()
    align: Optional[str] = None  # cross axis
    justify: Optional[str] = None  # main axis


@dataclass(frozen=True)
class FlowItemLayout:
    """Child of a flow container that takes part in the flow."""

    width: float
    height: float


@dataclass(frozen=True)
class AbsoluteLayout:
    """x/y are relative to the immediate parent's origin."""

    x: float
    y: float
    width: float
    height: float


LayoutModel = Union[FlowLayout, FlowItemLayout, AbsoluteLayout]


# ===============================
# TREE
# ===============================

@dataclass(frozen=True)
class TextRun:
    text: str
    typography: Optional[Typography] = None
    color: Optional[RGBA] = None

    @property
    def has_overrides(self) -> bool:
        return self.typography is not None or self.color is not None


@dataclass(frozen=True)
class NormalizedNode:
    id: str
    name: str
    kind: NodeKind
    layout: LayoutModel
    style: StyleModel
    text: Optional[str] = None
    runs: Tuple[TextRun, ...] = ()
    children: Tuple["NormalizedNode", ...] = ()

    @property
    def has_styled_runs(self) -> bool:
        """True when any run differs from the node style, even a single run
        covering the whole text."""
        return any(r.has_overrides for r in self.runs)


@dataclass(frozen=True)
class ClassifiedNode:
    node: NormalizedNode
    strategy: RenderStrategy
    children: Tuple["ClassifiedNode", ...] = ()

    @property
    def id(self) -> str:
        return self.node.id


@dataclass(frozen=True)
class ImageAsset:
    """Bitmap written by the asset layer for a node's image fill."""

    relative_path: str
    scale_mode: str = "FILL"


@dataclass(frozen=True)
class NormalizationStats:
    nodes_total: int = 0
    containers: int = 0
    texts: int = 0
    vectors: int = 0
    images: int = 0
    gradients: int = 0
    masks: int = 0

    def __add__(self, other: "NormalizationStats") -> "NormalizationStats":
        return NormalizationStats(
            nodes_total=self.nodes_total + other.nodes_total,
            containers=self.containers + other.containers,
            texts=self.texts + other.texts,
            vectors=self.vectors + other.vectors,
            images=self.images + other.images,
            gradients=self.gradients + other.gradients,
            masks=self.masks + other.masks,
        )


@dataclass(frozen=True)
class NormalizationResult:
    frames: Tuple[NormalizedNode, ...]
    warnings: Tuple[str, ...]
    stats: NormalizationStats
