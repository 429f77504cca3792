"""Capability classifier: decide per node how it is rendered.

``classify_node`` looks only at the node's own kind and style, never at its
parent or its subtree. An image-fallback node can therefore have markup
descendants; ``classify_tree`` keeps that independence explicit by
classifying every node on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Iterator, List, Optional, Tuple

import config
from Services.ir_types import (
    ClassifiedNode,
    ImageFill,
    NodeKind,
    NormalizedNode,
    RenderStrategy,
    StyleModel,
)

LENIENT_FILL_KINDS = frozenset({
    "solid",
    "image",
    "linear-gradient",
    "radial-gradient",
    "conic-gradient",
})
STRICT_FILL_KINDS = frozenset({"solid"})

PASSTHROUGH_BLEND_MODES = frozenset({"normal", "pass-through"})


@dataclass(frozen=True)
class ClassifierPolicy:
    """Which of the two observed rule variants is active.

    downgrade_complex_text: text that trips any image-fallback rule is
        exported as an asset too (otherwise text always stays text).
    strict_fills: only solid fills may render as markup.
    """

    downgrade_complex_text: bool = True
    strict_fills: bool = False

    @classmethod
    def from_config(cls) -> "ClassifierPolicy":
        return cls(
            downgrade_complex_text=config.CLASSIFIER_DOWNGRADE_TEXT,
            strict_fills=config.CLASSIFIER_STRICT_FILLS,
        )


DEFAULT_POLICY = ClassifierPolicy()


# ===============================
# RULES
# ===============================

def _needs_fallback_for_strokes(style: StyleModel) -> bool:
    if not style.strokes:
        return False
    if len(style.strokes) > 1:
        return True
    s = style.strokes[0]
    return s.kind != "solid" or s.alignment != "CENTER" or bool(s.dash_pattern)


def _needs_fallback_for_fills(style: StyleModel, policy: ClassifierPolicy) -> bool:
    allowed = STRICT_FILL_KINDS if policy.strict_fills else LENIENT_FILL_KINDS
    return any(f.kind not in allowed for f in style.fills)


def _needs_fallback_for_blend(style: StyleModel) -> bool:
    if not style.blend_mode:
        return False
    return style.blend_mode.lower().replace("_", "-") not in PASSTHROUGH_BLEND_MODES


def _needs_fallback_for_effects(style: StyleModel) -> bool:
    shadows = sum(1 for e in style.effects if e.is_shadow)
    return shadows > 1 or any(e.is_blur for e in style.effects)


def fallback_reason(style: StyleModel, policy: ClassifierPolicy = DEFAULT_POLICY) -> Optional[str]:
    """First capability boundary the style crosses, or None."""
    if style.is_mask:
        return "mask"
    if _needs_fallback_for_strokes(style):
        return "stroke"
    if _needs_fallback_for_fills(style, policy):
        return "fill"
    if _needs_fallback_for_blend(style):
        return "blend"
    if _needs_fallback_for_effects(style):
        return "effect"
    return None


@lru_cache(maxsize=4096)
def _classify(kind: NodeKind, style: StyleModel, policy: ClassifierPolicy) -> RenderStrategy:
    reason = fallback_reason(style, policy)
    if kind is NodeKind.TEXT:
        if reason and policy.downgrade_complex_text:
            return RenderStrategy.IMAGE_FALLBACK
        return RenderStrategy.TEXT
    if reason:
        return RenderStrategy.IMAGE_FALLBACK
    return RenderStrategy.MARKUP


def classify_node(node: NormalizedNode, policy: ClassifierPolicy = DEFAULT_POLICY) -> RenderStrategy:
    return _classify(node.kind, node.style, policy)


def classify_tree(node: NormalizedNode, policy: ClassifierPolicy = DEFAULT_POLICY) -> ClassifiedNode:
    return ClassifiedNode(
        node=node,
        strategy=classify_node(node, policy),
        children=tuple(classify_tree(c, policy) for c in node.children),
    )


def classify_frames(
    frames: Iterable[NormalizedNode], policy: ClassifierPolicy = DEFAULT_POLICY
) -> Tuple[ClassifiedNode, ...]:
    return tuple(classify_tree(f, policy) for f in frames)


# ===============================
# TREE QUERIES
# ===============================

def walk(nodes: Iterable[ClassifiedNode]) -> Iterator[ClassifiedNode]:
    """Pre-order traversal in children order."""
    for n in nodes:
        yield n
        yield from walk(n.children)


def collect_fallback_ids(frames: Iterable[ClassifiedNode]) -> List[str]:
    """Sorted, de-duplicated ids of every image-fallback node."""
    return sorted({n.id for n in walk(frames) if n.strategy is RenderStrategy.IMAGE_FALLBACK})


def collect_image_fill_nodes(frames: Iterable[ClassifiedNode]) -> List[Tuple[str, ImageFill]]:
    """Markup nodes that need a bitmap for their image fill."""
    out = []
    for n in walk(frames):
        if n.strategy is not RenderStrategy.MARKUP:
            continue
        fill = n.node.style.first_image_fill()
        if fill and fill.image_ref:
            out.append((n.id, fill))
    return out
