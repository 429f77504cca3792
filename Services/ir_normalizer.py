"""Tree normalizer: raw Figma document -> immutable NormalizedNode tree.

Warnings and statistics are not collected in a shared object; each
recursive call returns its own tally and the caller merges the tallies of
its children in order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, FrozenSet, List, Mapping, Optional, Tuple

from Services.errors import InvalidDocumentError
from Services.ir_types import (
    NodeKind,
    NormalizationResult,
    NormalizationStats,
    NormalizedNode,
    RawNode,
)
from Services.layout_parser import flow_direction, map_node

logger = logging.getLogger(__name__)

# Never painted, never counted
NON_VISUAL_TYPES = {"SLICE", "GUIDE"}

_KIND_COUNTER = {
    NodeKind.CONTAINER: "containers",
    NodeKind.TEXT: "texts",
    NodeKind.VECTOR: "vectors",
    NodeKind.IMAGE: "images",
}


@dataclass(frozen=True)
class _Tally:
    warnings: Tuple[str, ...] = ()
    stats: NormalizationStats = NormalizationStats()

    def __add__(self, other: "_Tally") -> "_Tally":
        return _Tally(self.warnings + other.warnings, self.stats + other.stats)


def _is_skipped(raw: Mapping[str, Any]) -> bool:
    return raw.get("visible") is False or raw.get("type") in NON_VISUAL_TYPES


def _node_key(raw: Mapping[str, Any]) -> str:
    node_id = raw.get("id")
    return str(node_id) if node_id else f"@{id(raw)}"


def _normalize_node(
    raw: Mapping[str, Any],
    parent_box: Optional[Mapping[str, Any]],
    parent_flow: Optional[str],
    ancestors: FrozenSet[str],
) -> Tuple[Optional[NormalizedNode], _Tally]:
    key = _node_key(raw)
    if key in ancestors:
        return None, _Tally(warnings=(f"Cycle detected at node {key}; subtree skipped",))

    node = RawNode.from_dict(raw)
    tally = _Tally(stats=NormalizationStats(nodes_total=1))

    mapping = map_node(node, parent_box, parent_flow)
    if mapping is None:
        # not renderable: the whole subtree goes with it
        return None, tally

    counts = {_KIND_COUNTER[mapping.kind]: 1}
    if mapping.style.has_gradient:
        counts["gradients"] = 1
    if mapping.style.is_mask:
        counts["masks"] = 1
    tally = tally + _Tally(mapping.warnings, NormalizationStats(**counts))

    own_flow = flow_direction(node)
    child_ancestors = ancestors | {key}
    children: List[NormalizedNode] = []
    for child in node.children:
        if not isinstance(child, dict) or _is_skipped(child):
            continue
        normalized, child_tally = _normalize_node(child, node.box, own_flow, child_ancestors)
        tally = tally + child_tally
        if normalized is not None:
            children.append(normalized)

    return (
        NormalizedNode(
            id=node.id,
            name=node.name,
            kind=mapping.kind,
            layout=mapping.layout,
            style=mapping.style,
            text=mapping.text,
            runs=mapping.runs,
            children=tuple(children),
        ),
        tally,
    )


def normalize_node(raw: Mapping[str, Any]) -> Tuple[Optional[NormalizedNode], Tuple[str, ...], NormalizationStats]:
    """Normalize a single top-level node (no parent box, no parent flow)."""
    node, tally = _normalize_node(raw, None, None, frozenset())
    return node, tally.warnings, tally.stats


def normalize_document(figma_json: Any) -> NormalizationResult:
    """Normalize every top-level node of every page.

    Accepts either the full ``GET /v1/files/:key`` response or its
    ``document`` node. Raises InvalidDocumentError when there is no child
    list to walk.
    """
    if not isinstance(figma_json, dict):
        raise InvalidDocumentError("Figma document must be a JSON object")

    document = figma_json.get("document", figma_json)
    if not isinstance(document, dict) or not isinstance(document.get("children"), list):
        raise InvalidDocumentError("Figma document has no children list")

    frames: List[NormalizedNode] = []
    tally = _Tally()

    for page in document["children"]:
        if not isinstance(page, dict) or _is_skipped(page):
            continue
        page_key = _node_key(page)
        for child in page.get("children") or []:
            if not isinstance(child, dict) or _is_skipped(child):
                continue
            node, child_tally = _normalize_node(child, None, None, frozenset({page_key}))
            tally = tally + child_tally
            if node is not None:
                frames.append(node)

    logger.info(
        "[CONVERT] Normalized %d frames (%d nodes, %d warnings)",
        len(frames), tally.stats.nodes_total, len(tally.warnings),
    )
    return NormalizationResult(frames=tuple(frames), warnings=tally.warnings, stats=tally.stats)
