"""Pure conversion pipeline: normalize -> classify -> emit.

No I/O happens here. The caller runs the asset export between
``classify_document`` and ``emit_document`` so the stylesheet can point
at the written bitmaps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from Services.classifier import (
    DEFAULT_POLICY,
    ClassifierPolicy,
    classify_frames,
    collect_fallback_ids,
    collect_image_fill_nodes,
)
from Services.css_renderer import build_styles
from Services.html_renderer import build_index_html
from Services.ir_normalizer import normalize_document
from Services.ir_types import (
    ClassifiedNode,
    ImageAsset,
    ImageFill,
    NormalizationStats,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifiedDocument:
    frames: Tuple[ClassifiedNode, ...]
    warnings: Tuple[str, ...]
    stats: NormalizationStats
    fallback_ids: Tuple[str, ...]
    image_fill_nodes: Tuple[Tuple[str, ImageFill], ...]


@dataclass(frozen=True)
class EmissionResult:
    html: str
    css: str
    fallback_ids: Tuple[str, ...]


def classify_document(figma_json: Any, policy: ClassifierPolicy = DEFAULT_POLICY) -> ClassifiedDocument:
    result = normalize_document(figma_json)
    frames = classify_frames(result.frames, policy)
    fallback_ids = tuple(collect_fallback_ids(frames))
    logger.info("[CONVERT] %d nodes need an exported asset", len(fallback_ids))
    return ClassifiedDocument(
        frames=frames,
        warnings=result.warnings,
        stats=result.stats,
        fallback_ids=fallback_ids,
        image_fill_nodes=tuple(collect_image_fill_nodes(frames)),
    )


def emit_document(
    document: ClassifiedDocument,
    title: str = "Generated",
    image_assets: Optional[Mapping[str, ImageAsset]] = None,
) -> EmissionResult:
    return EmissionResult(
        html=build_index_html(title, document.frames),
        css=build_styles(document.frames, image_assets),
        fallback_ids=document.fallback_ids,
    )


def convert(
    figma_json: Any,
    title: str = "Generated",
    policy: ClassifierPolicy = DEFAULT_POLICY,
    image_assets: Optional[Mapping[str, ImageAsset]] = None,
) -> EmissionResult:
    return emit_document(classify_document(figma_json, policy), title, image_assets)

