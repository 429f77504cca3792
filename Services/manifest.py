from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Mapping

from Services.classifier import walk
from Services.ir_types import ClassifiedNode, NormalizationStats

RENDERER_VERSION = "1.0.0"

_COUNT_KEYS = {
    "markup": "markup",
    "text": "text",
    "image-fallback": "imageFallback",
}


def count_strategies(frames: Iterable[ClassifiedNode]) -> Dict[str, int]:
    counts = {"total": 0, "markup": 0, "text": 0, "imageFallback": 0}
    for n in walk(frames):
        counts["total"] += 1
        counts[_COUNT_KEYS[n.strategy.value]] += 1
    return counts


def flatten_nodes(frames: Iterable[ClassifiedNode]) -> List[Dict[str, str]]:
    return [
        {
            "id": n.id,
            "name": n.node.name,
            "kind": n.node.kind.value,
            "strategy": n.strategy.value,
        }
        for n in walk(frames)
    ]


def build_manifest(
    file_key: str,
    meta: Mapping[str, Any],
    frames: Iterable[ClassifiedNode],
    warnings: Iterable[str],
    stats: NormalizationStats,
) -> Dict[str, Any]:
    frames = tuple(frames)
    return {
        "meta": {
            "fileKey": file_key,
            "name": meta.get("name"),
            "lastModified": meta.get("lastModified"),
            "rendererVersion": RENDERER_VERSION,
        },
        "counts": count_strategies(frames),
        "stats": asdict(stats),
        "warnings": list(warnings),
        "nodes": flatten_nodes(frames),
    }
