"""Stable, collision-resistant names derived from a Figma node id.

The markup, the stylesheet, the asset cache and the placeholder writer
all address a node through these functions, so they must stay pure.
"""

import hashlib
import re

_UNSAFE = re.compile(r"[^a-zA-Z0-9_-]")


def safe_id(node_id: str) -> str:
    return _UNSAFE.sub("_", node_id)


def node_slug(node_id: str) -> str:
    # "1:2" and "1_2" sanitize alike; the digest keeps them apart
    digest = hashlib.sha1(node_id.encode("utf-8")).hexdigest()[:8]
    return f"{safe_id(node_id)}-{digest}"


def css_class(node_id: str) -> str:
    return f"n-{node_slug(node_id)}"


def span_class(node_id: str, index: int) -> str:
    return f"{css_class(node_id)}__span-{index}"


def fallback_asset_name(node_id: str) -> str:
    return f"{node_slug(node_id)}.svg"


def bitmap_asset_name(node_id: str, scale: int, fmt: str = "png") -> str:
    return f"{node_slug(node_id)}@{scale}x.{fmt}"
