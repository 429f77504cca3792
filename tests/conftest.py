"""Shared fixtures and raw Figma node builders.

Environment is pinned before any project module is imported so config.py
never picks up a developer's .env token or log directory.
"""

import os
import tempfile

os.environ["LOG_DIR"] = os.path.join(tempfile.gettempdir(), "figma-converter-test-logs")
os.environ["FIGMA_TOKEN"] = "test-token"
os.environ.setdefault("CLASSIFIER_DOWNGRADE_TEXT", "true")
os.environ.setdefault("CLASSIFIER_STRICT_FILLS", "false")

import pytest  # noqa: E402


def box(x=0, y=0, w=100, h=50):
    return {"x": x, "y": y, "width": w, "height": h}


def solid(r=0.0, g=0.0, b=0.0, a=1.0, **extra):
    paint = {"type": "SOLID", "color": {"r": r, "g": g, "b": b, "a": a}}
    paint.update(extra)
    return paint


def linear(transform=None, stops=None):
    return {
        "type": "GRADIENT_LINEAR",
        "gradientTransform": transform or [[1, 0, 0], [0, 1, 0]],
        "gradientStops": stops
        or [
            {"position": 0, "color": {"r": 1, "g": 0, "b": 0, "a": 1}},
            {"position": 1, "color": {"r": 0, "g": 0, "b": 1, "a": 1}},
        ],
    }


def frame(node_id, children=None, bb=None, **extra):
    node = {
        "id": node_id,
        "name": extra.pop("name", f"Frame {node_id}"),
        "type": extra.pop("type", "FRAME"),
        "absoluteBoundingBox": bb or box(),
        "children": children or [],
    }
    node.update(extra)
    return node


def text(node_id, characters="Hello", bb=None, fills=None, **extra):
    node = {
        "id": node_id,
        "name": extra.pop("name", "Label"),
        "type": "TEXT",
        "absoluteBoundingBox": bb or box(),
        "characters": characters,
        "fills": fills if fills is not None else [solid(0, 0, 0)],
        "style": extra.pop("style", {"fontFamily": "Inter", "fontSize": 16, "fontWeight": 400}),
    }
    node.update(extra)
    return node


def document(*frames, name="Test file", last_modified="2024-01-01T00:00:00Z"):
    return {
        "name": name,
        "lastModified": last_modified,
        "document": {
            "id": "0:0",
            "type": "DOCUMENT",
            "children": [{"id": "0:1", "type": "CANVAS", "name": "Page 1", "children": list(frames)}],
        },
    }


@pytest.fixture
def sample_file():
    """A small but complete page: auto-layout card with text, a gradient
    badge, an unsupported node and a masked icon."""
    return document(
        frame(
            "1:1",
            name="Card",
            bb=box(100, 200, 320, 0),
            layoutMode="VERTICAL",
            itemSpacing=12,
            paddingTop=16,
            paddingRight=16,
            paddingBottom=16,
            paddingLeft=16,
            primaryAxisAlignItems="SPACE_BETWEEN",
            counterAxisAlignItems="CENTER",
            fills=[solid(1, 1, 1)],
            cornerRadius=8,
            children=[
                text("1:2", "Title\nLine two", bb=box(116, 216, 288, 40)),
                frame(
                    "1:3",
                    name="Badge",
                    bb=box(116, 268, 80, 24),
                    fills=[solid(0, 0.5, 1), linear()],
                ),
                frame(
                    "1:4",
                    name="Sticky note",
                    type="STICKY",
                    children=[text("1:5", "hidden")],
                ),
                frame(
                    "1:6",
                    name="Icon",
                    type="VECTOR",
                    bb=box(380, 216, 24, 24),
                    layoutPositioning="ABSOLUTE",
                    isMask=True,
                ),
            ],
        ),
    )
