"""Shared test fixtures."""

from __future__ import annotations

import base64

import numpy as np
import pytest

from designdiff.engine.raster import RasterImage

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
GREY = (128, 128, 128, 255)

# Design node sitting exactly on the 20x20 block at (10, 10)
BLOCK_NODE = {
    "id": "1:2",
    "name": "Hero Badge",
    "type": "RECTANGLE",
    "boundingBox": {"x": 10, "y": 10, "width": 20, "height": 20},
}

DESIGN_DOC = {
    "nodes": [
        {
            "id": "1:1",
            "name": "Page",
            "type": "FRAME",
            "boundingBox": {"x": 0, "y": 0, "width": 100, "height": 100},
            "children": [
                BLOCK_NODE,
                {
                    "id": "1:3",
                    "name": "Footer Icon",
                    "type": "IMAGE-SVG",
                    "boundingBox": {"x": 70, "y": 70, "width": 20, "height": 20},
                },
                {"id": "1:4", "name": "Layout Group", "type": "GROUP"},
            ],
        }
    ]
}


def solid(width: int, height: int, color: tuple[int, int, int, int] = WHITE) -> RasterImage:
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[...] = color
    return RasterImage.from_array(pixels)


def with_block(
    image: RasterImage,
    x: int,
    y: int,
    width: int,
    height: int,
    color: tuple[int, int, int, int] = RED,
) -> RasterImage:
    pixels = image.pixels.copy()
    pixels[y : y + height, x : x + width] = color
    return RasterImage.from_array(pixels)


def payload(image: RasterImage) -> dict:
    return {
        "width": image.width,
        "height": image.height,
        "rgba": base64.b64encode(image.to_bytes()).decode("ascii"),
    }


@pytest.fixture
def white_100() -> RasterImage:
    return solid(100, 100)


@pytest.fixture
def red_block_100(white_100: RasterImage) -> RasterImage:
    """White 100x100 with a solid 20x20 red block at (10, 10)."""
    return with_block(white_100, 10, 10, 20, 20)
