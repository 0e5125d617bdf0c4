"""YIQ colour-difference math, vectorised over RGBA arrays.

The YIQ delta is the perceptual metric used by the pixelmatch family of
screenshot differs (Kotsarenko & Ramos, "Measuring perceived color difference
using YIQ NTSC transmission color space in mobile applications", 2010).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

# Largest possible YIQ delta between two 8-bit colours (black vs. white in
# the weighted metric below). A threshold t in [0, 1] maps to t² of this.
MAX_YIQ_DELTA = 35215.0

# Channel weights of the YIQ delta.
_Y_WEIGHT = 0.5053
_I_WEIGHT = 0.299
_Q_WEIGHT = 0.1957


def blend_white(rgba: NDArray[np.uint8]) -> NDArray[np.float64]:
    """Composite RGBA over a white background, returning float RGB."""
    rgb = rgba[..., :3].astype(np.float64)
    alpha = rgba[..., 3:4].astype(np.float64) / 255.0
    return 255.0 + (rgb - 255.0) * alpha


def rgb_to_y(rgb: NDArray[np.float64]) -> NDArray[np.float64]:
    return rgb[..., 0] * 0.29889531 + rgb[..., 1] * 0.58662247 + rgb[..., 2] * 0.11448223


def rgb_to_i(rgb: NDArray[np.float64]) -> NDArray[np.float64]:
    return rgb[..., 0] * 0.59597799 - rgb[..., 1] * 0.27417610 - rgb[..., 2] * 0.32180189


def rgb_to_q(rgb: NDArray[np.float64]) -> NDArray[np.float64]:
    return rgb[..., 0] * 0.21147017 - rgb[..., 1] * 0.52261711 + rgb[..., 2] * 0.31114694


def brightness(rgba: NDArray[np.uint8]) -> NDArray[np.float64]:
    """Y (luma) channel after compositing over white."""
    return rgb_to_y(blend_white(rgba))


def yiq_delta(a: NDArray[np.uint8], b: NDArray[np.uint8]) -> NDArray[np.float64]:
    """Unsigned squared YIQ distance per pixel."""
    rgb_a = blend_white(a)
    rgb_b = blend_white(b)
    dy = rgb_to_y(rgb_a) - rgb_to_y(rgb_b)
    di = rgb_to_i(rgb_a) - rgb_to_i(rgb_b)
    dq = rgb_to_q(rgb_a) - rgb_to_q(rgb_b)
    return _Y_WEIGHT * dy * dy + _I_WEIGHT * di * di + _Q_WEIGHT * dq * dq


def rgb_distance(a: NDArray[np.uint8], b: NDArray[np.uint8]) -> NDArray[np.float64]:
    """Plain Euclidean distance over the RGB channels (alpha ignored)."""
    diff = a[..., :3].astype(np.float64) - b[..., :3].astype(np.float64)
    return np.sqrt(np.sum(diff * diff, axis=-1))
