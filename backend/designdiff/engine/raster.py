"""Immutable raster buffers and the diff mask exchanged between stages."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from designdiff.engine.errors import CorruptImageData

_CHANNELS = 4


def _freeze(array: NDArray) -> NDArray:
    frozen = np.array(array, copy=True)
    frozen.flags.writeable = False
    return frozen


@dataclass(frozen=True, eq=False)
class RasterImage:
    """RGBA image, row-major, stored as a read-only (height, width, 4) uint8 array."""

    width: int
    height: int
    pixels: NDArray[np.uint8]

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes | bytearray | memoryview) -> RasterImage:
        if width <= 0 or height <= 0:
            raise CorruptImageData(f"Image dimensions must be positive, got {width}x{height}")
        expected = width * height * _CHANNELS
        if len(data) != expected:
            raise CorruptImageData(
                f"RGBA buffer for {width}x{height} needs {expected} bytes, got {len(data)}"
            )
        array = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, _CHANNELS)
        return cls(width, height, _freeze(array))

    @classmethod
    def from_array(cls, array: NDArray) -> RasterImage:
        arr = np.asarray(array)
        if arr.ndim != 3 or arr.shape[2] != _CHANNELS:
            raise CorruptImageData(f"Expected an (height, width, 4) array, got shape {arr.shape}")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise CorruptImageData("Image has no pixels")
        if arr.dtype != np.uint8:
            if np.issubdtype(arr.dtype, np.integer) and arr.min() >= 0 and arr.max() <= 255:
                arr = arr.astype(np.uint8)
            else:
                raise CorruptImageData(f"Pixel data must be 8-bit unsigned, got {arr.dtype}")
        height, width = arr.shape[:2]
        return cls(width, height, _freeze(arr))

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()


@dataclass(frozen=True, eq=False)
class DiffMask:
    """Boolean (height, width) grid of pixels counted as different."""

    cells: NDArray[np.bool_]

    @property
    def width(self) -> int:
        return int(self.cells.shape[1])

    @property
    def height(self) -> int:
        return int(self.cells.shape[0])

    @property
    def count(self) -> int:
        return int(np.count_nonzero(self.cells))

    @classmethod
    def from_array(cls, cells: NDArray) -> DiffMask:
        return cls(_freeze(np.asarray(cells, dtype=bool)))
