from __future__ import annotations

from collections.abc import Iterator
from itertools import product
from typing import NamedTuple

XYZ = tuple[int, int, int]
XZ = tuple[int, int]

CHUNK_SIZE = 16


class Region(NamedTuple):
    """Inclusive world-space box covered by a placed or captured schematic."""

    min_x: int
    max_x: int
    min_y: int
    max_y: int
    min_z: int
    max_z: int

    @classmethod
    def from_corners(cls, lower: XYZ, upper: XYZ) -> Region:
        """``upper`` is exclusive, i.e. ``lower + size``."""
        (x0, y0, z0), (x1, y1, z1) = lower, upper
        return cls(x0, x1 - 1, y0, y1 - 1, z0, z1 - 1)

    @classmethod
    def from_points(cls, a: XYZ, b: XYZ) -> Region:
        return cls(
            min_x=min(a[0], b[0]),
            max_x=max(a[0], b[0]),
            min_y=min(a[1], b[1]),
            max_y=max(a[1], b[1]),
            min_z=min(a[2], b[2]),
            max_z=max(a[2], b[2]),
        )

    @property
    def lower(self) -> XYZ:
        return self.min_x, self.min_y, self.min_z

    @property
    def upper(self) -> XYZ:
        return self.max_x + 1, self.max_y + 1, self.max_z + 1

    @property
    def size(self) -> XYZ:
        return (
            max(0, self.max_x - self.min_x + 1),
            max(0, self.max_y - self.min_y + 1),
            max(0, self.max_z - self.min_z + 1),
        )

    @property
    def empty(self) -> bool:
        return 0 in self.size

    def chunks(self) -> Iterator[XZ]:
        if self.empty:
            return
        yield from product(
            range(self.min_x // CHUNK_SIZE, self.max_x // CHUNK_SIZE + 1),
            range(self.min_z // CHUNK_SIZE, self.max_z // CHUNK_SIZE + 1),
        )


def to_chunk(x: int, z: int) -> tuple[XZ, XZ]:
    """Split world x/z into chunk coordinates and the offset inside that chunk."""
    cx, offset_x = divmod(x, CHUNK_SIZE)
    cz, offset_z = divmod(z, CHUNK_SIZE)
    return (cx, cz), (offset_x, offset_z)
