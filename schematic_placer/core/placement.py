from __future__ import annotations

from dataclasses import dataclass
from itertools import product
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

    import numpy as np

    from .region import XYZ, Region

B = TypeVar("B")

Batch = list[tuple["XYZ", B]]


class WorldTarget(Protocol[B]):
    """What the placement and capture engines need from a world."""

    async def ensure_region_loaded(self, region: Region) -> None: ...

    def read_block_state_id(self, x: int, y: int, z: int) -> int | None: ...

    async def write_blocks(self, batch: Batch[B]) -> None: ...

    def state_id_to_block(self, state_id: int) -> B | None: ...


class BlockSetter(Protocol):
    def set_block(self, x: int, y: int, z: int, block: Any) -> None: ...


class GenerationUnit(Protocol[B]):
    """A writable area of a world that is being generated."""

    def fork(self, lower: XYZ, upper: XYZ) -> BlockSetter: ...

    def state_id_to_block(self, state_id: int) -> B | None: ...


@dataclass(frozen=True)
class PlacementConfig:
    lower: XYZ
    flip_x: bool = False
    flip_y: bool = False
    flip_z: bool = False


class Stager(Generic[B]):
    def __init__(self, config: PlacementConfig, to_block: Callable[[int], B | None]):
        self.origin_x, self.origin_y, self.origin_z = config.lower
        self.flip_x = config.flip_x
        self.flip_y = config.flip_y
        self.flip_z = config.flip_z
        self._to_block = to_block
        self._blocks: dict[int, B | None] = {}

    def stage(self, blocks: np.ndarray) -> Batch[B]:
        """Resolve every voxel of a (height, length, width) array into world writes.

        Voxels whose state id has no placeable block are left out.
        """
        height, length, width = blocks.shape
        if self.flip_x:
            blocks = blocks[:, :, ::-1]
        if self.flip_y:
            blocks = blocks[::-1, :, :]
        if self.flip_z:
            blocks = blocks[:, ::-1, :]

        batch: Batch[B] = []
        for x, y, z in product(range(width), range(height), range(length)):
            block = self._block(int(blocks[y, z, x]))
            if block is not None:
                batch.append((
                    (self.origin_x + x, self.origin_y + y, self.origin_z + z),
                    block,
                ))
        return batch

    def _block(self, state_id: int) -> B | None:
        try:
            return self._blocks[state_id]
        except KeyError:
            block = self._blocks[state_id] = self._to_block(state_id)
            return block
