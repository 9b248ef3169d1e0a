from __future__ import annotations

import asyncio
from itertools import product
from typing import TYPE_CHECKING, TypeVar

import numpy as np

from ..errors import StateError, WorldError
from .placement import PlacementConfig, Stager
from .region import Region

if TYPE_CHECKING:
    from concurrent.futures import Executor

    from .placement import GenerationUnit, WorldTarget
    from .region import XYZ

B = TypeVar("B")


class Schematic:
    """A rectangular blueprint of block state ids.

    Blocks are stored flat, y-major, then z, then x, which is also the order
    of legacy schematic files. The block buffer is only valid while the
    schematic is unlocked; a fresh or reset schematic is empty and locked.
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.width = self.height = self.length = 0
        self.volume = 0
        self.offset: XYZ = (0, 0, 0)
        self._blocks: np.ndarray | None = None
        self._locked = True

    @property
    def size(self) -> XYZ:
        return self.width, self.height, self.length

    @property
    def is_locked(self) -> bool:
        return self._locked

    def _set_locked(self, locked: bool):
        self._locked = locked

    @property
    def blocks(self) -> np.ndarray:
        if self._locked or self._blocks is None:
            raise StateError("Cannot read blocks of a locked schematic.")
        view = self._blocks.view()
        view.flags.writeable = False
        return view

    def set_size(self, width: int, height: int, length: int):
        """Discards current blocks; lock state is left as is."""
        self.width, self.height, self.length = width, height, length
        self.volume = width * height * length
        self._blocks = np.zeros(self.volume, dtype=np.uint16)

    def set_offset(self, x: int, y: int, z: int):
        self.offset = (x, y, z)

    def index(self, x: int, y: int, z: int) -> int:
        # Bounds are the caller's responsibility; only checked in debug runs.
        assert 0 <= x < self.width and 0 <= y < self.height and 0 <= z < self.length
        return y * self.width * self.length + z * self.width + x

    def get(self, x: int, y: int, z: int) -> int:
        return int(self._blocks[self.index(x, y, z)])  # type: ignore[index]

    def set(self, x: int, y: int, z: int, state_id: int):
        self._blocks[self.index(x, y, z)] = state_id  # type: ignore[index]

    def _fill(self, state_ids: np.ndarray):
        self._blocks[:] = state_ids  # type: ignore[index]

    def _cuboid(self) -> np.ndarray:
        assert self._blocks is not None
        return self._blocks.reshape(self.height, self.length, self.width)

    def region_at(self, origin: XYZ) -> Region:
        """The world region covered when placed at ``origin``."""
        lower = _add(origin, self.offset)
        return Region.from_corners(lower, _add(lower, self.size))

    # Placement -------------------------------------------------------------

    def place(
        self,
        world: WorldTarget[B],
        origin: XYZ,
        flip_x=False,
        flip_y=False,
        flip_z=False,
        *,
        executor: Executor | None = None,
    ) -> asyncio.Future[Region]:
        """Copy the schematic into ``world`` with its offset applied at ``origin``.

        Blocks are resolved on ``executor`` while the destination chunks load;
        the whole batch is written once loading has finished. The returned
        future resolves to the affected region.
        """
        if self._locked:
            raise StateError("Cannot place a locked schematic.")

        loop = asyncio.get_running_loop()
        region = self.region_at(origin)
        config = PlacementConfig(region.lower, flip_x, flip_y, flip_z)

        loading = asyncio.ensure_future(_ensure_loaded(world, region))
        staging = loop.run_in_executor(
            executor, Stager(config, world.state_id_to_block).stage, self._cuboid()
        )
        return asyncio.ensure_future(_apply(world, region, loading, staging))

    def fork(
        self,
        unit: GenerationUnit[B],
        origin: XYZ,
        flip_x=False,
        flip_y=False,
        flip_z=False,
    ) -> Region:
        """Write the schematic straight into a world generation unit."""
        if self._locked:
            raise StateError("Cannot fork a locked schematic.")

        region = self.region_at(origin)
        config = PlacementConfig(region.lower, flip_x, flip_y, flip_z)

        modifier = unit.fork(region.lower, region.upper)
        for (x, y, z), block in Stager(config, unit.state_id_to_block).stage(
            self._cuboid()
        ):
            modifier.set_block(x, y, z, block)
        return region

    # Capture ---------------------------------------------------------------

    def capture(
        self,
        world: WorldTarget,
        region: Region,
        *,
        executor: Executor | None = None,
    ) -> asyncio.Future[None]:
        """Replace the content of this schematic with a region of ``world``.

        The schematic stays locked if any block in the region can't be read.
        """
        self.reset()
        self.set_size(*region.size)
        loop = asyncio.get_running_loop()

        async def run():
            await _ensure_loaded(world, region)
            await loop.run_in_executor(executor, self._read_region, world, region)

        return asyncio.ensure_future(run())

    def _read_region(self, world: WorldTarget, region: Region):
        origin_x, origin_y, origin_z = region.lower
        for x, y, z in product(
            range(self.width), range(self.height), range(self.length)
        ):
            state_id = world.read_block_state_id(
                origin_x + x, origin_y + y, origin_z + z
            )
            if state_id is None:
                return
            self.set(x, y, z, state_id)

        self._set_locked(False)


def _add(a: XYZ, b: XYZ) -> XYZ:
    return a[0] + b[0], a[1] + b[1], a[2] + b[2]


async def _ensure_loaded(world: WorldTarget, region: Region):
    try:
        await world.ensure_region_loaded(region)
    except WorldError:
        raise
    except Exception as e:
        raise WorldError(f"Failed to load region {region}: {e}") from e


def _discard(future: asyncio.Future):
    if not future.cancelled():
        future.exception()


async def _apply(
    world: WorldTarget[B],
    region: Region,
    loading: asyncio.Future[None],
    staging: asyncio.Future[list],
) -> Region:
    try:
        await loading
    except BaseException:
        staging.cancel()
        staging.add_done_callback(_discard)
        raise

    batch = await staging
    try:
        await world.write_blocks(batch)
    except WorldError:
        raise
    except Exception as e:
        raise WorldError(f"Failed to write blocks: {e}") from e
    return region
