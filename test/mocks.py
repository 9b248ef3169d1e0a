from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schematic_placer.core.region import XYZ, Region

UNPLACEABLE = 999


def to_block(state_id: int) -> str | None:
    if state_id == UNPLACEABLE:
        return None
    return f"block_{state_id}"


class MockWorld:
    def __init__(
        self,
        blocks: dict[XYZ, int] | None = None,
        *,
        fail_load=False,
        fail_write=False,
    ):
        self.blocks = dict(blocks or {})
        self.fail_load = fail_load
        self.fail_write = fail_write
        self.loaded: list[Region] = []
        self.batches: list[list] = []

    async def ensure_region_loaded(self, region: Region):
        if self.fail_load:
            raise RuntimeError("chunk is corrupted")
        self.loaded.append(region)

    def read_block_state_id(self, x: int, y: int, z: int) -> int | None:
        return self.blocks.get((x, y, z))

    async def write_blocks(self, batch):
        if self.fail_write:
            raise RuntimeError("disk full")
        self.batches.append(list(batch))

    def state_id_to_block(self, state_id: int) -> str | None:
        return to_block(state_id)


class MockModifier:
    def __init__(self):
        self.writes = []

    def set_block(self, x: int, y: int, z: int, block):
        self.writes.append(((x, y, z), block))


class MockUnit:
    def __init__(self):
        self.forks: list[tuple[XYZ, XYZ]] = []
        self.modifier = MockModifier()

    def fork(self, lower: XYZ, upper: XYZ):
        self.forks.append((lower, upper))
        return self.modifier

    def state_id_to_block(self, state_id: int) -> str | None:
        return to_block(state_id)
