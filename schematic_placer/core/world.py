from __future__ import annotations

import asyncio
import math
from collections import deque
from collections.abc import Iterable, Mapping
from functools import cache, cached_property
from itertools import chain
from pathlib import Path
from typing import TYPE_CHECKING, cast

from amulet import StringTag, load_format
from amulet.api import Block
from amulet.api.errors import LoaderNoneMatched
from amulet.api.level import World as BaseWorld
from amulet.level.formats.anvil_world.format import AnvilFormat

from ..cli.console import Console
from ..errors import ChunkLoadError, WorldError
from . import palette
from .region import Region, to_chunk

if TYPE_CHECKING:
    from amulet.api.chunk import Chunk

    from .palette import BlockState, StateId
    from .placement import Batch
    from .region import XYZ, XZ

    BlockKey = tuple[str, tuple[tuple[str, str], ...]]

JAVA_VERSION = (1, 21)


class World(BaseWorld):
    """An amulet Java world that schematics can be placed into and captured from."""

    @classmethod
    def load(
        cls,
        world_path: str | Path,
        *,
        dimension: str = "overworld",
        version: tuple[int, int] = JAVA_VERSION,
        block_states: Mapping[StateId, BlockState] | None = None,
    ) -> World:
        world_path = str(world_path)
        try:
            format_wrapper = load_format(world_path)
        except LoaderNoneMatched:
            raise WorldError(
                "Unrecognized world format. Are you sure that's a valid Minecraft save?"
            )
        if not isinstance(format_wrapper, AnvilFormat):
            raise WorldError("Unsupported world format; expected Java Edition.")

        return cls(
            world_path,
            format_wrapper,
            dimension=dimension,
            version=version,
            block_states=block_states,
        )

    def __init__(
        self,
        directory: str,
        format_wrapper: AnvilFormat,
        *,
        dimension: str = "overworld",
        version: tuple[int, int] = JAVA_VERSION,
        block_states: Mapping[StateId, BlockState] | None = None,
    ):
        super().__init__(directory, format_wrapper)
        self.path = directory
        self.dimension = "minecraft:" + dimension
        self.block_translator = self.translation_manager.get_version(
            "java", version
        ).block
        players = tuple(self.get_player(_id) for _id in self.all_player_ids())
        self.player = players[0] if players else None

        self._palette = palette.block_states() if block_states is None else block_states
        self._state_ids: dict[BlockKey, StateId] = {}
        for state_id, state in self._palette.items():
            self._state_ids.setdefault(_block_key(create_block(state)), state_id)

        self._loaded_chunks: dict[XZ, Chunk] = {}
        self._modified_chunks: set[XZ] = set()
        self._universal_blocks: dict[Block, Block] = {}

    def __hash__(self):
        return 0

    # World target ----------------------------------------------------------

    async def ensure_region_loaded(self, region: Region) -> None:
        missing = [c for c in region.chunks() if c not in self._loaded_chunks]
        if missing:
            await asyncio.to_thread(self._load_chunks, missing)

    def read_block_state_id(self, x: int, y: int, z: int) -> StateId | None:
        chunk, (offset_x, offset_z) = self._chunk_at(x, z)
        block, _, _ = self.block_translator.from_universal(
            chunk.get_block(offset_x, y, offset_z)
        )
        if not isinstance(block, Block):
            return None
        return self._state_ids.get(_block_key(block))

    async def write_blocks(self, batch: Batch[Block]) -> None:
        await asyncio.to_thread(self._write_blocks, batch)

    @cache  # this one is for performance
    def state_id_to_block(self, state_id: StateId) -> Block | None:
        if (state := self._palette.get(state_id)) is None:
            return None
        return create_block(state)

    # -----------------------------------------------------------------------

    def unit(self) -> WorldUnit:
        return WorldUnit(self)

    def validate_bounds(self, region: Region):
        # amulet bounds have an exclusive max, regions an inclusive one
        world_bounds = self.bounds(self.dimension)
        for coord, limit, axis in [
            (region.min_x, world_bounds.min_x, "min_x"),
            (region.max_x, world_bounds.max_x, "max_x"),
            (region.min_y, world_bounds.min_y, "min_y"),
            (region.max_y, world_bounds.max_y, "max_y"),
            (region.min_z, world_bounds.min_z, "min_z"),
            (region.max_z, world_bounds.max_z, "max_z"),
        ]:
            if ("min" in axis and coord >= limit) or ("max" in axis and coord < limit):
                continue
            raise WorldError(
                f"Schematic exceeds world boundary at {axis}: {coord} vs {limit=}."
            )

    def _save(self):
        wrapper = cast(AnvilFormat, self.level_wrapper)
        for x, z in self._modified_chunks:
            dimension_chunk = (self.dimension, x, z)
            exhaust(
                wrapper._calculate_height(self, [dimension_chunk]),
                wrapper._calculate_light(self, [dimension_chunk]),
            )
            wrapper.commit_chunk(self._loaded_chunks[(x, z)], self.dimension)

        self.history_manager.mark_saved()
        wrapper.save()

    @cached_property
    def player_coordinates(self) -> XYZ:
        if self.player:
            [x, y, z] = tuple(map(math.floor, self.player.location))
            Console.info("Using player's coordinates: {location}", location=(x, y, z))
            return (x, y, z)

        default = (0, 63, 0)
        Console.info(
            "Unable to read player data; coordinates {location} is used by default.",
            location=default,
        )
        return default

    def _load_chunks(self, chunks: list[XZ]):
        for chunk_coords in chunks:
            if chunk_coords in self._loaded_chunks:
                continue
            try:
                chunk = self.get_chunk(*chunk_coords, self.dimension)
            except Exception:
                raise ChunkLoadError(chunk_coords)
            self._loaded_chunks[chunk_coords] = chunk

    def _chunk_at(self, x: int, z: int) -> tuple[Chunk, XZ]:
        chunk_coords, offset = to_chunk(x, z)
        if chunk_coords not in self._loaded_chunks:
            self._load_chunks([chunk_coords])
        return self._loaded_chunks[chunk_coords], offset

    def _write_blocks(self, batch: Batch[Block]):
        for coords, block in batch:
            self._set_block(coords, block)

    def _set_block(self, coords: XYZ, block: Block):
        x, y, z = coords
        chunk, (offset_x, offset_z) = self._chunk_at(x, z)
        chunk.set_block(offset_x, y, offset_z, self._translate_block(block))
        if coords in chunk.block_entities:
            del chunk.block_entities[coords]
        chunk.changed = True
        self._modified_chunks.add(to_chunk(x, z)[0])

    def _translate_block(self, block: Block) -> Block:
        try:
            return self._universal_blocks[block]
        except KeyError:
            universal_block, _, _ = self.block_translator.to_universal(block)
            self._universal_blocks[block] = universal_block
            return universal_block


class WorldUnit:
    """Synchronous generation target that writes straight into loaded chunks."""

    def __init__(self, world: World):
        self._world = world

    def fork(self, lower: XYZ, upper: XYZ) -> UnitModifier:
        region = Region.from_corners(lower, upper)
        self._world._load_chunks(list(region.chunks()))
        return UnitModifier(self._world, region)

    def state_id_to_block(self, state_id: StateId) -> Block | None:
        return self._world.state_id_to_block(state_id)


class UnitModifier:
    def __init__(self, world: World, region: Region):
        self._world = world
        self.region = region

    def set_block(self, x: int, y: int, z: int, block: Block):
        r = self.region
        if not (
            r.min_x <= x <= r.max_x
            and r.min_y <= y <= r.max_y
            and r.min_z <= z <= r.max_z
        ):
            raise WorldError(f"{(x, y, z)} is outside of the forked region {r}")
        self._world._set_block((x, y, z), block)


def create_block(state: BlockState) -> Block:
    namespace, name, properties = parse_block(state)
    return Block(namespace, name, properties)


def parse_block(block: BlockState) -> tuple[str, str, dict[str, StringTag]]:
    if "[" in block:
        name, props_str = block.split("[", 1)
    else:
        name, props_str = block, ""

    namespace, _, name = name.rpartition(":")
    properties = {
        key: StringTag(value)
        for prop in props_str.rstrip("]").split(",")
        if prop
        for key, value in [prop.split("=", 1)]
    }
    return namespace or "minecraft", name, properties


def _block_key(block: Block) -> BlockKey:
    properties = sorted((k, str(v.py_data)) for k, v in block.properties.items())
    return block.namespaced_name, tuple(properties)


def exhaust(*iterables: Iterable) -> None:
    deque(chain(*iterables), maxlen=0)
