"""MCEdit / WorldEdit "Alpha" schematics.

Blocks are stored as three parallel byte arrays in y, z, x order:
``Blocks`` holds the low 8 bits of each legacy id, ``Data`` the legacy
metadata, and the optional ``AddBlocks`` packs 4 more id bits for two
voxels per byte (high nibble for even indices, low nibble for odd ones).
Legacy ``id:data`` pairs are translated to modern state ids through a
lookup table.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

import numpy as np
from amulet_nbt import ByteArrayTag, CompoundTag, IntTag, ShortTag, StringTag

from ...cli.console import Console
from ...errors import FormatError, LegacyLookupError
from .. import nbt
from ..palette import legacy_key, legacy_lookup
from ..schematic import Schematic
from . import SchematicFormat, register

if TYPE_CHECKING:
    from ..palette import LegacyKey, StateId

MATERIALS = "Alpha"
MAX_SIZE = 0x7FFF  # sizes are stored as signed shorts


@register
class MCEditFormat(SchematicFormat):
    name = "mcedit"

    def __init__(
        self, *, lookup: Mapping[LegacyKey, StateId] | None = None, strict=True
    ):
        self._lookup = legacy_lookup() if lookup is None else lookup
        self._reverse: dict[StateId, tuple[int, int]] | None = None
        self.strict = strict
        # voxels replaced by air in the last non-strict decode
        self.skipped = 0

    def decode(
        self, document: CompoundTag, schematic: Schematic | None = None
    ) -> Schematic:
        if not nbt.has(document, "Blocks"):
            raise FormatError("missing Blocks")

        width = nbt.get_short(document, "Width")
        height = nbt.get_short(document, "Height")
        length = nbt.get_short(document, "Length")
        if min(width, height, length) < 0:
            raise FormatError(f"negative size: {(width, height, length)}")

        offset = (
            nbt.get_int(document, "WEOffsetX"),
            nbt.get_int(document, "WEOffsetY"),
            nbt.get_int(document, "WEOffsetZ"),
        )

        if (materials := nbt.get_string(document, "Materials")) != MATERIALS:
            raise FormatError(f"unsupported Materials: {materials!r}")

        volume = width * height * length
        blocks = nbt.get_byte_array(document, "Blocks")
        data = nbt.get_byte_array(document, "Data")
        for key, array in (("Blocks", blocks), ("Data", data)):
            if array.size != volume:
                raise FormatError(f"{key} holds {array.size} entries, expected {volume}")

        if nbt.has(document, "AddBlocks"):
            add_blocks = nbt.get_byte_array(document, "AddBlocks")
        else:
            add_blocks = np.zeros(0, dtype=np.int8)

        legacy_ids = unpack_legacy_ids(blocks, add_blocks)
        state_ids = self._resolve(legacy_ids, data.astype(np.uint8))

        if schematic is None:
            schematic = Schematic()
        schematic.reset()
        schematic.set_size(width, height, length)
        schematic.set_offset(*offset)
        schematic._fill(state_ids)
        schematic._set_locked(False)
        return schematic

    def encode(self, schematic: Schematic) -> CompoundTag:
        state_ids = schematic.blocks
        if max(schematic.size, default=0) > MAX_SIZE:
            raise FormatError(f"schematic too large: {schematic.size}")

        legacy_ids, data = self._unresolve(state_ids)
        width, height, length = schematic.size
        offset_x, offset_y, offset_z = schematic.offset

        document = CompoundTag({
            "Width": ShortTag(width),
            "Height": ShortTag(height),
            "Length": ShortTag(length),
            "WEOffsetX": IntTag(offset_x),
            "WEOffsetY": IntTag(offset_y),
            "WEOffsetZ": IntTag(offset_z),
            "Materials": StringTag(MATERIALS),
            "Blocks": ByteArrayTag((legacy_ids & 0xFF).astype(np.uint8).view(np.int8)),
            "Data": ByteArrayTag(data.view(np.int8)),
        })
        if legacy_ids.size and legacy_ids.max() > 0xFF:
            document["AddBlocks"] = ByteArrayTag(pack_add_blocks(legacy_ids))
        return document

    def _resolve(self, legacy_ids: np.ndarray, data: np.ndarray) -> np.ndarray:
        pairs = (legacy_ids.astype(np.uint32) << 8) | data
        unique_pairs, inverse = np.unique(pairs, return_inverse=True)

        resolved = np.zeros(unique_pairs.size, dtype=np.uint16)
        missing: dict[int, LegacyKey] = {}
        for i, pair in enumerate(unique_pairs.tolist()):
            key = legacy_key(pair >> 8, pair & 0xFF)
            try:
                resolved[i] = self._lookup[key]
            except KeyError:
                missing[i] = key

        self.skipped = 0
        if missing:
            count = int(np.isin(inverse, list(missing)).sum())
            if self.strict:
                raise LegacyLookupError(set(missing.values()), count)
            self.skipped = count
            Console.warn(
                "Replaced {count} with air: unknown legacy blocks.",
                count=f"{count} blocks",
            )

        return resolved[inverse]

    def _unresolve(self, state_ids: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        if self._reverse is None:
            self._reverse = {}
            for key, state_id in self._lookup.items():
                legacy_id, legacy_data = key.split(":")
                self._reverse.setdefault(state_id, (int(legacy_id), int(legacy_data)))

        unique_ids, inverse = np.unique(state_ids, return_inverse=True)
        ids = np.zeros(unique_ids.size, dtype=np.uint16)
        data = np.zeros(unique_ids.size, dtype=np.uint8)
        missing: set[str] = set()
        for i, state_id in enumerate(unique_ids.tolist()):
            try:
                ids[i], data[i] = self._reverse[state_id]
            except KeyError:
                missing.add(str(state_id))

        if missing:
            count = int(np.isin(state_ids, [int(s) for s in missing]).sum())
            raise LegacyLookupError(missing, count)

        return ids[inverse], data[inverse]


def unpack_legacy_ids(blocks: np.ndarray, add_blocks: np.ndarray) -> np.ndarray:
    """Combine base ids with their AddBlocks nibble into 12-bit legacy ids.

    Voxels beyond the end of ``add_blocks`` get no extra bits.
    """
    legacy_ids = blocks.astype(np.uint8).astype(np.uint16)
    if not add_blocks.size:
        return legacy_ids

    indices = np.arange(legacy_ids.size)
    halves = indices >> 1
    present = halves < add_blocks.size

    packed = np.zeros(legacy_ids.size, dtype=np.uint16)
    packed[present] = add_blocks.astype(np.uint8)[halves[present]]
    nibbles = np.where(indices % 2 == 0, packed >> 4, packed & 0x0F)
    return legacy_ids | (nibbles.astype(np.uint16) << 8)


def pack_add_blocks(legacy_ids: np.ndarray) -> np.ndarray:
    nibbles = ((legacy_ids >> 8) & 0x0F).astype(np.uint8)
    if nibbles.size % 2:
        nibbles = np.append(nibbles, np.uint8(0))
    return ((nibbles[0::2] << 4) | nibbles[1::2]).astype(np.uint8).view(np.int8)
