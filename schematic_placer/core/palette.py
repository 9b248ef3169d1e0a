from __future__ import annotations

from collections.abc import Mapping
from importlib.resources import files
from pathlib import Path
from threading import Lock
from types import MappingProxyType

LegacyKey = str  # f"{legacy_id}:{legacy_data}"
StateId = int  # 16-bit modern block state identifier
BlockState = str  # "minecraft:grass_block[snowy=false]"

_DATA = files(__package__.rpartition(".")[0]) / "data"

_lock = Lock()
_legacy_lookup: Mapping[LegacyKey, StateId] | None = None
_block_states: Mapping[StateId, BlockState] | None = None


def legacy_key(legacy_id: int, legacy_data: int) -> LegacyKey:
    return f"{legacy_id}:{legacy_data}"


def legacy_lookup() -> Mapping[LegacyKey, StateId]:
    """The bundled ``"id:data" -> state id`` table, parsed on first use."""
    global _legacy_lookup
    with _lock:
        if _legacy_lookup is None:
            text = _DATA.joinpath("legacy_lookup.txt").read_text()
            _legacy_lookup = MappingProxyType(parse_legacy_lookup(text))
        return _legacy_lookup


def block_states() -> Mapping[StateId, BlockState]:
    """The bundled ``state id -> block state`` palette, parsed on first use."""
    global _block_states
    with _lock:
        if _block_states is None:
            text = _DATA.joinpath("block_states.txt").read_text()
            _block_states = MappingProxyType(parse_block_states(text))
        return _block_states


def load_legacy_lookup(path: Path) -> Mapping[LegacyKey, StateId]:
    return MappingProxyType(parse_legacy_lookup(path.read_text()))


def load_block_states(path: Path) -> Mapping[StateId, BlockState]:
    return MappingProxyType(parse_block_states(path.read_text()))


def parse_legacy_lookup(text: str) -> dict[LegacyKey, StateId]:
    return {key: _state_id(value) for key, value in _entries(text)}


def parse_block_states(text: str) -> dict[StateId, BlockState]:
    return {_state_id(key): value for key, value in _entries(text)}


def _entries(text: str):
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, value = line.split("=", 1)
        yield key.strip(), value.strip()


def _state_id(value: str) -> StateId:
    state_id = int(value)
    if not 0 <= state_id <= 0xFFFF:
        raise ValueError(f"State id out of range: {value}")
    return state_id
