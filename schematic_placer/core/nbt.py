"""Typed, fail-fast field access over amulet_nbt compound tags."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from amulet_nbt import (
    ByteArrayTag,
    ByteTag,
    CompoundTag,
    IntTag,
    ShortTag,
    StringTag,
)

from ..errors import FormatError

if TYPE_CHECKING:
    import numpy as np

T = TypeVar("T")


def has(document: CompoundTag, key: str) -> bool:
    return key in document


def _get(document: CompoundTag, key: str, tag_type: type[T]) -> T:
    tag = document.get(key)
    if not isinstance(tag, tag_type):
        raise FormatError(f"missing or wrong-typed field: {key}")
    return tag


def get_int(document: CompoundTag, key: str) -> int:
    return _get(document, key, IntTag).py_int


def get_short(document: CompoundTag, key: str) -> int:
    return _get(document, key, ShortTag).py_int


def get_byte(document: CompoundTag, key: str) -> int:
    return _get(document, key, ByteTag).py_int


def get_bool(document: CompoundTag, key: str) -> bool:
    # NBT has no boolean tag; booleans are stored as bytes
    return bool(get_byte(document, key))


def get_string(document: CompoundTag, key: str) -> str:
    return _get(document, key, StringTag).py_str


def get_compound(document: CompoundTag, key: str) -> CompoundTag:
    return _get(document, key, CompoundTag)


def get_byte_array(document: CompoundTag, key: str) -> np.ndarray:
    return _get(document, key, ByteArrayTag).np_array.copy()
