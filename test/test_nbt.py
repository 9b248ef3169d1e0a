import pytest
from amulet_nbt import (
    ByteArrayTag,
    ByteTag,
    CompoundTag,
    IntTag,
    ShortTag,
    StringTag,
)

from schematic_placer.core import nbt
from schematic_placer.errors import FormatError


@pytest.fixture
def document():
    return CompoundTag({
        "int": IntTag(-70000),
        "short": ShortTag(300),
        "byte": ByteTag(-3),
        "flag": ByteTag(1),
        "name": StringTag("Alpha"),
        "nested": CompoundTag({"inner": IntTag(1)}),
        "bytes": ByteArrayTag([1, 2, 3]),
    })


def test_typed_getters(document):
    assert nbt.get_int(document, "int") == -70000
    assert nbt.get_short(document, "short") == 300
    assert nbt.get_byte(document, "byte") == -3
    assert nbt.get_bool(document, "flag") is True
    assert nbt.get_string(document, "name") == "Alpha"
    assert nbt.get_int(nbt.get_compound(document, "nested"), "inner") == 1
    assert nbt.get_byte_array(document, "bytes").tolist() == [1, 2, 3]


def test_has(document):
    assert nbt.has(document, "bytes")
    assert not nbt.has(document, "Blocks")


def test_missing_field(document):
    with pytest.raises(FormatError, match="missing or wrong-typed field: Width"):
        nbt.get_short(document, "Width")


@pytest.mark.parametrize(
    "getter, key",
    [
        (nbt.get_short, "int"),
        (nbt.get_int, "short"),
        (nbt.get_string, "byte"),
        (nbt.get_byte_array, "name"),
        (nbt.get_compound, "bytes"),
    ],
)
def test_wrong_type(document, getter, key):
    with pytest.raises(FormatError, match=key):
        getter(document, key)


def test_byte_array_is_a_copy(document):
    array = nbt.get_byte_array(document, "bytes")
    array[0] = 99
    assert nbt.get_byte_array(document, "bytes").tolist() == [1, 2, 3]
