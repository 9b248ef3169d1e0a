from __future__ import annotations

import pytest
from amulet_nbt import ByteArrayTag, CompoundTag, IntTag, ShortTag, StringTag
from mocks import MockWorld
from typer.testing import CliRunner

from schematic_placer.config import Settings
from schematic_placer.core.formats import get_format
from schematic_placer.main import build_app


class CliWorld(MockWorld):
    player_coordinates = (0, 63, 0)

    def validate_bounds(self, region):
        self.validated = region


class MockSession:
    world = CliWorld()

    def __init__(self, path, **kwargs):
        self.path = path
        self.options = kwargs

    def load_world(self):
        return self.world

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass


@pytest.fixture(autouse=True)
def mock_session(monkeypatch):
    import schematic_placer.cli.commands
    import schematic_placer.core.session

    MockSession.world = CliWorld()
    monkeypatch.setattr(schematic_placer.core.session, "WorldSession", MockSession)
    monkeypatch.setattr(
        schematic_placer.cli.commands, "load_settings", lambda: Settings()
    )


@pytest.fixture
def world_dir(tmp_path):
    path = tmp_path / "world"
    path.mkdir()
    return path


@pytest.fixture
def schematic_file(tmp_path):
    document = CompoundTag({
        "Width": ShortTag(2),
        "Height": ShortTag(1),
        "Length": ShortTag(1),
        "WEOffsetX": IntTag(0),
        "WEOffsetY": IntTag(1),
        "WEOffsetZ": IntTag(0),
        "Materials": StringTag("Alpha"),
        "Blocks": ByteArrayTag([1, 4]),
        "Data": ByteArrayTag([0, 0]),
    })
    codec = get_format("mcedit")
    path = tmp_path / "house.schematic"
    codec.save(codec.decode(document), path)
    return path


def test_place(schematic_file, world_dir):
    result = CliRunner().invoke(
        build_app(),
        ["place", "--in", str(schematic_file), "--out", str(world_dir)]
        + ["--at", "10", "20", "30", "--flip-x"],
    )
    assert result.exit_code == 0, result.output

    world = MockSession.world
    assert world.validated.lower == (10, 21, 30)
    assert world.batches == [[((10, 21, 30), "block_14"), ((11, 21, 30), "block_1")]]


def test_place_defaults_to_player_coordinates(schematic_file, world_dir):
    result = CliRunner().invoke(
        build_app(), ["place", "--in", str(schematic_file), "--out", str(world_dir)]
    )
    assert result.exit_code == 0, result.output
    assert MockSession.world.validated.lower == (0, 64, 0)


def test_place_invalid_schematic(tmp_path, world_dir):
    path = tmp_path / "broken.schematic"
    path.write_bytes(b"\x00\x01")
    result = CliRunner().invoke(
        build_app(), ["place", "--in", str(path), "--out", str(world_dir)]
    )
    assert result.exit_code != 0
    assert MockSession.world.batches == []


def test_capture(world_dir, tmp_path):
    MockSession.world = CliWorld({(5, 60, 5): 1, (5, 61, 5): 14})
    output = tmp_path / "captured.schematic"
    result = CliRunner().invoke(
        build_app(),
        ["capture", "--from", str(world_dir), "--out", str(output)]
        + ["--min", "5", "61", "5", "--max", "5", "60", "5"],
    )
    assert result.exit_code == 0, result.output

    schematic = get_format("mcedit").load(output)
    assert schematic.size == (1, 2, 1)
    assert schematic.blocks.tolist() == [1, 14]


def test_capture_unknown_blocks(world_dir, tmp_path):
    output = tmp_path / "captured.schematic"
    result = CliRunner().invoke(
        build_app(),
        ["capture", "--from", str(world_dir), "--out", str(output)]
        + ["--min", "0", "0", "0", "--max", "1", "1", "1"],
    )
    assert result.exit_code != 0
    assert not output.exists()
