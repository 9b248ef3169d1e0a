import pytest
from click import UsageError

from schematic_placer.config import Settings, load_settings
from schematic_placer.core import palette


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "missing.toml")
    assert settings == Settings()
    assert settings.strict
    assert settings.version == (1, 21)
    assert settings.legacy_lookup() is palette.legacy_lookup()


def test_load_file(tmp_path):
    table = tmp_path / "lookup.txt"
    table.write_text("1:0=42\n")
    config = tmp_path / "config.toml"
    config.write_text(
        f'lookup_table = "{table.as_posix()}"\n'
        "strict = false\nworkers = 3\nversion = [1, 20]\n"
    )

    settings = load_settings(config)
    assert settings.lookup_table == table.as_posix()
    assert not settings.strict
    assert settings.workers == 3
    assert settings.version == (1, 20)
    assert dict(settings.legacy_lookup()) == {"1:0": 42}


def test_invalid_file(tmp_path):
    config = tmp_path / "config.toml"
    config.write_text("colour = 'blue'\n")
    with pytest.raises(UsageError):
        load_settings(config)


def test_missing_table(tmp_path):
    settings = Settings(block_states=str(tmp_path / "nope.txt"))
    with pytest.raises(UsageError):
        settings.block_palette()
