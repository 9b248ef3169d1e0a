from __future__ import annotations

from functools import cache
from pathlib import Path

from click import UsageError
from msgspec import DecodeError, Struct, ValidationError, toml
from platformdirs import user_config_dir

from . import APP_NAME
from .core import palette

CONFIG_FILE = Path(user_config_dir(APP_NAME)) / "config.toml"


class Settings(Struct, forbid_unknown_fields=True):
    lookup_table: str | None = None
    block_states: str | None = None
    strict: bool = True
    workers: int | None = None
    version: tuple[int, int] = (1, 21)

    def legacy_lookup(self):
        if self.lookup_table is None:
            return palette.legacy_lookup()
        return _read_table(Path(self.lookup_table), palette.load_legacy_lookup)

    def block_palette(self):
        if self.block_states is None:
            return palette.block_states()
        return _read_table(Path(self.block_states), palette.load_block_states)


@cache
def load_settings(path: Path = CONFIG_FILE) -> Settings:
    try:
        return toml.decode(path.read_bytes(), type=Settings)
    except FileNotFoundError:
        return Settings()
    except (DecodeError, ValidationError) as e:
        raise UsageError(f"Invalid config file {path}: {e}")


def _read_table(path: Path, reader):
    try:
        return reader(path)
    except FileNotFoundError:
        raise UsageError(f"Lookup table '{path}' does not exist.")
    except ValueError as e:
        raise UsageError(f"Invalid lookup table '{path}': {e}")
