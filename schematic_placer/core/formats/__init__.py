from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

from amulet_nbt import CompoundTag, NamedTag
from amulet_nbt import load as load_nbt

from ...errors import FormatError

if TYPE_CHECKING:
    from concurrent.futures import Executor

    from ..schematic import Schematic


class SchematicFormat(ABC):
    """A codec between NBT documents and schematics."""

    name: str

    @abstractmethod
    def decode(
        self, document: CompoundTag, schematic: Schematic | None = None
    ) -> Schematic:
        """Read ``document`` into ``schematic`` (or a new one) and unlock it."""

    @abstractmethod
    def encode(self, schematic: Schematic) -> CompoundTag: ...

    def load(self, path: Path) -> Schematic:
        try:
            document = load_nbt(str(path)).compound
        except Exception as e:
            raise FormatError(f"{path} is not a valid NBT file: {e}") from e
        return self.decode(document)

    def save(self, schematic: Schematic, path: Path) -> None:
        NamedTag(self.encode(schematic), "Schematic").save_to(str(path), compressed=True)

    def save_async(
        self, schematic: Schematic, path: Path, *, executor: Executor | None = None
    ) -> asyncio.Future[None]:
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(executor, self.save, schematic, path)


_FORMATS: dict[str, type[SchematicFormat]] = {}


def register(cls: type[SchematicFormat]) -> type[SchematicFormat]:
    _FORMATS[cls.name] = cls
    return cls


def get_format(name: str, **options: Any) -> SchematicFormat:
    try:
        cls = _FORMATS[name]
    except KeyError:
        raise FormatError(f"Unsupported schematic format: {name}")
    return cls(**options)


def format_names() -> list[str]:
    return list(_FORMATS)


from . import mcedit  # noqa: E402,F401  registers itself
