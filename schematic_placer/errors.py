from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .core.region import XZ


class SchematicError(Exception): ...


class FormatError(SchematicError):
    """The input document is malformed, incomplete or of an unsupported dialect."""


class StateError(SchematicError):
    """The schematic is in the wrong lock state for the requested operation."""


class LegacyLookupError(SchematicError, LookupError):
    def __init__(self, keys: set[str], count: int):
        self.keys = keys
        self.count = count
        sample = ", ".join(sorted(keys)[:5])
        super().__init__(
            f"{count} voxels use legacy blocks missing from the lookup table: {sample}"
        )


class WorldError(SchematicError):
    """Raised by the world collaborator; delivered through the pending future."""


class ChunkLoadError(WorldError):
    def __init__(self, chunk_coords: XZ):
        cx, cz = chunk_coords
        self.coordinates = (cx << 4, cz << 4)
        super().__init__(f"Failed to load chunk at {self.coordinates}")
