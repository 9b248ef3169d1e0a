from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

from click import UsageError
from typer import Context, Option

from .. import __version__
from ..config import Settings, load_settings
from ..core.formats import get_format
from ..core.region import XYZ, Region
from ..core.schematic import Schematic
from ..errors import SchematicError
from .console import Console

if TYPE_CHECKING:
    from ..core.world import World


class Dimension(Enum):
    overworld = "overworld"
    nether = "nether"
    the_end = "the_end"


def _show_version(ctx: Context, value: bool):
    if value:
        print(__version__)
        ctx.exit()


def _settings(
    lookup_table: Path | None, block_states: Path | None, lenient: bool = False
) -> Settings:
    settings = load_settings()
    overrides = {}
    if lookup_table:
        overrides["lookup_table"] = str(lookup_table)
    if block_states:
        overrides["block_states"] = str(block_states)
    if lenient:
        overrides["strict"] = False
    if not overrides:
        return settings

    from msgspec import structs

    return structs.replace(settings, **overrides)


LookupTableOption = Annotated[
    Path | None,
    Option(
        "--lookup-table",
        help="Legacy 'id:data=state id' table",
        show_default="bundled table",
        metavar="file",
        rich_help_panel="Block mapping",
        exists=True,
        dir_okay=False,
    ),
]
BlockStatesOption = Annotated[
    Path | None,
    Option(
        "--block-states",
        help="'state id=block state' palette",
        show_default="bundled palette",
        metavar="file",
        rich_help_panel="Block mapping",
        exists=True,
        dir_okay=False,
    ),
]
DimensionOption = Annotated[
    Dimension,
    Option(
        "--dim",
        help="Dimension of the world to work in",
        rich_help_panel="Positioning",
        case_sensitive=False,
    ),
]
VersionOption = Annotated[
    bool,
    Option("--version", is_eager=True, hidden=True, callback=_show_version),
]


def place(
    schematic_path: Annotated[
        Path,
        Option(
            "--in",
            "-i",
            help="MCEdit schematic to place",
            show_default=False,
            metavar="file",
            rich_help_panel="Input & output",
            exists=True,
            file_okay=True,
            dir_okay=False,
        ),
    ],
    world_path: Annotated[
        Path,
        Option(
            "--out",
            "-o",
            help="Minecraft Java world save",
            show_default=False,
            metavar="directory",
            rich_help_panel="Input & output",
            exists=True,
            file_okay=False,
            dir_okay=True,
            writable=True,
            resolve_path=True,
        ),
    ],
    coordinates: Annotated[
        XYZ | None,
        Option(
            "--at",
            help="Coordinates to place the schematic at, before its own offset",
            show_default="player's coordinates",
            rich_help_panel="Positioning",
            metavar="<X Y Z>",
        ),
    ] = None,
    dimension: DimensionOption = Dimension.overworld,
    flip_x: Annotated[
        bool, Option("--flip-x", help="Mirror along X", rich_help_panel="Positioning")
    ] = False,
    flip_y: Annotated[
        bool, Option("--flip-y", help="Mirror along Y", rich_help_panel="Positioning")
    ] = False,
    flip_z: Annotated[
        bool, Option("--flip-z", help="Mirror along Z", rich_help_panel="Positioning")
    ] = False,
    lenient: Annotated[
        bool,
        Option(
            "--lenient",
            help="Replace unknown legacy blocks with air instead of failing",
            rich_help_panel="Block mapping",
        ),
    ] = False,
    lookup_table: LookupTableOption = None,
    block_states: BlockStatesOption = None,
    _version: VersionOption = False,
):
    """Place an MCEdit schematic into a world."""

    from ..core.session import WorldSession

    settings = _settings(lookup_table, block_states, lenient)
    codec = get_format(
        "mcedit", lookup=settings.legacy_lookup(), strict=settings.strict
    )
    try:
        schematic = Console.status(
            "Reading schematic", lambda: codec.load(schematic_path)
        )
    except SchematicError as e:
        raise UsageError(str(e))

    session = WorldSession(
        world_path,
        dimension=dimension.value,
        version=settings.version,
        block_states=settings.block_palette(),
    )
    try:
        with session:
            world = session.load_world()
            origin = coordinates or world.player_coordinates
            flips = (flip_x, flip_y, flip_z)
            region = Console.status(
                "Placing",
                lambda: asyncio.run(_place(schematic, world, origin, flips, settings)),
            )
    except SchematicError as e:
        raise UsageError(str(e))

    Console.success(
        "Placed {size} schematic from {lower} to {upper}.",
        size="x".join(map(str, schematic.size)),
        lower=region.lower,
        upper=(region.max_x, region.max_y, region.max_z),
        important=True,
    )


async def _place(
    schematic: Schematic,
    world: World,
    origin: XYZ,
    flips: tuple[bool, bool, bool],
    settings: Settings,
) -> Region:
    world.validate_bounds(schematic.region_at(origin))

    with ThreadPoolExecutor(max_workers=settings.workers) as executor:
        return await schematic.place(world, origin, *flips, executor=executor)


def capture(
    world_path: Annotated[
        Path,
        Option(
            "--from",
            "-f",
            help="Minecraft Java world save",
            show_default=False,
            metavar="directory",
            rich_help_panel="Input & output",
            exists=True,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ],
    output_path: Annotated[
        Path,
        Option(
            "--out",
            "-o",
            help="Schematic file to write",
            show_default=False,
            metavar="file",
            rich_help_panel="Input & output",
            dir_okay=False,
        ),
    ],
    start: Annotated[
        XYZ,
        Option(
            "--min",
            help="One corner of the region",
            show_default=False,
            rich_help_panel="Positioning",
            metavar="<X Y Z>",
        ),
    ],
    end: Annotated[
        XYZ,
        Option(
            "--max",
            help="Opposite corner of the region",
            show_default=False,
            rich_help_panel="Positioning",
            metavar="<X Y Z>",
        ),
    ],
    dimension: DimensionOption = Dimension.overworld,
    lookup_table: LookupTableOption = None,
    block_states: BlockStatesOption = None,
    _version: VersionOption = False,
):
    """Capture a region of a world into an MCEdit schematic."""

    from ..core.session import WorldSession

    settings = _settings(lookup_table, block_states)
    codec = get_format("mcedit", lookup=settings.legacy_lookup())
    region = Region.from_points(start, end)
    schematic = Schematic()

    session = WorldSession(
        world_path,
        readonly=True,
        dimension=dimension.value,
        version=settings.version,
        block_states=settings.block_palette(),
    )
    try:
        with session:
            world = session.load_world()
            Console.status(
                "Capturing",
                lambda: asyncio.run(_capture(schematic, world, region, settings)),
            )
        if schematic.is_locked:
            raise UsageError("Region contains blocks missing from the block palette.")
        codec.save(schematic, output_path)
    except SchematicError as e:
        raise UsageError(str(e))

    Console.success(
        "Captured {size} blocks into {path}.",
        size="x".join(map(str, schematic.size)),
        path=output_path,
    )


async def _capture(
    schematic: Schematic, world: World, region: Region, settings: Settings
):
    with ThreadPoolExecutor(max_workers=settings.workers) as executor:
        await schematic.capture(world, region, executor=executor)
