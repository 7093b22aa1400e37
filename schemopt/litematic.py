"""Read and write Litematica ``.litematic`` schematics.

Layout notes:
- Gzipped NBT; regions live under ``Regions/<name>``.
- ``Position`` is the region anchor and ``Size`` may be negative on any axis,
  in which case the box extends from the anchor towards smaller coordinates.
- ``BlockStates`` is a tightly packed bit array (entries may straddle two
  longs), ``bits = max(2, bit_length(len(palette) - 1))``, index order
  x fastest, then z, then y, relative to the region's minimum corner.
- Tile entity ``x/y/z`` are relative to the region's minimum corner too.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .blocks import AIR_STATE, BlockState, is_air
from .errors import SchematicError
from .grid import Coord, GridView, Region
from .nbt import (
    TAG_COMPOUND,
    Long,
    LongArray,
    NBTError,
    NbtCompound,
    NbtList,
    read_nbt,
    write_nbt,
)

LOG = logging.getLogger(__name__)

LITEMATIC_VERSION = 6
LITEMATIC_SUBVERSION = 1
DATA_VERSION_1_21_1 = 3955

_MASK64 = (1 << 64) - 1


@dataclass
class Schematic:
    name: str
    regions: List[Region]
    author: str = ""
    description: str = ""
    root: NbtCompound = field(default_factory=NbtCompound, repr=False)

    def grid(self) -> GridView:
        return GridView(self.regions)


def bits_for_palette(n: int) -> int:
    return max(2, (n - 1).bit_length())


def unpack_block_states(longs: Sequence[int], bits: int, count: int) -> List[int]:
    needed = (count * bits + 63) // 64
    if len(longs) < needed:
        raise SchematicError(f"BlockStates too short: {len(longs)} longs for {count} entries of {bits} bits")
    u = [v & _MASK64 for v in longs]
    mask = (1 << bits) - 1
    out = [0] * count
    for i in range(count):
        start = i * bits
        li = start >> 6
        off = start & 63
        v = u[li] >> off
        if off + bits > 64:
            v |= u[li + 1] << (64 - off)
        out[i] = v & mask
    return out


def pack_block_states(values: Sequence[int], bits: int) -> LongArray:
    out = [0] * ((len(values) * bits + 63) // 64)
    for i, v in enumerate(values):
        start = i * bits
        li = start >> 6
        off = start & 63
        out[li] |= (v << off) & _MASK64
        if off + bits > 64:
            out[li + 1] |= v >> (64 - off)
    return LongArray(v - (1 << 64) if v >= (1 << 63) else v for v in out)


def _xyz(tag: Any, context: str) -> Coord:
    if not isinstance(tag, dict) or not all(isinstance(tag.get(k), int) for k in ("x", "y", "z")):
        raise SchematicError(f"{context}: expected compound with integer x/y/z")
    return int(tag["x"]), int(tag["y"]), int(tag["z"])


def _box(position: Coord, size: Coord, context: str) -> Tuple[Coord, Coord]:
    origin = []
    dims = []
    for p, s in zip(position, size):
        if s == 0:
            raise SchematicError(f"{context}: zero-sized region")
        if s < 0:
            origin.append(p + s + 1)
            dims.append(-s)
        else:
            origin.append(p)
            dims.append(s)
    return (origin[0], origin[1], origin[2]), (dims[0], dims[1], dims[2])


def _palette_entry(tag: Any, context: str) -> BlockState:
    if not isinstance(tag, dict) or not isinstance(tag.get("Name"), str):
        raise SchematicError(f"{context}: palette entry without Name")
    props = tag.get("Properties") or {}
    return BlockState.of(tag["Name"], {str(k): str(v) for k, v in props.items()})


def _items(value: Any) -> List[Any]:
    if isinstance(value, NbtList):
        return value.items
    if isinstance(value, list):
        return value
    return []


def region_from_nbt(name: str, tag: NbtCompound) -> Region:
    context = f"region {name!r}"
    position = _xyz(tag.get("Position"), f"{context} Position")
    size = _xyz(tag.get("Size"), f"{context} Size")
    origin, dims = _box(position, size, context)

    palette = [_palette_entry(p, context) for p in _items(tag.get("BlockStatePalette"))]
    if not palette:
        raise SchematicError(f"{context}: empty BlockStatePalette")
    longs = tag.get("BlockStates")
    if not isinstance(longs, list):
        raise SchematicError(f"{context}: missing BlockStates long array")
    volume = dims[0] * dims[1] * dims[2]
    blocks = unpack_block_states(longs, bits_for_palette(len(palette)), volume)
    if max(blocks, default=0) >= len(palette):
        raise SchematicError(f"{context}: BlockStates references a palette index out of range")
    return Region(name=name, origin=origin, size=dims, palette=palette, blocks=blocks, extra={"nbt": tag})


def read_litematic(path: Path) -> Schematic:
    try:
        root = read_nbt(path)
    except NBTError as e:
        raise SchematicError(f"{path}: {e}") from e
    regions_tag = root.get("Regions")
    if not isinstance(regions_tag, dict) or not regions_tag:
        raise SchematicError(f"{path}: no Regions compound")
    meta = root.get("Metadata") or {}
    regions = [region_from_nbt(name, tag) for name, tag in regions_tag.items()]
    LOG.debug("read %s: %d region(s), version=%s", path, len(regions), root.get("Version"))
    return Schematic(
        name=str(meta.get("Name") or path.stem),
        author=str(meta.get("Author") or ""),
        description=str(meta.get("Description") or ""),
        regions=regions,
        root=root,
    )


def _xyz_compound(c: Coord) -> NbtCompound:
    return NbtCompound(x=c[0], y=c[1], z=c[2])


def _compact(region: Region) -> Tuple[List[BlockState], List[int]]:
    """Palette of used states only, air first."""
    used = sorted(set(region.blocks))
    palette = [AIR_STATE]
    remap: Dict[int, int] = {}
    for old in used:
        state = region.palette[old]
        if state == AIR_STATE:
            remap[old] = 0
            continue
        if state not in palette:
            palette.append(state)
        remap[old] = palette.index(state)
    return palette, [remap[b] for b in region.blocks]


def _shallow(tag: NbtCompound, skip: Tuple[str, ...] = ()) -> NbtCompound:
    out = NbtCompound({k: v for k, v in tag.items() if k not in skip})
    out.tags.update({k: t for k, t in tag.tags.items() if k not in skip})
    return out


def _palette_payload(state: BlockState) -> NbtCompound:
    entry = NbtCompound(Name=state.name)
    if state.properties:
        entry["Properties"] = NbtCompound(state.props)
    return entry


def region_to_nbt(region: Region) -> NbtCompound:
    base = region.extra.get("nbt")
    if isinstance(base, NbtCompound):
        tag = _shallow(base, ("BlockStates", "BlockStatePalette"))
    else:
        tag = NbtCompound()
        tag["Position"] = _xyz_compound(region.origin)
        tag["Size"] = _xyz_compound(region.size)
        for key in ("TileEntities", "Entities", "PendingBlockTicks", "PendingFluidTicks"):
            tag[key] = NbtList(TAG_COMPOUND, [])

    palette, blocks = _compact(region)
    tag["BlockStatePalette"] = NbtList(TAG_COMPOUND, [_palette_payload(p) for p in palette])
    tag["BlockStates"] = pack_block_states(blocks, bits_for_palette(len(palette)))

    tiles = tag.get("TileEntities")
    if isinstance(tiles, NbtList):
        ox, oy, oz = region.origin
        kept = []
        for te in tiles.items:
            try:
                x, y, z = _xyz(te, "tile entity")
            except SchematicError:
                kept.append(te)
                continue
            pos = (ox + x, oy + y, oz + z)
            if region.contains(pos) and is_air(region.get(pos)):
                LOG.debug("dropping tile entity %s at %s (block removed)", te.get("id"), pos)
                continue
            kept.append(te)
        tag["TileEntities"] = NbtList(tiles.inner_tag, kept)
    return tag


def _count_non_air(regions: Sequence[Region]) -> int:
    total = 0
    for region in regions:
        air_idx = {i for i, s in enumerate(region.palette) if is_air(s)}
        total += sum(1 for b in region.blocks if b not in air_idx)
    return total


def _now_ms() -> Long:
    return Long(int(time.time() * 1000))


def schematic_to_nbt(schematic: Schematic) -> NbtCompound:
    root = _shallow(schematic.root, ("Regions",))
    root.setdefault("Version", LITEMATIC_VERSION)
    root.setdefault("SubVersion", LITEMATIC_SUBVERSION)
    root.setdefault("MinecraftDataVersion", DATA_VERSION_1_21_1)

    meta = root.get("Metadata")
    if isinstance(meta, NbtCompound):
        meta = _shallow(meta)
    else:
        meta = NbtCompound()
        meta["TimeCreated"] = _now_ms()
    root["Metadata"] = meta
    meta["Name"] = schematic.name
    meta["Author"] = schematic.author
    meta["Description"] = schematic.description
    meta["RegionCount"] = len(schematic.regions)
    meta["TotalVolume"] = sum(r.volume for r in schematic.regions)
    meta["TotalBlocks"] = _count_non_air(schematic.regions)
    meta["TimeModified"] = _now_ms()
    if "EnclosingSize" not in meta:
        meta["EnclosingSize"] = _xyz_compound(_enclosing_size(schematic.regions))

    regions = NbtCompound()
    for region in schematic.regions:
        regions[region.name] = region_to_nbt(region)
    root["Regions"] = regions
    return root


def _enclosing_size(regions: Sequence[Region]) -> Coord:
    lo = [min(r.min_corner[i] for r in regions) for i in range(3)]
    hi = [max(r.max_corner[i] for r in regions) for i in range(3)]
    return hi[0] - lo[0] + 1, hi[1] - lo[1] + 1, hi[2] - lo[2] + 1


def write_litematic(path: Path, schematic: Schematic, *, name: Optional[str] = None) -> None:
    if name is not None:
        schematic.name = name
    write_nbt(path, schematic_to_nbt(schematic))
    LOG.debug("wrote %s (%d region(s))", path, len(schematic.regions))
