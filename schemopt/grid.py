from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .blocks import AIR_STATE, BlockState
from .errors import MarkerNotFound, MultipleMarkers, OutOfBounds, SeedNotFound

Coord = Tuple[int, int, int]

# -x, +x, -y, +y, -z, +z. The order is observable through trace output.
FACE_OFFSETS: Tuple[Coord, ...] = (
    (-1, 0, 0),
    (1, 0, 0),
    (0, -1, 0),
    (0, 1, 0),
    (0, 0, -1),
    (0, 0, 1),
)


def neighbors(coord: Coord) -> List[Coord]:
    x, y, z = coord
    return [(x + dx, y + dy, z + dz) for dx, dy, dz in FACE_OFFSETS]


@dataclass
class Region:
    """One named box of blocks: a palette plus a flat index list (x fastest, then z, then y)."""

    name: str
    origin: Coord
    size: Coord
    palette: List[BlockState]
    blocks: List[int]
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        sx, sy, sz = self.size
        if sx <= 0 or sy <= 0 or sz <= 0:
            raise ValueError(f"region {self.name!r}: dimensions must be positive, got {self.size}")
        if len(self.blocks) != sx * sy * sz:
            raise ValueError(f"region {self.name!r}: expected {sx * sy * sz} blocks, got {len(self.blocks)}")
        self._index_of: Dict[BlockState, int] = {}
        for i, state in enumerate(self.palette):
            self._index_of.setdefault(state, i)

    @classmethod
    def filled(cls, name: str, origin: Coord, size: Coord, block: BlockState = AIR_STATE) -> "Region":
        sx, sy, sz = size
        return cls(name=name, origin=origin, size=size, palette=[block], blocks=[0] * (sx * sy * sz))

    @property
    def volume(self) -> int:
        sx, sy, sz = self.size
        return sx * sy * sz

    @property
    def min_corner(self) -> Coord:
        return self.origin

    @property
    def max_corner(self) -> Coord:
        ox, oy, oz = self.origin
        sx, sy, sz = self.size
        return ox + sx - 1, oy + sy - 1, oz + sz - 1

    def contains(self, coord: Coord) -> bool:
        x, y, z = coord
        ox, oy, oz = self.origin
        sx, sy, sz = self.size
        return 0 <= x - ox < sx and 0 <= y - oy < sy and 0 <= z - oz < sz

    def within(self, coord: Coord, margin: int) -> bool:
        x, y, z = coord
        (x1, y1, z1), (x2, y2, z2) = self.min_corner, self.max_corner
        return x1 - margin <= x <= x2 + margin and y1 - margin <= y <= y2 + margin and z1 - margin <= z <= z2 + margin

    def _idx(self, coord: Coord) -> int:
        x, y, z = coord
        ox, oy, oz = self.origin
        sx, _sy, sz = self.size
        return ((y - oy) * sz + (z - oz)) * sx + (x - ox)

    def get(self, coord: Coord) -> BlockState:
        return self.palette[self.blocks[self._idx(coord)]]

    def set(self, coord: Coord, state: BlockState) -> None:
        if not self.contains(coord):
            raise OutOfBounds(f"{coord} is outside region {self.name!r}")
        idx = self._index_of.get(state)
        if idx is None:
            idx = len(self.palette)
            self.palette.append(state)
            self._index_of[state] = idx
        self.blocks[self._idx(coord)] = idx

    def coords(self) -> Iterator[Coord]:
        ox, oy, oz = self.origin
        sx, sy, sz = self.size
        for y in range(oy, oy + sy):
            for z in range(oz, oz + sz):
                for x in range(ox, ox + sx):
                    yield x, y, z

    def cells(self) -> Iterator[Tuple[Coord, BlockState]]:
        palette = self.palette
        for coord, pi in zip(self.coords(), self.blocks):
            yield coord, palette[pi]


class GridView:
    """Absolute-coordinate view over one or more regions.

    Overlapping regions resolve last-region-wins: the region later in the list
    owns the cell, and the earlier region's copy is never read or written.
    """

    def __init__(self, regions: Sequence[Region]) -> None:
        if not regions:
            raise ValueError("a grid needs at least one region")
        self.regions: List[Region] = list(regions)
        self._lookup = list(reversed(self.regions))

    def owner(self, coord: Coord) -> Optional[Region]:
        for region in self._lookup:
            if region.contains(coord):
                return region
        return None

    def contains(self, coord: Coord) -> bool:
        return self.owner(coord) is not None

    def within(self, coord: Coord, margin: int) -> bool:
        return any(region.within(coord, margin) for region in self.regions)

    def get(self, coord: Coord) -> Optional[BlockState]:
        region = self.owner(coord)
        if region is None:
            return None
        return region.get(coord)

    def set(self, coord: Coord, state: BlockState) -> None:
        region = self.owner(coord)
        if region is None:
            raise OutOfBounds(f"{coord} is outside every region")
        region.set(coord, state)

    def neighbors(self, coord: Coord) -> List[Coord]:
        return neighbors(coord)

    def cells(self) -> Iterator[Tuple[Coord, BlockState]]:
        """Yield every owned cell, region by region, in y/z/x scan order."""
        for region in self.regions:
            for coord, state in region.cells():
                if self.owner(coord) is region:
                    yield coord, state

    @property
    def volume(self) -> int:
        return sum(region.volume for region in self.regions)

    def find_all(self, identifier: str) -> Iterator[Coord]:
        for coord, state in self.cells():
            if state.matches(identifier):
                yield coord

    def find_first(self, identifier: str) -> Optional[Coord]:
        return next(self.find_all(identifier), None)

    def locate_seed(self, identifier: str) -> Coord:
        found = self.find_first(identifier)
        if found is None:
            raise SeedNotFound(f"seed block {identifier} not found in any region")
        return found

    def locate_marker(self, identifier: str) -> Coord:
        found = list(self.find_all(identifier))
        if not found:
            raise MarkerNotFound(f"inside marker {identifier} not found in any region")
        if len(found) > 1:
            sample = ", ".join(str(c) for c in found[:5])
            raise MultipleMarkers(f"inside marker {identifier} found {len(found)} times: {sample}")
        return found[0]


def grid_from_blocks(blocks: Dict[Coord, str], *, name: str = "main", fill: str = "minecraft:air") -> GridView:
    """Single-region grid spanning the bounding box of ``blocks``; unset cells get ``fill``."""
    if not blocks:
        raise ValueError("no blocks given")
    xs = [c[0] for c in blocks]
    ys = [c[1] for c in blocks]
    zs = [c[2] for c in blocks]
    origin = (min(xs), min(ys), min(zs))
    size = (max(xs) - origin[0] + 1, max(ys) - origin[1] + 1, max(zs) - origin[2] + 1)
    region = Region.filled(name, origin, size, BlockState.parse(fill))
    for coord, state in blocks.items():
        region.set(coord, BlockState.parse(state))
    return GridView([region])
