from __future__ import annotations

import logging
from typing import Iterable, Sequence, Tuple

from .analyzer import ReachabilityResult
from .blocks import BlockState
from .grid import Coord, GridView

LOG = logging.getLogger(__name__)

RAINBOW_PALETTE: Tuple[str, ...] = (
    "minecraft:red_wool",
    "minecraft:red_concrete",
    "minecraft:orange_wool",
    "minecraft:orange_concrete",
    "minecraft:yellow_wool",
    "minecraft:yellow_concrete",
    "minecraft:lime_wool",
    "minecraft:lime_concrete",
    "minecraft:cyan_wool",
    "minecraft:cyan_concrete",
    "minecraft:light_blue_wool",
    "minecraft:light_blue_concrete",
    "minecraft:blue_wool",
    "minecraft:blue_concrete",
    "minecraft:purple_wool",
    "minecraft:purple_concrete",
)

TRACE_KEYS = ("index", "depth")


class TraceRenderer:
    """Paints flood discovery order back into the grid with a cyclic palette."""

    def __init__(self, palette: Sequence[str] = RAINBOW_PALETTE, *, key: str = "index") -> None:
        if not palette:
            raise ValueError("trace palette must not be empty")
        if key not in TRACE_KEYS:
            raise ValueError(f"invalid trace key: {key}")
        self.palette = [BlockState.parse(p) for p in palette]
        self.key = key

    def color(self, n: int) -> BlockState:
        return self.palette[n % len(self.palette)]

    def render(self, grid: GridView, discoveries: Iterable[Tuple[Coord, int]]) -> int:
        painted = 0
        for coord, n in discoveries:
            if not grid.contains(coord):
                # buffer cell outside every region
                continue
            grid.set(coord, self.color(n))
            painted += 1
        LOG.info("trace painted %d cells with %d colours", painted, len(self.palette))
        return painted

    def render_result(self, grid: GridView, result: ReachabilityResult) -> int:
        if self.key == "depth":
            return self.render(grid, zip(result.order, result.depths))
        return self.render(grid, result.discoveries(grid))

