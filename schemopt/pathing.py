from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .blocks import BlockState
from .errors import TargetNotReached
from .grid import Coord, GridView

LOG = logging.getLogger(__name__)

DEFAULT_PATH_BLOCK = "minecraft:red_wool"


def reconstruct_path(parents: Optional[Dict[Coord, Coord]], seed: Coord, target: Coord) -> List[Coord]:
    """Seed-to-target path through the BFS parent tree."""
    if target == seed:
        return [seed]
    if not parents or target not in parents:
        raise TargetNotReached(f"no flood path from {seed} to {target}")
    path = [target]
    current = target
    while current != seed:
        current = parents[current]
        path.append(current)
        if len(path) > len(parents) + 1:
            raise RuntimeError("parent map is not a tree rooted at the seed")
    path.reverse()
    return path


class PathBuilder:
    def __init__(self, marker: str = DEFAULT_PATH_BLOCK) -> None:
        self.marker = BlockState.parse(marker)

    def apply(self, grid: GridView, path: Sequence[Coord]) -> int:
        """Write the marker along ``path``, leaving the final (inside marker) cell alone."""
        written = 0
        for coord in path[:-1]:
            if not grid.contains(coord):
                continue
            grid.set(coord, self.marker)
            written += 1
        LOG.info("path of %d cells, %d marked with %s", len(path), written, self.marker)
        return written
