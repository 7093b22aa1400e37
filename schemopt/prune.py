from __future__ import annotations

import logging
from typing import Container

from .blocks import AIR_STATE, BlockClassifier
from .grid import Coord, GridView

LOG = logging.getLogger(__name__)


def prune(
    grid: GridView,
    classifier: BlockClassifier,
    visited: Container[Coord],
    exposed: Container[Coord] = (),
) -> int:
    """Replace every solid cell the flood neither visited nor touched with air.

    Passable cells are left alone even when unvisited. Returns the number of
    cells rewritten; a second call with the same sets returns 0.
    """
    doomed = [
        (coord, state)
        for coord, state in grid.cells()
        if classifier.is_solid(state) and coord not in visited and coord not in exposed
    ]
    for coord, state in doomed:
        LOG.debug("replacing %s at %s with air", state, coord)
        grid.set(coord, AIR_STATE)
    LOG.info("pruned %d hidden blocks", len(doomed))
    return len(doomed)
