from __future__ import annotations

import collections
import json
import logging
from typing import List, Tuple

from .blocks import BlockState, is_air
from .grid import GridView

LOG = logging.getLogger(__name__)

# Wall-mounted variants are placed from the same item as the standing block.
_ITEM_SUFFIXES = (
    ("_wall_hanging_sign", "_hanging_sign"),
    ("_wall_sign", "_sign"),
    ("_wall_banner", "_banner"),
    ("_wall_head", "_head"),
    ("_wall_skull", "_skull"),
    ("wall_torch", "torch"),
)


def item_name(name: str) -> str:
    for suffix, replacement in _ITEM_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)] + replacement
    return name


def count_materials(grid: GridView) -> List[Tuple[str, int]]:
    """Non-air block counts by item, most used first (ties by name)."""
    cnt: collections.Counter = collections.Counter()
    for _coord, state in grid.cells():
        if is_air(state):
            continue
        cnt[item_name(state.name)] += 1
    return sorted(cnt.items(), key=lambda kv: (-kv[1], kv[0]))


def materials_json(materials: List[Tuple[str, int]]) -> str:
    return json.dumps(
        {"total": sum(n for _name, n in materials), "materials": [{"block": k, "count": v} for k, v in materials]},
        indent=2,
    )


def replace_blocks(grid: GridView, identifier: str, replacement: BlockState) -> int:
    """Overwrite every cell matching ``identifier`` with ``replacement``."""
    hits = list(grid.find_all(identifier))
    for coord in hits:
        grid.set(coord, replacement)
    LOG.info("replaced %d x %s with %s", len(hits), identifier, replacement)
    return len(hits)
