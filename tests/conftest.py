from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from schemopt.grid import Coord, GridView, grid_from_blocks
from schemopt.litematic import Schematic, write_litematic

STONE = "minecraft:stone"
SEED = "minecraft:blue_wool"
MARKER = "minecraft:gold_block"
AIR = "minecraft:air"


def box(x1: int, y1: int, z1: int, x2: int, y2: int, z2: int, block: str = STONE) -> Dict[Coord, str]:
    return {
        (x, y, z): block
        for y in range(y1, y2 + 1)
        for z in range(z1, z2 + 1)
        for x in range(x1, x2 + 1)
    }


def tunnel_blocks() -> Dict[Coord, str]:
    """3x3x3 stone cube at x=1..3 with a tunnel from the x=1 face to the centre; seed just outside."""
    blocks = box(1, 0, 0, 3, 2, 2)
    blocks[(1, 1, 1)] = AIR
    blocks[(2, 1, 1)] = AIR
    blocks[(0, 1, 1)] = SEED
    return blocks


def sealed_blocks() -> Dict[Coord, str]:
    """5x5x5 hollow stone cube with a gold marker in the cavity; seed outside."""
    blocks = box(1, 0, 0, 5, 4, 4)
    blocks.update(box(2, 1, 1, 4, 3, 3, AIR))
    blocks[(3, 2, 2)] = MARKER
    blocks[(0, 2, 2)] = SEED
    return blocks


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for key in ("SCHEMOPT_PASSABLE_BLOCKS", "SCHEMOPT_MARGIN", "SCHEMOPT_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def tunnel_grid() -> GridView:
    return grid_from_blocks(tunnel_blocks())


@pytest.fixture()
def sealed_grid() -> GridView:
    return grid_from_blocks(sealed_blocks())


@pytest.fixture()
def corridor_grid() -> GridView:
    blocks = box(0, 0, 0, 9, 0, 0, AIR)
    blocks[(0, 0, 0)] = SEED
    return grid_from_blocks(blocks)


def snapshot(grid: GridView):
    return [(coord, str(state)) for coord, state in grid.cells()]


def save(path: Path, grid: GridView, name: str = "test") -> Path:
    write_litematic(path, Schematic(name=name, regions=grid.regions, author="tests"))
    return path
