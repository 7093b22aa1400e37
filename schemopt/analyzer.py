"""Breadth-first reachability over a grid view.

The flood starts at a passable seed and expands through the six face
neighbours in a fixed order, so the discovery order is reproducible and can be
painted back into the grid for inspection. Solid cells stop the flood; the ones
it touches are recorded as *exposed* (they are visible from the seed side).

In path mode a target coordinate (the inside marker) is accepted even when
solid. Reaching it stops the run immediately, and the parent map lets the path
be rebuilt.

With ``margin > 0`` the flood may also walk through cells just outside the
region boxes, treating them as air, so it can reach faces that are only
visible from around the outside of a region.
"""

from __future__ import annotations

import collections
import enum
import logging
from dataclasses import dataclass
from typing import Deque, Dict, Iterator, List, Optional, Sequence, Tuple

from .blocks import BlockClassifier
from .errors import SeedNotFound
from .grid import FACE_OFFSETS, Coord, GridView

LOG = logging.getLogger(__name__)


def _as_coord(c: Sequence[int]) -> Coord:
    x, y, z = c
    return x, y, z


class AnalyzerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    TARGET_FOUND = "target_found"


class VisitTracker:
    """Coordinate set backed by one bitmap per region box (grown by ``margin``)."""

    def __init__(self, grid: GridView, margin: int = 0) -> None:
        self._boxes: List[Tuple[Coord, Coord, bytearray]] = []
        for region in grid.regions:
            x1, y1, z1 = region.min_corner
            x2, y2, z2 = region.max_corner
            lo = (x1 - margin, y1 - margin, z1 - margin)
            dims = (x2 - x1 + 1 + 2 * margin, y2 - y1 + 1 + 2 * margin, z2 - z1 + 1 + 2 * margin)
            self._boxes.append((lo, dims, bytearray(dims[0] * dims[1] * dims[2])))
        self._count = 0

    def _slot(self, coord: Coord) -> Optional[Tuple[bytearray, int]]:
        x, y, z = coord
        for (lx, ly, lz), (dx, dy, dz), bits in self._boxes:
            ax = x - lx
            ay = y - ly
            az = z - lz
            if 0 <= ax < dx and 0 <= ay < dy and 0 <= az < dz:
                return bits, (ay * dz + az) * dx + ax
        return None

    def add(self, coord: Coord) -> bool:
        slot = self._slot(coord)
        if slot is None:
            raise ValueError(f"{coord} is outside the tracked volume")
        bits, idx = slot
        if bits[idx]:
            return False
        bits[idx] = 1
        self._count += 1
        return True

    def __contains__(self, coord: object) -> bool:
        slot = self._slot(coord)  # type: ignore[arg-type]
        if slot is None:
            return False
        bits, idx = slot
        return bool(bits[idx])

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Coord]:
        seen = set()
        for (lx, ly, lz), (dx, dy, dz), bits in self._boxes:
            for idx in range(len(bits)):
                if not bits[idx]:
                    continue
                ax = idx % dx
                az = (idx // dx) % dz
                ay = idx // (dx * dz)
                coord = (lx + ax, ly + ay, lz + az)
                # A coordinate in two overlapping boxes is only ever stored in the first.
                if coord not in seen:
                    seen.add(coord)
                    yield coord


@dataclass
class ReachabilityResult:
    seed: Coord
    target: Optional[Coord]
    state: AnalyzerState
    order: List[Coord]
    depths: List[int]
    visited: VisitTracker
    exposed: VisitTracker
    parents: Optional[Dict[Coord, Coord]]

    @property
    def target_reached(self) -> bool:
        return self.state is AnalyzerState.TARGET_FOUND

    def discoveries(self, grid: Optional[GridView] = None) -> Iterator[Tuple[Coord, int]]:
        """``(coord, index)`` in discovery order.

        With ``grid``, buffer cells outside every region are dropped and the
        remaining cells are numbered consecutively.
        """
        index = 0
        for coord in self.order:
            if grid is not None and not grid.contains(coord):
                continue
            yield coord, index
            index += 1


class ReachabilityAnalyzer:
    def __init__(
        self,
        grid: GridView,
        classifier: BlockClassifier,
        seed: Coord,
        *,
        target: Optional[Coord] = None,
        margin: int = 0,
    ) -> None:
        if margin < 0:
            raise ValueError("margin must be >= 0")
        self.grid = grid
        self.classifier = classifier
        self.seed: Coord = _as_coord(seed)
        self.target: Optional[Coord] = _as_coord(target) if target is not None else None
        self.margin = margin
        self.state = AnalyzerState.IDLE

        self.visited = VisitTracker(grid, margin)
        self.exposed = VisitTracker(grid, margin)
        self.order: List[Coord] = []
        self.depths: List[int] = []
        self.parents: Optional[Dict[Coord, Coord]] = {} if self.target is not None else None
        self._frontier: Deque[Tuple[Coord, int]] = collections.deque()
        self._last_depth = 0

    def start(self) -> None:
        if self.state is not AnalyzerState.IDLE:
            raise RuntimeError(f"analyzer already started (state={self.state.value})")
        block = self.grid.get(self.seed)
        if block is None:
            raise SeedNotFound(f"seed {self.seed} is outside every region")
        if self.classifier.is_solid(block):
            raise SeedNotFound(f"seed {self.seed} holds solid block {block}; the flood cannot start inside a wall")

        self.state = AnalyzerState.RUNNING
        self._visit(self.seed, 0)
        LOG.debug("flood start seed=%s target=%s margin=%d", self.seed, self.target, self.margin)
        if self.seed == self.target:
            self.state = AnalyzerState.TARGET_FOUND

    def _visit(self, coord: Coord, depth: int) -> None:
        self.visited.add(coord)
        self.order.append(coord)
        self.depths.append(depth)
        self._frontier.append((coord, depth))

    def _passable(self, coord: Coord) -> Optional[bool]:
        """True/False for cells the flood may consider, None when out of reach."""
        block = self.grid.get(coord)
        if block is None:
            if self.margin and self.grid.within(coord, self.margin):
                return True
            return None
        return self.classifier.is_passable(block)

    def step(self) -> bool:
        """Expand one frontier cell. Returns False once the run is over."""
        if self.state is AnalyzerState.IDLE:
            self.start()
        if self.state is not AnalyzerState.RUNNING:
            return False
        if not self._frontier:
            self.state = AnalyzerState.COMPLETED
            return False

        (x, y, z), depth = self._frontier.popleft()
        if depth != self._last_depth:
            LOG.debug("flood generation %d: visited=%d frontier=%d", depth, len(self.order), len(self._frontier))
            self._last_depth = depth

        for dx, dy, dz in FACE_OFFSETS:
            nxt = (x + dx, y + dy, z + dz)
            if nxt in self.visited:
                continue
            passable = self._passable(nxt)
            if passable is None:
                continue
            if not passable and nxt != self.target:
                self.exposed.add(nxt)
                continue
            self._visit(nxt, depth + 1)
            if self.parents is not None:
                self.parents[nxt] = (x, y, z)
            if nxt == self.target:
                LOG.debug("reached target %s after %d cells", nxt, len(self.order))
                self.state = AnalyzerState.TARGET_FOUND
                return False

        if not self._frontier:
            self.state = AnalyzerState.COMPLETED
            return False
        return True

    def run(self) -> ReachabilityResult:
        while self.step():
            pass
        LOG.info(
            "flood %s: visited=%d exposed=%d generations=%d",
            self.state.value,
            len(self.visited),
            len(self.exposed),
            self.depths[-1] if self.depths else 0,
        )
        return self.result()

    def result(self) -> ReachabilityResult:
        return ReachabilityResult(
            seed=self.seed,
            target=self.target,
            state=self.state,
            order=self.order,
            depths=self.depths,
            visited=self.visited,
            exposed=self.exposed,
            parents=self.parents,
        )


def analyze(
    grid: GridView,
    classifier: BlockClassifier,
    seed: Coord,
    *,
    target: Optional[Coord] = None,
    margin: int = 0,
) -> ReachabilityResult:
    return ReachabilityAnalyzer(grid, classifier, seed, target=target, margin=margin).run()
