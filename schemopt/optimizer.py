"""One optimization run: locate markers, flood, then annotate or prune.

The grid is only mutated after the analysis has completed successfully; every
fatal condition (missing seed, missing or duplicated inside marker) is raised
before any write. In inside mode an unreached target leaves the grid untouched.
"""

from __future__ import annotations

import itertools
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .analyzer import AnalyzerState, ReachabilityAnalyzer
from .blocks import BlockClassifier
from .grid import Coord, GridView
from .pathing import PathBuilder, reconstruct_path
from .prune import prune
from .settings import OptimizeSettings
from .trace import TraceRenderer

LOG = logging.getLogger(__name__)


@dataclass
class OptimizeReport:
    mode: str
    seed: Coord
    state: str
    visited: int
    exposed: int
    target: Optional[Coord] = None
    pruned: int = 0
    painted: int = 0
    path: List[Coord] = field(default_factory=list)
    untouched_regions: List[str] = field(default_factory=list)

    @property
    def target_reached(self) -> bool:
        return self.state == AnalyzerState.TARGET_FOUND.value

    def to_dict(self) -> Dict[str, object]:
        return {
            "mode": self.mode,
            "seed": list(self.seed),
            "target": list(self.target) if self.target else None,
            "state": self.state,
            "visited": self.visited,
            "exposed": self.exposed,
            "pruned": self.pruned,
            "painted": self.painted,
            "path": [list(c) for c in self.path],
            "untouched_regions": self.untouched_regions,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)


def build_classifier(settings: OptimizeSettings) -> BlockClassifier:
    return BlockClassifier(settings.passable_blocks, defaults=settings.default_passable)


def _untouched_regions(grid: GridView, *touched: Iterable[Coord]) -> List[str]:
    remaining = dict(enumerate(grid.regions))
    for coord in itertools.chain(*touched):
        for i in [i for i, region in remaining.items() if region.contains(coord)]:
            del remaining[i]
        if not remaining:
            break
    return [region.name for region in remaining.values()]


def optimize(grid: GridView, settings: OptimizeSettings) -> OptimizeReport:
    classifier = build_classifier(settings)
    seed = grid.locate_seed(settings.seed_block)
    target = grid.locate_marker(settings.inside_block) if settings.inside_block else None
    LOG.info("mode=%s seed=%s target=%s", settings.mode, seed, target)

    analyzer = ReachabilityAnalyzer(grid, classifier, seed, target=target, margin=settings.margin)
    result = analyzer.run()
    report = OptimizeReport(
        mode=settings.mode,
        seed=seed,
        target=target,
        state=result.state.value,
        visited=len(result.visited),
        exposed=len(result.exposed),
    )

    if settings.mode == "rainbow":
        renderer = TraceRenderer(settings.palette, key=settings.trace_key)
        report.painted = renderer.render_result(grid, result)
        return report

    if settings.mode == "inside":
        if result.target_reached:
            report.path = reconstruct_path(result.parents, seed, target)  # type: ignore[arg-type]
            report.painted = PathBuilder(settings.path_block).apply(grid, report.path)
            LOG.warning("inside marker %s is reachable from the seed; leak path marked", target)
        else:
            LOG.info("inside marker %s is sealed off from the seed", target)
        return report

    report.untouched_regions = _untouched_regions(grid, result.visited, result.exposed)
    for name in report.untouched_regions:
        LOG.warning("region %s was never reached by the flood; all its solid blocks will be removed", name)
    report.pruned = prune(grid, classifier, result.visited, result.exposed)
    return report
