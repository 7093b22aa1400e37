from __future__ import annotations

import pytest

from conftest import AIR, SEED, STONE, box
from schemopt.analyzer import AnalyzerState, ReachabilityAnalyzer, VisitTracker, analyze
from schemopt.blocks import BlockClassifier
from schemopt.errors import SeedNotFound
from schemopt.grid import GridView, Region, grid_from_blocks, neighbors
from schemopt.prune import prune


@pytest.fixture()
def classifier() -> BlockClassifier:
    return BlockClassifier([SEED])


def test_seed_is_first_and_depths_grow(tunnel_grid, classifier):
    result = analyze(tunnel_grid, classifier, (0, 1, 1))

    assert result.order[0] == (0, 1, 1)
    assert result.depths[0] == 0
    assert result.depths == sorted(result.depths)
    assert result.state is AnalyzerState.COMPLETED
    assert len(result.order) == len(result.visited) == len(set(result.order))


def test_tunnel_scenario_prunes_everything_but_the_flood(tunnel_grid, classifier):
    result = analyze(tunnel_grid, classifier, (0, 1, 1))

    assert (1, 1, 1) in result.visited
    assert (2, 1, 1) in result.visited
    assert (3, 1, 1) not in result.visited

    removed = prune(tunnel_grid, classifier, result.visited)

    assert removed == 25
    assert all(str(state) != STONE for _c, state in tunnel_grid.cells())


def test_exposed_holds_solid_cells_touched_by_the_flood(tunnel_grid, classifier):
    result = analyze(tunnel_grid, classifier, (0, 1, 1))

    assert (3, 1, 1) in result.exposed
    assert (1, 0, 0) in result.exposed
    assert (3, 0, 0) not in result.exposed
    assert len(result.exposed) == 13


def test_seed_on_solid_block_fails(tunnel_grid):
    with pytest.raises(SeedNotFound):
        analyze(tunnel_grid, BlockClassifier(), (0, 1, 1))


def test_seed_outside_grid_fails(tunnel_grid, classifier):
    with pytest.raises(SeedNotFound):
        analyze(tunnel_grid, classifier, (40, 0, 0))


def test_visited_never_exceeds_passable_cells(sealed_grid, classifier):
    result = analyze(sealed_grid, classifier, (0, 2, 2))
    passable = sum(1 for _c, state in sealed_grid.cells() if classifier.is_passable(state))

    assert len(result.visited) <= passable
    assert all(classifier.is_passable(sealed_grid.get(c)) for c in result.visited)


def test_sealed_target_is_not_reached(sealed_grid, classifier):
    result = analyze(sealed_grid, classifier, (0, 2, 2), target=(3, 2, 2))

    assert result.state is AnalyzerState.COMPLETED
    assert not result.target_reached
    assert (3, 2, 2) not in result.visited


def test_solid_target_stops_the_run_with_parents(tunnel_grid, classifier):
    tunnel_grid.set((2, 1, 1), tunnel_grid.get((1, 0, 0)))
    result = analyze(tunnel_grid, classifier, (0, 1, 1), target=(2, 1, 1))

    assert result.target_reached
    assert result.order[-1] == (2, 1, 1)
    position = {c: i for i, c in enumerate(result.order)}
    for child, parent in result.parents.items():
        assert position[parent] < position[child]
        assert parent in neighbors(child)


def test_seed_equal_to_target_finishes_immediately(tunnel_grid, classifier):
    analyzer = ReachabilityAnalyzer(tunnel_grid, classifier, (0, 1, 1), target=(0, 1, 1))

    assert analyzer.step() is False
    assert analyzer.state is AnalyzerState.TARGET_FOUND
    assert analyzer.order == [(0, 1, 1)]


def test_step_grows_visited_monotonically(sealed_grid, classifier):
    analyzer = ReachabilityAnalyzer(sealed_grid, classifier, (0, 2, 2))
    assert analyzer.state is AnalyzerState.IDLE

    sizes = []
    while analyzer.step():
        assert analyzer.state is AnalyzerState.RUNNING
        sizes.append(len(analyzer.visited))

    assert sizes == sorted(sizes)
    assert analyzer.state is AnalyzerState.COMPLETED
    with pytest.raises(RuntimeError):
        analyzer.start()


def test_runs_are_deterministic(sealed_grid, classifier):
    first = analyze(sealed_grid, classifier, (0, 2, 2))
    second = analyze(sealed_grid, classifier, (0, 2, 2))

    assert first.order == second.order
    assert first.depths == second.depths


def test_margin_lets_the_flood_walk_around_a_wall(classifier):
    grid = grid_from_blocks({(0, 0, 0): SEED, (1, 0, 0): STONE, (2, 0, 0): AIR})

    assert (2, 0, 0) not in analyze(grid, classifier, (0, 0, 0)).visited
    result = analyze(grid, classifier, (0, 0, 0), margin=1)
    assert (2, 0, 0) in result.visited
    assert (1, 0, 0) not in result.visited
    assert (1, 0, 0) in result.exposed


def test_unknown_blocks_stop_the_flood(classifier):
    blocks = box(0, 0, 0, 2, 0, 0, AIR)
    blocks[(0, 0, 0)] = SEED
    blocks[(1, 0, 0)] = "somemod:mystery_block"
    result = analyze(grid_from_blocks(blocks), classifier, (0, 0, 0))

    assert list(result.visited) == [(0, 0, 0)]


def test_visit_tracker_bounds():
    grid = GridView([Region.filled("a", (0, 0, 0), (2, 1, 1)), Region.filled("b", (1, 0, 0), (2, 1, 1))])
    tracker = VisitTracker(grid)

    assert tracker.add((1, 0, 0))
    assert not tracker.add((1, 0, 0))
    assert tracker.add((2, 0, 0))
    assert (5, 0, 0) not in tracker
    assert sorted(tracker) == [(1, 0, 0), (2, 0, 0)]
    assert len(tracker) == 2
    with pytest.raises(ValueError):
        tracker.add((5, 0, 0))


def test_negative_margin_is_rejected(tunnel_grid, classifier):
    with pytest.raises(ValueError):
        ReachabilityAnalyzer(tunnel_grid, classifier, (0, 1, 1), margin=-1)


def test_buffer_cells_bound_the_visited_set_with_margin(sealed_grid, classifier):
    result = analyze(sealed_grid, classifier, (0, 2, 2), margin=1)
    passable = sum(1 for _c, state in sealed_grid.cells() if classifier.is_passable(state))
    buffer = [c for c in result.visited if not sealed_grid.contains(c)]
    (x1, y1, z1), (x2, y2, z2) = sealed_grid.regions[0].min_corner, sealed_grid.regions[0].max_corner
    buffer_cells = (x2 - x1 + 3) * (y2 - y1 + 3) * (z2 - z1 + 3) - sealed_grid.volume

    assert buffer
    assert all(sealed_grid.within(c, 1) for c in buffer)
    assert all(classifier.is_passable(sealed_grid.get(c)) for c in result.visited if sealed_grid.contains(c))
    assert len(result.visited) <= passable + buffer_cells


def test_runs_are_deterministic_with_margin(sealed_grid, classifier):
    first = analyze(sealed_grid, classifier, (0, 2, 2), target=(3, 2, 2), margin=1)
    second = analyze(sealed_grid, classifier, (0, 2, 2), target=(3, 2, 2), margin=1)

    assert first.order == second.order
    assert first.depths == second.depths
    assert list(first.exposed) == list(second.exposed)
