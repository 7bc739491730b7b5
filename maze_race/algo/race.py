import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from maze_race.core.grid import Grid, Coord
from maze_race.algo.solvers import SOLVERS, SearchResult, get_solver

logger = logging.getLogger(__name__)


@dataclass
class RaceEntry:
    rank: int
    result: SearchResult
    best: bool = False
    worst: bool = False


def run_race(grid: Grid, start: Coord, goal: Coord,
             names: Optional[Iterable[str]] = None, **dfs_options) -> List[SearchResult]:
    """
    Runs each named strategy on the same grid, one after another.
    Each run resets the grid's visited log, so only the last run's log survives.
    """
    results = []
    for name in (names if names is not None else SOLVERS):
        kwargs = dfs_options if name.lower() == "dfs" else {}
        solver = get_solver(name, **kwargs)
        logger.info("Running %s...", solver.name)
        results.append(solver.find_path(grid, start, goal))
    return results


def leaderboard(results: Iterable[SearchResult]) -> List[RaceEntry]:
    """
    Orders results by (found first, cost, nodes explored, time).
    Among finishers the cheapest path is flagged best and the dearest worst;
    when every finisher ties, nobody is flagged worst.
    """
    ordered = sorted(
        results,
        key=lambda r: (not r.found, r.cost, r.nodes_explored, r.elapsed),
    )
    entries = [RaceEntry(rank=i + 1, result=r) for i, r in enumerate(ordered)]

    finished = [e for e in entries if e.result.found]
    if finished:
        best = min(finished, key=lambda e: e.result.cost)
        worst = max(finished, key=lambda e: e.result.cost)
        best.best = True
        if worst is not best and worst.result.cost != best.result.cost:
            worst.worst = True
    return entries


def format_leaderboard(entries: List[RaceEntry]) -> str:
    lines = [
        "=" * 72,
        f"{'RANK':<5} | {'ALGORITHM':<10} | {'NODES':<7} | {'PATH':<6} | "
        f"{'COST':<6} | {'TIME (ms)':<10} | {'OPTIMAL':<7}",
        "-" * 72,
    ]
    for e in entries:
        r = e.result
        if r.found:
            path, cost = str(r.path_length), str(r.cost)
        else:
            path, cost = "-", "-"
        mark = " best" if e.best else (" worst" if e.worst else "")
        lines.append(
            f"{e.rank:<5} | {r.algorithm:<10} | {r.nodes_explored:<7} | {path:<6} | "
            f"{cost:<6} | {r.elapsed_ms:<10.3f} | {'yes' if r.is_optimal else 'no':<7}{mark}"
        )
    lines.append("=" * 72)
    return "\n".join(lines)
