import heapq
import random
import time
import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from maze_race.core.grid import Grid, Coord
from maze_race.core.errors import ConfigError, PreconditionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResult:
    algorithm: str
    path: List[Coord]
    nodes_explored: int
    elapsed: float  # seconds
    is_optimal: bool
    cost: int = 0
    visited_order: List[Coord] = field(default_factory=list, repr=False)

    @property
    def found(self) -> bool:
        return bool(self.path)

    @property
    def path_length(self) -> int:
        return len(self.path)

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000.0


def path_cost(grid: Grid, path: Sequence[Coord]) -> int:
    """Sum of tile costs entered along the path; the start cell is free."""
    return sum(grid.cost_at(p.row, p.col) for p in path[1:])


def reconstruct_path(parents: Dict[Coord, Coord], start: Coord, goal: Coord) -> List[Coord]:
    path = []
    curr = goal
    while curr != start:
        path.append(curr)
        curr = parents[curr]
    path.append(start)
    path.reverse()
    return path


class PathFinder(ABC):
    """
    Common contract for the search strategies.

    find_path() resets the grid's visited log, marks each expanded node once,
    and never writes tiles. Telemetry travels in the returned SearchResult;
    last_result only keeps a reference to the most recent one.
    """
    name: str = ""
    is_optimal: bool = False

    def __init__(self, event_writer=None):
        self.event_writer = event_writer
        self.last_result: Optional[SearchResult] = None

    @property
    def last_nodes_explored(self) -> int:
        return self.last_result.nodes_explored if self.last_result else 0

    @property
    def last_elapsed(self) -> float:
        return self.last_result.elapsed if self.last_result else 0.0

    def find_path(self, grid: Grid, start: Coord, goal: Coord) -> SearchResult:
        start, goal = Coord(*start), Coord(*goal)
        for label, point in (("start", start), ("goal", goal)):
            if not grid.in_bounds(point.row, point.col):
                raise PreconditionError(
                    f"{label} {tuple(point)} outside {grid.width}x{grid.height} grid"
                )

        t0 = time.perf_counter()
        grid.reset_visited_log()
        path, nodes = self.search(grid, start, goal)
        elapsed = time.perf_counter() - t0

        if path and self.event_writer:
            for p in path:
                self.event_writer.log_path_add(p.col, p.row)

        result = SearchResult(
            algorithm=self.name,
            path=path,
            nodes_explored=nodes,
            elapsed=elapsed,
            is_optimal=self.is_optimal,
            cost=path_cost(grid, path),
            visited_order=grid.visited_order(),
        )
        self.last_result = result
        logger.debug(
            "%s: %s, path %d, cost %d, explored %d in %.3f ms",
            self.name, "found" if path else "no path", len(path), result.cost,
            nodes, result.elapsed_ms,
        )
        return result

    @abstractmethod
    def search(self, grid: Grid, start: Coord, goal: Coord):
        """Returns (path, nodes_explored). Path is empty when goal is unreachable."""


class BFS(PathFinder):
    """Breadth-first search. Shortest path in hops; ignores tile weights."""
    name = "BFS"
    is_optimal = True

    def search(self, grid: Grid, start: Coord, goal: Coord):
        queue = deque([start])
        seen = {start}
        parents: Dict[Coord, Coord] = {}
        nodes = 0

        while queue:
            current = queue.popleft()
            grid.mark_visited(current.row, current.col)
            nodes += 1

            if current == goal:
                return reconstruct_path(parents, start, goal), nodes

            for n in grid.neighbors(current.row, current.col):
                if n not in seen:
                    seen.add(n)
                    parents[n] = current
                    queue.append(n)

        return [], nodes


class DFS(PathFinder):
    """
    Depth-first search with an explicit stack. Finds a path, not a short one.

    Neighbours are pushed in the grid's fixed order unless `shuffle` is set,
    in which case each expansion pushes them in an order drawn from a
    private `random.Random(seed)`.
    """
    name = "DFS"
    is_optimal = False

    def __init__(self, shuffle: bool = False, seed: int = None, event_writer=None):
        super().__init__(event_writer)
        self.shuffle = shuffle
        self.seed = seed

    def search(self, grid: Grid, start: Coord, goal: Coord):
        # Reseeded per run so repeated calls with the same seed agree
        rng = random.Random(self.seed) if self.shuffle else None
        stack = [start]
        seen = {start}
        parents: Dict[Coord, Coord] = {}
        nodes = 0

        while stack:
            current = stack.pop()
            grid.mark_visited(current.row, current.col)
            nodes += 1

            if current == goal:
                return reconstruct_path(parents, start, goal), nodes

            neighbours = list(grid.neighbors(current.row, current.col))
            if rng is not None:
                rng.shuffle(neighbours)
            for n in neighbours:
                if n not in seen:
                    seen.add(n)
                    parents[n] = current
                    stack.append(n)

        return [], nodes


class Dijkstra(PathFinder):
    """Uniform-cost search over tile weights (Normal=1, Mud=5, Water=10)."""
    name = "Dijkstra"
    is_optimal = True

    def search(self, grid: Grid, start: Coord, goal: Coord):
        # Priority Queue: (cost, seq, coord); seq keeps equal costs in insertion order
        seq = 0
        open_set = [(0, seq, start)]
        dist: Dict[Coord, int] = {start: 0}
        parents: Dict[Coord, Coord] = {}
        closed = set()
        nodes = 0

        while open_set:
            cost, _, current = heapq.heappop(open_set)
            # Stale entry: a cheaper route was pushed later
            if cost > dist[current] or current in closed:
                continue
            closed.add(current)

            grid.mark_visited(current.row, current.col)
            nodes += 1

            if current == goal:
                return reconstruct_path(parents, start, goal), nodes

            for n in grid.neighbors(current.row, current.col):
                if n in closed:
                    continue
                new_cost = cost + grid.cost_at(n.row, n.col)
                if n not in dist or new_cost < dist[n]:
                    dist[n] = new_cost
                    parents[n] = current
                    seq += 1
                    heapq.heappush(open_set, (new_cost, seq, n))

        return [], nodes


class AStar(PathFinder):
    """A* over tile weights with a Manhattan-distance heuristic."""
    name = "A*"
    is_optimal = True

    def search(self, grid: Grid, start: Coord, goal: Coord):
        # Priority Queue: (f_score, seq, coord)
        seq = 0
        open_set = [(self.heuristic(start, goal), seq, start)]
        g_score: Dict[Coord, int] = {start: 0}
        parents: Dict[Coord, Coord] = {}
        closed = set()
        nodes = 0

        while open_set:
            _, _, current = heapq.heappop(open_set)
            if current in closed:
                continue
            closed.add(current)

            grid.mark_visited(current.row, current.col)
            nodes += 1

            if current == goal:
                return reconstruct_path(parents, start, goal), nodes

            curr_g = g_score[current]
            for n in grid.neighbors(current.row, current.col):
                if n in closed:
                    continue
                new_g = curr_g + grid.cost_at(n.row, n.col)
                if n not in g_score or new_g < g_score[n]:
                    g_score[n] = new_g
                    parents[n] = current
                    seq += 1
                    heapq.heappush(open_set, (new_g + self.heuristic(n, goal), seq, n))

        return [], nodes

    @staticmethod
    def heuristic(a: Coord, b: Coord) -> int:
        # Every step costs at least 1, so this never overestimates
        return abs(a.col - b.col) + abs(a.row - b.row)


SOLVERS = {
    "bfs": BFS,
    "dfs": DFS,
    "dijkstra": Dijkstra,
    "astar": AStar,
}


def get_solver(name: str, **kwargs) -> PathFinder:
    try:
        cls = SOLVERS[name.lower()]
    except KeyError:
        raise ConfigError(
            f"Unknown solver '{name}'; choose from {', '.join(SOLVERS)}"
        ) from None
    return cls(**kwargs)
