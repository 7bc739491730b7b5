import time
from array import array
from enum import IntEnum
from typing import Iterator, List, NamedTuple

# Far larger than any real path cost, small enough to add to without overflow
INFEASIBLE_COST = 1 << 30


class Tile(IntEnum):
    WALL = 0
    NORMAL = 1
    MUD = 2
    WATER = 3

    @property
    def cost(self) -> int:
        return _TILE_COSTS[self]

    @property
    def passable(self) -> bool:
        return self is not Tile.WALL


_TILE_COSTS = {
    Tile.WALL: INFEASIBLE_COST,
    Tile.NORMAL: 1,
    Tile.MUD: 5,
    Tile.WATER: 10,
}


class Coord(NamedTuple):
    col: int
    row: int


class Grid:
    # Neighbour order: up, down, left, right (row delta, col delta)
    DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))

    __slots__ = ('width', 'height', 'cells', 'event_writer',
                 '_visited', '_visited_order', '_visited_times')

    def __init__(self, width: int, height: int, event_writer=None):
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.event_writer = event_writer
        # One byte per cell holding a Tile value, row-major
        self.cells = array('B', [Tile.NORMAL] * (width * height))

        self._visited = bytearray(width * height)
        self._visited_order: List[Coord] = []
        self._visited_times: List[float] = []

        if self.event_writer:
            self.event_writer.write_header(width, height)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def tile_at(self, row: int, col: int) -> Tile:
        if not self.in_bounds(row, col):
            return Tile.WALL
        return Tile(self.cells[row * self.width + col])

    def cost_at(self, row: int, col: int) -> int:
        return self.tile_at(row, col).cost

    def is_wall(self, row: int, col: int) -> bool:
        if not self.in_bounds(row, col):
            return True
        return self.cells[row * self.width + col] == Tile.WALL

    def set_tile(self, row: int, col: int, tile: Tile):
        if not self.in_bounds(row, col):
            return
        self.cells[row * self.width + col] = tile
        if self.event_writer:
            self.event_writer.log_tile(col, row, tile)

    def fill(self, tile: Tile):
        self.cells = array('B', [tile] * (self.width * self.height))
        if self.event_writer:
            for row in range(self.height):
                for col in range(self.width):
                    self.event_writer.log_tile(col, row, tile)

    def count(self, tile: Tile) -> int:
        return self.cells.count(tile)

    def neighbors(self, row: int, col: int) -> Iterator[Coord]:
        """
        Yields in-bounds, non-wall orthogonal neighbours of (row, col).
        Order is fixed: up, down, left, right.
        """
        for dr, dc in self.DIRECTIONS:
            nr, nc = row + dr, col + dc
            if 0 <= nr < self.height and 0 <= nc < self.width:
                if self.cells[nr * self.width + nc] != Tile.WALL:
                    yield Coord(nc, nr)

    # --- Visited log (telemetry only) ---

    def reset_visited_log(self):
        self._visited = bytearray(self.width * self.height)
        self._visited_order = []
        self._visited_times = []
        if self.event_writer:
            self.event_writer.log_reset()

    def mark_visited(self, row: int, col: int):
        if not self.in_bounds(row, col):
            return
        idx = row * self.width + col
        if self._visited[idx]:
            return
        self._visited[idx] = 1
        self._visited_order.append(Coord(col, row))
        self._visited_times.append(time.perf_counter())
        if self.event_writer:
            self.event_writer.log_visit(col, row)

    def is_visited(self, row: int, col: int) -> bool:
        return self.in_bounds(row, col) and self._visited[row * self.width + col] != 0

    def visited_order(self) -> List[Coord]:
        return list(self._visited_order)

    def visited_times(self) -> List[float]:
        return list(self._visited_times)
