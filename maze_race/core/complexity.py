import random
import logging
from collections import deque
from typing import Dict, Optional, Set

import numpy as np

from maze_race.core.grid import Grid, Tile, Coord

logger = logging.getLogger(__name__)


class MazePostProcessor:
    @staticmethod
    def braid(grid: Grid, chance: float = 0.18, seed: int = None,
              rng: Optional[random.Random] = None) -> int:
        """
        Removes interior walls to create loops.

        A wall cell is opened only if it touches at least two open cells,
        opening it leaves no fully open 2x2 block, and a random draw falls
        below `chance`. Border cells are never touched.
        Returns the number of walls removed.
        """
        if rng is None:
            rng = random.Random(seed)

        walls = []
        for r in range(1, grid.height - 1):
            for c in range(1, grid.width - 1):
                if grid.is_wall(r, c):
                    walls.append((r, c))

        rng.shuffle(walls)

        removed = 0
        for r, c in walls:
            if MazePostProcessor.open_neighbours(grid, r, c) < 2:
                continue
            if MazePostProcessor.would_create_open_block(grid, r, c):
                continue
            if rng.random() >= chance:
                continue
            grid.set_tile(r, c, Tile.NORMAL)
            removed += 1

        logger.debug("Braid removed %d of %d interior walls", removed, len(walls))
        return removed

    @staticmethod
    def open_neighbours(grid: Grid, r: int, c: int) -> int:
        count = 0
        for dr, dc in Grid.DIRECTIONS:
            if not grid.is_wall(r + dr, c + dc):
                count += 1
        return count

    @staticmethod
    def would_create_open_block(grid: Grid, r: int, c: int) -> bool:
        """
        True if treating (r, c) as open completes any of the four 2x2
        windows that contain it. Out-of-bounds cells count as walls.
        """
        def open_or_candidate(r2, c2):
            if r2 == r and c2 == c:
                return True
            return not grid.is_wall(r2, c2)

        # Top-left corners of the four windows containing (r, c)
        for tr, tc in ((r, c), (r, c - 1), (r - 1, c), (r - 1, c - 1)):
            if (open_or_candidate(tr, tc) and open_or_candidate(tr, tc + 1)
                    and open_or_candidate(tr + 1, tc) and open_or_candidate(tr + 1, tc + 1)):
                return True
        return False

    @staticmethod
    def as_array(grid: Grid) -> np.ndarray:
        # Shape (height, width), read-only view over the cell buffer
        return np.frombuffer(grid.cells, dtype=np.uint8).reshape(grid.height, grid.width)

    @staticmethod
    def count_open_blocks(grid: Grid) -> int:
        """Number of 2x2 windows whose four cells are all non-wall."""
        if grid.width < 2 or grid.height < 2:
            return 0
        is_open = MazePostProcessor.as_array(grid) != Tile.WALL
        blocks = is_open[:-1, :-1] & is_open[:-1, 1:] & is_open[1:, :-1] & is_open[1:, 1:]
        return int(blocks.sum())

    @staticmethod
    def reachable(grid: Grid, start: Coord) -> Set[Coord]:
        """Flood fill over non-wall cells. Does not touch the visited log."""
        if grid.is_wall(start.row, start.col):
            return set()
        seen = {start}
        queue = deque([start])
        while queue:
            cur = queue.popleft()
            for n in grid.neighbors(cur.row, cur.col):
                if n not in seen:
                    seen.add(n)
                    queue.append(n)
        return seen

    @staticmethod
    def calculate_stats(grid: Grid) -> Dict[str, float]:
        dead_ends = 0
        corridors = 0
        junctions = 0

        for r in range(grid.height):
            for c in range(grid.width):
                if grid.is_wall(r, c):
                    continue
                exits = MazePostProcessor.open_neighbours(grid, r, c)
                if exits <= 1:
                    dead_ends += 1
                elif exits == 2:
                    corridors += 1
                else:
                    junctions += 1

        counts = np.bincount(MazePostProcessor.as_array(grid).ravel(), minlength=len(Tile))
        total = grid.width * grid.height
        open_cells = total - int(counts[Tile.WALL])
        return {
            "walls": int(counts[Tile.WALL]),
            "normal": int(counts[Tile.NORMAL]),
            "mud": int(counts[Tile.MUD]),
            "water": int(counts[Tile.WATER]),
            "open_cells": open_cells,
            "dead_ends": dead_ends,
            "corridors": corridors,
            "junctions": junctions,
            "open_blocks": MazePostProcessor.count_open_blocks(grid),
            "dead_end_percent": (dead_ends / open_cells) * 100 if open_cells > 0 else 0,
        }
