import random
from typing import Iterator, List, Optional, Tuple
from maze_race.core.grid import Grid, Tile, Coord
from maze_race.algo.base import Generator


class RecursiveBacktracker(Generator):
    """
    Carves a perfect maze on the step-2 lattice rooted at `start`.

    Cells are opened two steps apart with the wall between them knocked out,
    so only lattice points at even offsets from start are reached. Carving
    stays strictly inside the border. Expects a grid already filled with walls.
    """

    def __init__(self, grid: Grid, start: Coord, seed: int = None,
                 rng: Optional[random.Random] = None):
        super().__init__(grid, seed=seed, rng=rng)
        self.start = start
        self.carved = bytearray(grid.width * grid.height)

    def run(self) -> Iterator[str]:
        rows, cols = self.grid.height, self.grid.width
        sr, sc = self.start.row, self.start.col

        self._open(sr, sc)
        # Stack of (row, col, directions still to try); mirrors the recursive form
        stack: List[Tuple[int, int, List[Tuple[int, int]]]] = [(sr, sc, self._shuffled())]

        while stack:
            r, c, dirs = stack[-1]
            if not dirs:
                # Backtrack
                stack.pop()
                continue

            dr, dc = dirs.pop()
            nr, nc = r + dr * 2, c + dc * 2
            if 0 < nr < rows - 1 and 0 < nc < cols - 1 and not self.carved[nr * cols + nc]:
                # Remove wall between, then descend
                self.grid.set_tile(r + dr, c + dc, Tile.NORMAL)
                self._open(nr, nc)
                stack.append((nr, nc, self._shuffled()))
                self.step_count += 1

                # Yield every N steps to keep callers responsive without spamming
                if self.step_count % 100 == 0:
                    yield f"Carving... Stack: {len(stack)}"

        yield "Done"

    def _open(self, r: int, c: int):
        self.carved[r * self.grid.width + c] = 1
        self.grid.set_tile(r, c, Tile.NORMAL)

    def _shuffled(self) -> List[Tuple[int, int]]:
        dirs = list(Grid.DIRECTIONS)
        self.rng.shuffle(dirs)
        # Popped from the end, so reverse to try them in shuffled order
        dirs.reverse()
        return dirs
