import random
import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from maze_race.core.grid import Grid, Tile, Coord
from maze_race.core.config import MazeConfig
from maze_race.core.complexity import MazePostProcessor
from maze_race.core.errors import PreconditionError
from maze_race.algo.base import Generator
from maze_race.algo.dfs import RecursiveBacktracker

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    braided: int = 0
    water: int = 0
    mud: int = 0
    open_cells: int = 0
    sealed: bool = False


def default_start(grid: Grid) -> Coord:
    return Coord(1, 1)


def default_goal(grid: Grid) -> Coord:
    return Coord(grid.width - 2, grid.height - 2)


class MazeGenerator(Generator):
    """
    Builds a braided, weighted maze in five phases:

    1. Fill    - every cell becomes a wall.
    2. Carve   - randomized backtracking on the step-2 lattice from start,
                 then start and goal are forced open.
    3. Braid   - selected interior walls are removed to form loops.
    4. Terrain - open cells (except start and goal) roll for water or mud.
    5. Seal    - with `seal_chance`, every neighbour of the goal becomes a wall.

    There is no rollback; a sealed goal is a valid outcome. All randomness
    comes from one `random.Random`, so a seed reproduces the maze exactly.
    """

    def __init__(self, grid: Grid, start: Coord = None, goal: Coord = None,
                 config: MazeConfig = None, seed: int = None,
                 rng: Optional[random.Random] = None, force_seal: Optional[bool] = None):
        super().__init__(grid, seed=seed, rng=rng)
        self.start = Coord(*start) if start is not None else default_start(grid)
        self.goal = Coord(*goal) if goal is not None else default_goal(grid)
        self.config = config if config is not None else MazeConfig()
        self.force_seal = force_seal
        self.report = GenerationReport()

        for label, point in (("start", self.start), ("goal", self.goal)):
            if not grid.in_bounds(point.row, point.col):
                raise PreconditionError(
                    f"{label} {tuple(point)} outside {grid.width}x{grid.height} grid"
                )

        if grid.width % 2 == 0 or grid.height % 2 == 0:
            logger.warning(
                "Grid %dx%d has an even dimension; the far row/column will not be carved",
                grid.width, grid.height,
            )

    def run(self) -> Iterator[str]:
        grid = self.grid

        # Phase 1: Fill
        grid.fill(Tile.WALL)
        yield "Filled"

        # Phase 2: Carve
        carver = RecursiveBacktracker(grid, self.start, rng=self.rng)
        for status in carver.run():
            self.step_count = carver.step_count
            yield status

        grid.set_tile(self.start.row, self.start.col, Tile.NORMAL)
        grid.set_tile(self.goal.row, self.goal.col, Tile.NORMAL)
        logger.debug("Carved %d lattice steps", carver.step_count)
        yield "Carved"

        # Phase 3: Braid
        self.report.braided = MazePostProcessor.braid(
            grid, chance=self.config.braid_chance, rng=self.rng
        )
        yield f"Braided: {self.report.braided} walls removed"

        # Phase 4: Terrain
        self._scatter_terrain()
        yield f"Terrain: {self.report.water} water, {self.report.mud} mud"

        # Phase 5: Seal
        if self.force_seal is not None:
            seal = self.force_seal
        else:
            seal = self.rng.random() < self.config.seal_chance
        if seal:
            self.seal_goal()
        self.report.sealed = seal

        self.report.open_cells = grid.width * grid.height - grid.count(Tile.WALL)
        logger.info(
            "Generated %dx%d maze: %d open cells, %d braided, %d water, %d mud%s",
            grid.width, grid.height, self.report.open_cells, self.report.braided,
            self.report.water, self.report.mud, " (goal sealed)" if seal else "",
        )
        yield "Done"

    def generate(self) -> GenerationReport:
        self.run_all()
        return self.report

    def _scatter_terrain(self):
        water_cut = self.config.water_chance
        mud_cut = water_cut + self.config.mud_chance

        for r in range(self.grid.height):
            for c in range(self.grid.width):
                if self.grid.tile_at(r, c) != Tile.NORMAL:
                    continue
                if (r, c) == (self.start.row, self.start.col):
                    continue
                if (r, c) == (self.goal.row, self.goal.col):
                    continue

                roll = self.rng.random()
                if roll < water_cut:
                    self.grid.set_tile(r, c, Tile.WATER)
                    self.report.water += 1
                elif roll < mud_cut:
                    self.grid.set_tile(r, c, Tile.MUD)
                    self.report.mud += 1

    def seal_goal(self):
        """Walls off every orthogonal neighbour of the goal."""
        for dr, dc in Grid.DIRECTIONS:
            self.grid.set_tile(self.goal.row + dr, self.goal.col + dc, Tile.WALL)
