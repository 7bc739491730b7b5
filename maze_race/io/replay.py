from typing import Iterator, List
from maze_race.core.grid import Grid, Tile, Coord
from maze_race.core.events import EventReader, EVT_TILE, EVT_VISIT, EVT_PATH_ADD, EVT_RESET


class ReplayAdapter:
    """
    Rebuilds a grid, its visited order and the final path from an event log.
    Follows the generator protocol: run() applies events as it iterates.
    """
    def __init__(self, reader: EventReader, grid: Grid = None):
        self.reader = reader
        width, height = reader.read_header()
        if grid is None:
            grid = Grid(width, height)
        self.grid = grid

        self.visited_count = 0
        self.path: List[Coord] = []
        self.searches = 0

    def run(self) -> Iterator[str]:
        count = 0
        for type_code, data in self.reader.stream_events():
            count += 1

            if type_code == EVT_TILE:
                x, y, tile = data
                self.grid.set_tile(y, x, Tile(tile))

            elif type_code == EVT_VISIT:
                x, y = data
                self.grid.mark_visited(y, x)
                self.visited_count += 1

            elif type_code == EVT_PATH_ADD:
                x, y = data
                self.path.append(Coord(x, y))

            elif type_code == EVT_RESET:
                # A new search starts; only the latest one is kept
                self.grid.reset_visited_log()
                self.visited_count = 0
                self.path = []
                self.searches += 1

            # Yield every N steps
            if count % 50 == 0:
                yield "Replay"

        yield "Done"

    def run_all(self):
        for _ in self.run():
            pass
