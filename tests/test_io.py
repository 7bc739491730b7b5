import unittest
import sys
import os
import shutil
import struct
import tempfile

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from maze_race.core.grid import Grid, Tile, Coord
from maze_race.core.errors import FormatError
from maze_race.core.events import EventWriter, EventReader, MAGIC, EVT_TILE, EVT_RESET
from maze_race.algo.generator import MazeGenerator
from maze_race.algo.solvers import AStar, BFS
from maze_race.io.serializer import MazeSerializer
from maze_race.io.replay import ReplayAdapter


class TestIO(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def path(self, name):
        return os.path.join(self.tmp, name)

    def test_round_trip_raw(self):
        grid = Grid(11, 9)
        MazeGenerator(grid, seed=3).generate()

        path = self.path("raw.maze")
        MazeSerializer.save(grid, path, meta={"seed": 3, "start": [1, 1]})

        grid2, meta = MazeSerializer.load(path)
        self.assertEqual(grid.cells.tobytes(), grid2.cells.tobytes())
        self.assertEqual((grid2.width, grid2.height), (11, 9))
        self.assertEqual(meta, {"seed": 3, "start": [1, 1]})

    def test_round_trip_compressed(self):
        grid = Grid(101, 101)  # larger for compression
        MazeGenerator(grid, seed=1).generate()
        raw, packed = self.path("raw.maze"), self.path("comp.maze")
        MazeSerializer.save(grid, raw)
        MazeSerializer.save(grid, packed, compress=True)

        grid2, _ = MazeSerializer.load(packed)
        self.assertEqual(grid.cells.tobytes(), grid2.cells.tobytes())
        self.assertLess(os.path.getsize(packed), os.path.getsize(raw))

    def test_bad_magic(self):
        path = self.path("junk.maze")
        with open(path, "wb") as f:
            f.write(b"NOPE" + bytes(40))
        with self.assertRaises(FormatError):
            MazeSerializer.load(path)

    def test_truncated_file(self):
        grid = Grid(5, 5)
        path = self.path("short.maze")
        MazeSerializer.save(grid, path)
        with open(path, "rb") as f:
            data = f.read()
        with open(path, "wb") as f:
            f.write(data[:-3])
        with self.assertRaises(FormatError):
            MazeSerializer.load(path)

    def test_zero_dimensions(self):
        path = self.path("empty.maze")
        with open(path, "wb") as f:
            f.write(MazeSerializer.MAGIC)
            f.write(struct.pack("<BB", MazeSerializer.VERSION, 0))
            f.write(struct.pack("<II", 0, 7))
            f.write(struct.pack("<H", 2))
            f.write(b"{}")
            f.write(struct.pack("<I", 0))
        with self.assertRaises(FormatError):
            MazeSerializer.load(path)

    def test_ascii_round_trip(self):
        text = "\n".join([
            "#####",
            "#S~w#",
            "#.#G#",
            "#####",
        ])
        grid, start, goal = MazeSerializer.from_ascii(text)
        self.assertEqual(start, Coord(1, 1))
        self.assertEqual(goal, Coord(3, 2))
        self.assertEqual(grid.tile_at(1, 2), Tile.MUD)
        self.assertEqual(grid.tile_at(1, 3), Tile.WATER)
        self.assertEqual(grid.tile_at(2, 3), Tile.NORMAL)
        self.assertEqual(MazeSerializer.to_ascii(grid, start, goal), text)

    def test_ascii_errors(self):
        with self.assertRaises(FormatError):
            MazeSerializer.from_ascii("...\n..")
        with self.assertRaises(FormatError):
            MazeSerializer.from_ascii("..x")
        with self.assertRaises(FormatError):
            MazeSerializer.from_ascii("   ")

    def test_ascii_duplicate_endpoints(self):
        with self.assertRaises(FormatError):
            MazeSerializer.from_ascii("S.S\n..G")
        with self.assertRaises(FormatError):
            MazeSerializer.from_ascii("SG.\n..G")


class TestEvents(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.log = os.path.join(self.tmp, "run.events")

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_generation_and_search_replay(self):
        with EventWriter(self.log) as writer:
            grid = Grid(15, 15, event_writer=writer)
            gen = MazeGenerator(grid, seed=21, force_seal=False)
            gen.generate()
            result = AStar(event_writer=writer).find_path(grid, gen.start, gen.goal)

        with EventReader(self.log) as reader:
            adapter = ReplayAdapter(reader)
            adapter.run_all()

        self.assertEqual(adapter.grid.cells.tobytes(), grid.cells.tobytes())
        self.assertEqual(adapter.searches, 1)
        self.assertEqual(adapter.visited_count, result.nodes_explored)
        self.assertEqual(adapter.grid.visited_order(), result.visited_order)
        self.assertEqual(adapter.path, result.path)

    def test_only_latest_search_kept(self):
        grid = Grid(6, 6)
        with EventWriter(self.log) as writer:
            writer.log_grid(grid)
            grid.event_writer = writer
            BFS().find_path(grid, Coord(0, 0), Coord(5, 5))
            last = BFS(event_writer=writer).find_path(grid, Coord(0, 0), Coord(2, 0))

        with EventReader(self.log) as reader:
            adapter = ReplayAdapter(reader)
            adapter.run_all()

        self.assertEqual(adapter.searches, 2)
        self.assertEqual(adapter.visited_count, last.nodes_explored)
        self.assertEqual(adapter.path, last.path)

    def test_stream_types(self):
        with EventWriter(self.log) as writer:
            writer.write_header(2, 1)
            writer.log_tile(1, 0, Tile.MUD)
            writer.log_reset()

        with EventReader(self.log) as reader:
            self.assertEqual(reader.read_header(), (2, 1))
            events = list(reader.stream_events())
        self.assertEqual(events, [(EVT_TILE, (1, 0, int(Tile.MUD))), (EVT_RESET, ())])

    def test_not_an_event_log(self):
        with open(self.log, "wb") as f:
            f.write(b"RACE\x01\x00")
        with EventReader(self.log) as reader:
            with self.assertRaises(FormatError):
                reader.read_header()

    def test_unknown_tile_value(self):
        with open(self.log, "wb") as f:
            f.write(MAGIC)
            f.write(struct.pack(">II", 3, 3))
            f.write(struct.pack(">BHHB", EVT_TILE, 0, 0, 9))
        with EventReader(self.log) as reader:
            reader.read_header()
            with self.assertRaises(FormatError):
                list(reader.stream_events())


if __name__ == '__main__':
    unittest.main()
