import unittest
import sys
import os
import io
import json
import shutil
import struct
import tempfile
from contextlib import redirect_stdout, redirect_stderr

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from maze_race.main import main
from maze_race.io.serializer import MazeSerializer
from maze_race.core.events import MAGIC, EVT_TILE


def run_cli(*argv):
    out = io.StringIO()
    with redirect_stdout(out):
        code = main(list(argv))
    return code, out.getvalue()


class TestCLI(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.maze = os.path.join(self.tmp, "m.maze")

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_generate_and_solve(self):
        code, out = run_cli("generate", "--width", "15", "--height", "15", "--seed", "4",
                            "--no-seal", "--ascii", "--out", self.maze)
        self.assertEqual(code, 0)
        self.assertIn("S", out)
        self.assertIn("G", out)

        grid, meta = MazeSerializer.load(self.maze)
        self.assertEqual(meta["start"], [1, 1])
        self.assertEqual(meta["goal"], [13, 13])
        self.assertFalse(meta["sealed"])

        code, out = run_cli("solve", self.maze, "--algo", "bfs")
        self.assertEqual(code, 0)
        self.assertIn("BFS: path", out)

    def test_sealed_solve_reports_no_path(self):
        run_cli("generate", "--width", "11", "--height", "11", "--seed", "1",
                "--force-seal", "--out", self.maze)
        code, out = run_cli("solve", self.maze, "--algo", "dfs", "--shuffle", "--seed", "2")
        self.assertEqual(code, 0)
        self.assertIn("no path found", out)

    def test_race_on_the_fly(self):
        code, out = run_cli("race", "--width", "11", "--height", "11", "--seed", "7", "--no-seal")
        self.assertEqual(code, 0)
        self.assertIn("Dijkstra", out)
        self.assertIn("best", out)

    def test_config_file_overrides(self):
        cfg = os.path.join(self.tmp, "cfg.json")
        with open(cfg, "w") as f:
            json.dump({"water_chance": 0.0, "mud_chance": 0.0}, f)
        run_cli("generate", "--seed", "3", "--config", cfg, "--braid", "0.5", "--out", self.maze)
        _, meta = MazeSerializer.load(self.maze)
        self.assertEqual(meta["config"]["water_chance"], 0.0)
        self.assertEqual(meta["config"]["braid_chance"], 0.5)

    def test_record_and_replay(self):
        events = os.path.join(self.tmp, "solve.events")
        run_cli("generate", "--width", "11", "--height", "11", "--seed", "5", "--no-seal", "--out", self.maze)
        code, _ = run_cli("solve", self.maze, "--algo", "astar", "--record-events", events)
        self.assertEqual(code, 0)

        code, out = run_cli("replay", events)
        self.assertEqual(code, 0)
        self.assertIn("Searches: 1", out)

    def test_bad_maze_file_exits_with_error(self):
        bad = os.path.join(self.tmp, "bad.maze")
        with open(bad, "wb") as f:
            f.write(b"garbage")
        code, _ = run_cli("solve", bad)
        self.assertEqual(code, 2)

    def test_invalid_config_exits_with_error(self):
        code, _ = run_cli("generate", "--braid", "4")
        self.assertEqual(code, 2)

    def test_non_positive_size_is_usage_error(self):
        for size in ("0", "-3", "ten"):
            with redirect_stderr(io.StringIO()):
                with self.assertRaises(SystemExit) as cm:
                    run_cli("generate", "--width", size)
            self.assertEqual(cm.exception.code, 2)

    def test_bad_tile_in_event_log_exits_with_error(self):
        events = os.path.join(self.tmp, "bad.events")
        with open(events, "wb") as f:
            f.write(MAGIC)
            f.write(struct.pack(">II", 3, 3))
            f.write(struct.pack(">BHHB", EVT_TILE, 0, 0, 9))
        code, _ = run_cli("replay", events)
        self.assertEqual(code, 2)

    def test_no_command_prints_help(self):
        code, out = run_cli()
        self.assertEqual(code, 0)
        self.assertIn("generate", out)


if __name__ == '__main__':
    unittest.main()
