import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from maze_race.core.grid import Grid
from maze_race.algo.generator import MazeGenerator
from maze_race.algo.race import run_race, leaderboard, format_leaderboard
from maze_race.io.serializer import MazeSerializer


class TestRace(unittest.TestCase):
    def test_runs_every_solver(self):
        grid, start, goal = MazeSerializer.from_ascii("""
            SwG
            ...
        """)
        results = run_race(grid, start, goal)
        self.assertEqual([r.algorithm for r in results], ["BFS", "DFS", "Dijkstra", "A*"])

    def test_subset_and_dfs_options(self):
        grid = Grid(7, 7)
        results = run_race(grid, (0, 0), (6, 6), names=["dfs", "astar"], shuffle=True, seed=4)
        self.assertEqual([r.algorithm for r in results], ["DFS", "A*"])

    def test_leaderboard_flags_best_and_worst(self):
        grid, start, goal = MazeSerializer.from_ascii("""
            SwG
            ...
        """)
        entries = leaderboard(run_race(grid, start, goal))

        self.assertEqual([e.rank for e in entries], [1, 2, 3, 4])
        self.assertTrue(entries[0].best)
        self.assertEqual(entries[0].result.cost, 4)
        self.assertEqual(sum(e.best for e in entries), 1)

        worst = [e for e in entries if e.worst]
        self.assertEqual(len(worst), 1)
        self.assertEqual(worst[0].result.cost, 11)

    def test_leaderboard_tie_has_no_worst(self):
        grid, start, goal = MazeSerializer.from_ascii("S..G")
        entries = leaderboard(run_race(grid, start, goal))
        self.assertTrue(all(e.result.cost == 3 for e in entries))
        self.assertFalse(any(e.worst for e in entries))
        self.assertEqual(sum(e.best for e in entries), 1)

    def test_unsolvable_race(self):
        grid = Grid(15, 15)
        gen = MazeGenerator(grid, seed=1, force_seal=True)
        gen.generate()

        entries = leaderboard(run_race(grid, gen.start, gen.goal))
        self.assertEqual(len(entries), 4)
        self.assertFalse(any(e.result.found for e in entries))
        self.assertFalse(any(e.best or e.worst for e in entries))

        table = format_leaderboard(entries)
        self.assertIn("Dijkstra", table)
        self.assertNotIn("best", table)

    def test_format_leaderboard(self):
        grid = Grid(5, 5)
        table = format_leaderboard(leaderboard(run_race(grid, (0, 0), (4, 4))))
        for name in ("BFS", "DFS", "Dijkstra", "A*"):
            self.assertIn(name, table)
        self.assertIn("best", table)


if __name__ == '__main__':
    unittest.main()
