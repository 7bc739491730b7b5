import sys
import os
import json
import logging
import argparse
from dataclasses import dataclass, asdict
from typing import List, Dict, Any

# Setup Path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from maze_race.core.grid import Grid
from maze_race.core.config import MazeConfig
from maze_race.algo.generator import MazeGenerator
from maze_race.algo.race import run_race, leaderboard

# Setup Logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger("Benchmark")


@dataclass
class RunResult:
    seed: int
    size: str
    braid: float
    sealed: bool
    algo: str
    found: bool
    time_ms: float
    path_len: int
    cost: int
    visited: int
    best: bool


class RaceBenchmark:
    def __init__(self, output_dir="benchmarks", sizes=None, braids=None, seeds=20):
        self.output_dir = output_dir
        self.res_dir = os.path.join(output_dir, "results")
        self.graph_dir = os.path.join(output_dir, "graphs")

        for d in [self.res_dir, self.graph_dir]:
            os.makedirs(d, exist_ok=True)

        self.sizes = sizes or [(25, 25), (51, 51), (101, 101)]
        self.braids = braids or [0.0, 0.18, 0.5]
        self.seeds = seeds

    def run(self) -> List[Dict[str, Any]]:
        logger.info("Step 1: Racing solvers...")
        results = []

        for w, h in self.sizes:
            for braid in self.braids:
                config = MazeConfig(braid_chance=braid)
                for seed in range(self.seeds):
                    grid = Grid(w, h)
                    gen = MazeGenerator(grid, config=config, seed=seed)
                    report = gen.generate()

                    entries = leaderboard(run_race(grid, gen.start, gen.goal))
                    for e in entries:
                        r = e.result
                        results.append(asdict(RunResult(
                            seed=seed,
                            size=f"{w}x{h}",
                            braid=braid,
                            sealed=report.sealed,
                            algo=r.algorithm,
                            found=r.found,
                            time_ms=r.elapsed_ms,
                            path_len=r.path_length,
                            cost=r.cost,
                            visited=r.nodes_explored,
                            best=e.best,
                        )))
                logger.info(f"  {w}x{h} braid={braid}: {self.seeds} mazes raced")

        final_path = os.path.join(self.res_dir, "race_results.json")
        with open(final_path, "w") as f:
            json.dump(results, f, indent=2)
        logger.info(f"Results saved to {final_path}")
        return results

    def generate_graphs(self):
        logger.info("Step 2: Generating Graphs...")
        try:
            import matplotlib
            matplotlib.use("Agg")
            import matplotlib.pyplot as plt
            import pandas as pd
            import seaborn as sns
        except ImportError:
            logger.error("Missing matplotlib/pandas/seaborn. Install the 'bench' extra to generate graphs.")
            return

        res_path = os.path.join(self.res_dir, "race_results.json")
        if not os.path.exists(res_path):
            logger.warning("No results found.")
            return

        df = pd.read_json(res_path)
        solved = df[df["found"]].copy()
        # Exploration overhead: cells expanded per path cell
        solved["efficiency"] = solved["visited"] / solved["path_len"]

        graph_definitions = [
            ("Nodes Explored", lambda d: sns.barplot(data=d, x="algo", y="visited", hue="size")),
            ("Path Cost", lambda d: sns.barplot(data=solved, x="algo", y="cost", hue="size")),
            ("Path Length", lambda d: sns.boxplot(data=solved, x="algo", y="path_len")),
            ("Time (ms)", lambda d: sns.boxplot(data=d, x="algo", y="time_ms")),
            ("Braid Impact on Cost", lambda d: sns.lineplot(data=solved, x="braid", y="cost", hue="algo")),
            ("Search Efficiency (Visited/Path)", lambda d: sns.stripplot(data=solved, x="algo", y="efficiency", hue="braid")),
            ("Wins (Cheapest Path)", lambda d: sns.countplot(data=d[d["best"]], x="algo")),
            ("Unsolvable Exploration", lambda d: sns.barplot(data=d[~d["found"]], x="algo", y="visited")),
        ]

        fig, axes = plt.subplots(4, 2, figsize=(16, 20))
        fig.suptitle("Maze Race: BFS vs DFS vs Dijkstra vs A*", fontsize=18)
        axes = axes.flatten()

        for i, (title, plot_func) in enumerate(graph_definitions):
            plt.sca(axes[i])
            try:
                plot_func(df)
            except (ValueError, KeyError) as e:
                logger.error(f"Plot {title} failed: {e}")
            plt.title(title)

        plt.tight_layout(rect=[0, 0.03, 1, 0.95])
        out = os.path.join(self.graph_dir, "race_dashboard.png")
        plt.savefig(out)
        logger.info(f"Saved {out}")
        plt.close()

        summary = df.groupby("algo")[["visited", "cost", "time_ms"]].mean()
        print(summary.to_string())


def main():
    parser = argparse.ArgumentParser(description="Race benchmark across many seeded mazes")
    parser.add_argument("--out", type=str, default="benchmarks", help="Output directory")
    parser.add_argument("--seeds", type=int, default=20, help="Mazes per size/braid combination")
    parser.add_argument("--no-graphs", action="store_true", help="Skip graph generation")
    args = parser.parse_args()

    bench = RaceBenchmark(output_dir=args.out, seeds=args.seeds)
    bench.run()
    if not args.no_graphs:
        bench.generate_graphs()


if __name__ == "__main__":
    main()
