import argparse
import sys
import os
import logging

# Ensure project root is in path so we can import 'maze_race' package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from maze_race.core.errors import MazeRaceError

logger = logging.getLogger("maze_race")


def setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got '{text}'")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return value


def parse_coord(text: str):
    from maze_race.core.grid import Coord
    try:
        col, row = (int(part) for part in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected COL,ROW, got '{text}'")
    return Coord(col, row)


def add_maze_options(p: argparse.ArgumentParser):
    p.add_argument("--width", type=positive_int, default=25, help="Maze Width (odd recommended)")
    p.add_argument("--height", type=positive_int, default=25, help="Maze Height (odd recommended)")
    p.add_argument("--seed", type=int, default=None, help="Random Seed")
    p.add_argument("--config", type=str, help="JSON file with braid/water/mud/seal chances")
    p.add_argument("--braid", type=float, default=None, help="Braid chance (0.0 - 1.0)")
    p.add_argument("--water", type=float, default=None, help="Water chance (0.0 - 1.0)")
    p.add_argument("--mud", type=float, default=None, help="Mud chance (0.0 - 1.0)")
    p.add_argument("--seal", type=float, default=None, help="Seal chance (0.0 - 1.0)")
    seal = p.add_mutually_exclusive_group()
    seal.add_argument("--force-seal", dest="force_seal", action="store_const", const=True,
                      default=None, help="Always seal the goal")
    seal.add_argument("--no-seal", dest="force_seal", action="store_const", const=False,
                      help="Never seal the goal")


def build_parser() -> argparse.ArgumentParser:
    from maze_race.algo.solvers import SOLVERS

    parser = argparse.ArgumentParser(description="Maze Race: four search algorithms on a braided, weighted maze")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Generate Command
    gen_parser = subparsers.add_parser("generate", help="Generate a new maze")
    add_maze_options(gen_parser)
    gen_parser.add_argument("--out", type=str, help="Output file path (optional)")
    gen_parser.add_argument("--compress", action="store_true", help="zlib-compress tile data")
    gen_parser.add_argument("--ascii", action="store_true", help="Print the maze as text")
    gen_parser.add_argument("--record-events", type=str, help="Save generation events to binary file")

    # Solve Command
    solve_parser = subparsers.add_parser("solve", help="Solve an existing maze")
    solve_parser.add_argument("input_file", help="Path to maze file")
    solve_parser.add_argument("--algo", type=str, default="astar", choices=list(SOLVERS), help="Solver algorithm")
    solve_parser.add_argument("--start", type=parse_coord, help="Start as COL,ROW (default from file)")
    solve_parser.add_argument("--goal", type=parse_coord, help="Goal as COL,ROW (default from file)")
    solve_parser.add_argument("--shuffle", action="store_true", help="DFS: randomize neighbour order")
    solve_parser.add_argument("--seed", type=int, default=None, help="DFS shuffle seed")
    solve_parser.add_argument("--ascii", action="store_true", help="Print the maze with the path")
    solve_parser.add_argument("--record-events", type=str, help="Save solver events to binary file")

    # Race Command
    race_parser = subparsers.add_parser("race", help="Run all four solvers and print a leaderboard")
    race_parser.add_argument("input_file", nargs="?", help="Maze file (omit to generate one)")
    add_maze_options(race_parser)

    # Replay Command
    replay_parser = subparsers.add_parser("replay", help="Replay an event log")
    replay_parser.add_argument("event_file", help="Path to event log file")
    replay_parser.add_argument("--ascii", action="store_true", help="Print the rebuilt maze")

    return parser


def maze_config(args):
    from maze_race.core.config import MazeConfig
    config = MazeConfig.from_file(args.config) if args.config else MazeConfig()
    return config.replace(
        braid_chance=args.braid,
        water_chance=args.water,
        mud_chance=args.mud,
        seal_chance=args.seal,
    )


def generate_maze(args, event_writer=None):
    from maze_race.core.grid import Grid
    from maze_race.algo.generator import MazeGenerator

    config = maze_config(args)
    grid = Grid(args.width, args.height, event_writer=event_writer)
    generator = MazeGenerator(grid, config=config, seed=args.seed, force_seal=args.force_seal)
    logger.info(f"Generating {args.width}x{args.height} maze (seed={args.seed})...")
    report = generator.generate()
    meta = {
        "seed": args.seed,
        "start": list(generator.start),
        "goal": list(generator.goal),
        "sealed": report.sealed,
        "config": config.to_dict(),
    }
    return grid, generator.start, generator.goal, meta


def endpoints(grid, meta, start=None, goal=None):
    from maze_race.core.grid import Coord
    from maze_race.algo.generator import default_start, default_goal
    if start is None:
        start = Coord(*meta["start"]) if "start" in meta else default_start(grid)
    if goal is None:
        goal = Coord(*meta["goal"]) if "goal" in meta else default_goal(grid)
    return start, goal


def cmd_generate(args):
    from maze_race.core.events import EventWriter
    from maze_race.core.complexity import MazePostProcessor
    from maze_race.io.serializer import MazeSerializer

    evt_writer = None
    if args.record_events:
        evt_writer = EventWriter(args.record_events)
        logger.info(f"Recording events to {args.record_events}...")

    try:
        grid, start, goal, meta = generate_maze(args, event_writer=evt_writer)
    finally:
        if evt_writer:
            evt_writer.close()

    stats = MazePostProcessor.calculate_stats(grid)
    logger.info(f"Stats: {stats}")

    if args.ascii:
        print(MazeSerializer.to_ascii(grid, start, goal))

    # Save output if requested
    if args.out:
        logger.info(f"Saving maze to {args.out}...")
        MazeSerializer.save(grid, args.out, meta=meta, compress=args.compress)
        logger.info("Save complete.")


def cmd_solve(args):
    from maze_race.core.events import EventWriter
    from maze_race.algo.solvers import get_solver
    from maze_race.io.serializer import MazeSerializer

    logger.info(f"Loading {args.input_file}...")
    grid, meta = MazeSerializer.load(args.input_file)
    start, goal = endpoints(grid, meta, args.start, args.goal)
    logger.info(f"Loaded {grid.width}x{grid.height} maze. Meta: {meta}")

    kwargs = {}
    if args.algo == "dfs":
        kwargs = {"shuffle": args.shuffle, "seed": args.seed}

    evt_writer = None
    if args.record_events:
        evt_writer = EventWriter(args.record_events)
        # Grid is already built, so snapshot its tiles first
        evt_writer.log_grid(grid)
        grid.event_writer = evt_writer
        logger.info(f"Recording events to {args.record_events}...")

    try:
        solver = get_solver(args.algo, event_writer=evt_writer, **kwargs)
        logger.info(f"Solving with {solver.name} from {tuple(start)} to {tuple(goal)}...")
        result = solver.find_path(grid, start, goal)
    finally:
        if evt_writer:
            grid.event_writer = None
            evt_writer.close()
            logger.info(f"Saved events to {args.record_events}")

    if result.found:
        print(f"{result.algorithm}: path {result.path_length}, cost {result.cost}, "
              f"explored {result.nodes_explored} in {result.elapsed_ms:.3f} ms")
    else:
        print(f"{result.algorithm}: no path found (explored {result.nodes_explored})")

    if args.ascii:
        text = MazeSerializer.to_ascii(grid, start, goal)
        rows = [list(line) for line in text.splitlines()]
        for p in result.path[1:-1]:
            rows[p.row][p.col] = "*"
        print("\n".join("".join(row) for row in rows))


def cmd_race(args):
    from maze_race.algo.race import run_race, leaderboard, format_leaderboard
    from maze_race.io.serializer import MazeSerializer

    if args.input_file:
        grid, meta = MazeSerializer.load(args.input_file)
        start, goal = endpoints(grid, meta)
    else:
        grid, start, goal, meta = generate_maze(args)

    results = run_race(grid, start, goal)
    print(format_leaderboard(leaderboard(results)))
    if not any(r.found for r in results):
        print("No path found.")


def cmd_replay(args):
    from maze_race.core.events import EventReader
    from maze_race.io.replay import ReplayAdapter
    from maze_race.io.serializer import MazeSerializer

    logger.info(f"Replaying {args.event_file}...")
    with EventReader(args.event_file) as reader:
        adapter = ReplayAdapter(reader)
        logger.info(f"Log Header: {adapter.grid.width}x{adapter.grid.height}")
        adapter.run_all()

    print(f"Searches: {adapter.searches} | Visited: {adapter.visited_count} | Path: {len(adapter.path)}")
    if args.ascii:
        print(MazeSerializer.to_ascii(adapter.grid))


COMMANDS = {
    "generate": cmd_generate,
    "solve": cmd_solve,
    "race": cmd_race,
    "replay": cmd_replay,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    logger.info(f"Running command: {args.command}")
    try:
        COMMANDS[args.command](args)
    except MazeRaceError as e:
        logger.error(str(e))
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
