import struct
import json
import zlib
from typing import Optional, Dict, Any, Tuple
from array import array

from maze_race.core.grid import Grid, Tile, Coord
from maze_race.core.errors import FormatError

ASCII_TILES = {
    "#": Tile.WALL,
    ".": Tile.NORMAL,
    "~": Tile.MUD,
    "w": Tile.WATER,
}
TILE_CHARS = {tile: ch for ch, tile in ASCII_TILES.items()}


class MazeSerializer:
    MAGIC = b"RACE"
    VERSION = 1

    # Flags
    FLAG_COMPRESSED = 1

    @staticmethod
    def save(grid: Grid, filepath: str, meta: Dict[str, Any] = None, compress=False):
        """
        Saves the maze to a binary file.
        Format:
        - MAGIC (4 bytes)
        - VERSION (1 byte)
        - FLAGS (1 byte)
        - WIDTH (4 bytes)
        - HEIGHT (4 bytes)
        - META_LEN (2 bytes)
        - META_JSON (META_LEN bytes)
        - DATA_LEN (4 bytes)
        - DATA (one tile byte per cell, row-major, optionally zlib compressed)
        """
        if meta is None:
            meta = {}

        flags = 0
        if compress:
            flags |= MazeSerializer.FLAG_COMPRESSED

        meta_bytes = json.dumps(meta).encode('utf-8')

        data = grid.cells.tobytes()
        if compress:
            data = zlib.compress(data)

        with open(filepath, "wb") as f:
            f.write(MazeSerializer.MAGIC)
            f.write(struct.pack("<BB", MazeSerializer.VERSION, flags))
            f.write(struct.pack("<II", grid.width, grid.height))
            f.write(struct.pack("<H", len(meta_bytes)))
            f.write(meta_bytes)
            f.write(struct.pack("<I", len(data)))
            f.write(data)

    @staticmethod
    def load(filepath: str) -> Tuple[Grid, Dict[str, Any]]:
        with open(filepath, "rb") as f:
            magic = f.read(4)
            if magic != MazeSerializer.MAGIC:
                raise FormatError(f"{filepath} is not a maze file")

            try:
                version, flags = struct.unpack("<BB", f.read(2))
                width, height = struct.unpack("<II", f.read(8))
                meta_len = struct.unpack("<H", f.read(2))[0]
                meta = json.loads(f.read(meta_len).decode('utf-8'))
                data_len = struct.unpack("<I", f.read(4))[0]
                data = f.read(data_len)
            except (struct.error, ValueError) as e:
                raise FormatError(f"{filepath}: corrupt header ({e})") from e

        if version != MazeSerializer.VERSION:
            raise FormatError(f"{filepath}: unsupported version {version}")

        if flags & MazeSerializer.FLAG_COMPRESSED:
            try:
                data = zlib.decompress(data)
            except zlib.error as e:
                raise FormatError(f"{filepath}: corrupt tile data ({e})") from e

        if width <= 0 or height <= 0:
            raise FormatError(f"{filepath}: invalid dimensions {width}x{height}")
        if len(data) != width * height:
            raise FormatError(
                f"{filepath}: expected {width * height} tiles, found {len(data)}"
            )
        if data and max(data) > max(Tile):
            raise FormatError(f"{filepath}: unknown tile value {max(data)}")

        grid = Grid(width, height)
        # Replace cells completely
        grid.cells = array('B', data)
        return grid, meta

    @staticmethod
    def to_ascii(grid: Grid, start: Coord = None, goal: Coord = None) -> str:
        rows = []
        for r in range(grid.height):
            line = []
            for c in range(grid.width):
                if start is not None and (c, r) == tuple(start):
                    line.append("S")
                elif goal is not None and (c, r) == tuple(goal):
                    line.append("G")
                else:
                    line.append(TILE_CHARS[grid.tile_at(r, c)])
            rows.append("".join(line))
        return "\n".join(rows)

    @staticmethod
    def from_ascii(text: str) -> Tuple[Grid, Optional[Coord], Optional[Coord]]:
        """
        Parses the to_ascii format. 'S' and 'G' mark normal start/goal cells.
        Blank leading/trailing lines and surrounding whitespace are ignored.
        """
        lines = [line.strip() for line in text.strip().splitlines()]
        if not lines or not lines[0]:
            raise FormatError("Empty maze text")
        width = len(lines[0])
        if any(len(line) != width for line in lines):
            raise FormatError("Maze rows must all have the same length")

        grid = Grid(width, len(lines))
        start = goal = None
        for r, line in enumerate(lines):
            for c, ch in enumerate(line):
                if ch == "S":
                    if start is not None:
                        raise FormatError(f"Second start 'S' at row {r}, col {c}")
                    start = Coord(c, r)
                    tile = Tile.NORMAL
                elif ch == "G":
                    if goal is not None:
                        raise FormatError(f"Second goal 'G' at row {r}, col {c}")
                    goal = Coord(c, r)
                    tile = Tile.NORMAL
                elif ch in ASCII_TILES:
                    tile = ASCII_TILES[ch]
                else:
                    raise FormatError(f"Unknown maze character {ch!r} at row {r}, col {c}")
                grid.set_tile(r, c, tile)
        return grid, start, goal
