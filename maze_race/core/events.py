import struct
from typing import Iterator, Tuple

from maze_race.core.errors import FormatError
from maze_race.core.grid import Tile

MAGIC = b"RACELOG"

# Event Types
EVT_TILE = 0x01
EVT_VISIT = 0x02
EVT_PATH_ADD = 0x03
EVT_RESET = 0x04

# Payload sizes (excluding the type byte)
_PAYLOAD = {
    EVT_TILE: 5,     # 2 shorts + 1 byte
    EVT_VISIT: 4,    # 2 shorts
    EVT_PATH_ADD: 4,
    EVT_RESET: 0,
}


class EventWriter:
    def __init__(self, filename: str):
        self.filename = filename
        self.file = open(filename, "wb")
        self.header_written = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def write_header(self, width: int, height: int):
        # Header: Magic "RACELOG" + Width (4b) + Height (4b)
        if self.header_written:
            return
        self.file.write(MAGIC)
        self.file.write(struct.pack(">II", width, height))
        self.header_written = True

    def log_grid(self, grid):
        """Header plus a snapshot of every tile, for grids loaded rather than generated."""
        self.write_header(grid.width, grid.height)
        for y in range(grid.height):
            for x in range(grid.width):
                self.log_tile(x, y, grid.cells[y * grid.width + x])

    def log_tile(self, x: int, y: int, tile: int):
        # 'H' (unsigned short) per coordinate is plenty for any maze we build
        self.file.write(struct.pack(">BHHB", EVT_TILE, x, y, int(tile)))

    def log_visit(self, x: int, y: int):
        self.file.write(struct.pack(">BHH", EVT_VISIT, x, y))

    def log_path_add(self, x: int, y: int):
        self.file.write(struct.pack(">BHH", EVT_PATH_ADD, x, y))

    def log_reset(self):
        self.file.write(struct.pack(">B", EVT_RESET))

    def close(self):
        if self.file:
            self.file.close()
            self.file = None


class EventReader:
    def __init__(self, filename: str):
        self.filename = filename
        self.file = open(filename, "rb")
        self.width = 0
        self.height = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def read_header(self) -> Tuple[int, int]:
        magic = self.file.read(len(MAGIC))
        if magic != MAGIC:
            raise FormatError(f"{self.filename} is not an event log")
        data = self.file.read(8)
        if len(data) != 8:
            raise FormatError(f"{self.filename}: truncated header")
        self.width, self.height = struct.unpack(">II", data)
        return self.width, self.height

    def stream_events(self) -> Iterator[Tuple[int, Tuple]]:
        while True:
            type_byte = self.file.read(1)
            if not type_byte:
                break

            type_code = ord(type_byte)
            size = _PAYLOAD.get(type_code)
            if size is None:
                raise FormatError(f"{self.filename}: unknown event type 0x{type_code:02x}")

            data = self.file.read(size)
            if len(data) != size:
                raise FormatError(f"{self.filename}: truncated event 0x{type_code:02x}")

            if type_code == EVT_TILE:
                x, y, tile = struct.unpack(">HHB", data)
                if tile > max(Tile):
                    raise FormatError(f"{self.filename}: unknown tile value {tile}")
                yield (type_code, (x, y, tile))
            elif type_code in (EVT_VISIT, EVT_PATH_ADD):
                yield (type_code, struct.unpack(">HH", data))
            else:
                yield (type_code, ())

    def close(self):
        if self.file:
            self.file.close()
            self.file = None
