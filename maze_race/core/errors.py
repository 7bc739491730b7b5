class MazeRaceError(Exception):
    """Base class for errors raised by maze_race."""


class PreconditionError(MazeRaceError, ValueError):
    """A caller passed arguments that violate a documented precondition."""


class ConfigError(MazeRaceError, ValueError):
    pass


class FormatError(MazeRaceError, ValueError):
    """A maze or event log file could not be decoded."""
