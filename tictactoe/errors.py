from __future__ import annotations


class InvalidMoveError(ValueError):
    """A command was rejected because its input breaks a game rule.

    Subclasses ValueError so routes handle it like every other input error.
    """


class StorageWriteError(RuntimeError):
    """Persisting a new snapshot failed. The previously stored snapshot is still current."""
