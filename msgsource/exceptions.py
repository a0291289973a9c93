"""
Message Source Exceptions

Domain failures (unknown catalogue, zero-match mutation) are reported as
boolean results. Only storage faults are raised.
"""


class MsgSourceError(Exception):
    """Message source error with optional code and details."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class StorageError(MsgSourceError):
    """The catalogue database could not be reached or queried."""
