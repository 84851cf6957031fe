"""
Common exceptions definition.
"""

__all__ = (
    "Error",
    "SpawnError",
)


class Error(Exception):
    pass


class SpawnError(Error):
    """Error starting external process"""
