"""cookbookfs - a cookbook server presented as a directory tree."""

__version__ = "0.1.0"

from cookbookfs.exceptions import (
    FileSystemError,
    OperationFailedError,
    CookbookFrozenError,
    NotFoundError,
)
from cookbookfs.rest import ServerAPI

__all__ = [
    "FileSystemError",
    "OperationFailedError",
    "CookbookFrozenError",
    "NotFoundError",
    "ServerAPI",
]
