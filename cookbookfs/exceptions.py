"""Errors raised by the virtual cookbook filesystem.

Filesystem-style errors describe *what* went wrong with a node (it is
missing, it cannot be written, the cookbook is frozen) so that callers
walking the tree can react without knowing whether the node lives on disk
or on the server.
"""

from typing import Any, Optional


class FileSystemError(Exception):
    """Base class for errors raised by VFS nodes.

    Attributes:
        entry: The node the error is about
        cause: The lower-level exception, if any
        reason: Human readable explanation
    """

    def __init__(
        self,
        entry: Any,
        cause: Optional[BaseException] = None,
        reason: Optional[str] = None,
    ):
        self.entry = entry
        self.cause = cause
        self.reason = reason
        super().__init__(self._message())

    def _message(self) -> str:
        if self.reason:
            return self.reason
        if self.cause is not None:
            return str(self.cause)
        return self.__class__.__name__


class NotFoundError(FileSystemError):
    """The node does not exist."""
    pass


class OperationNotAllowedError(FileSystemError):
    """The node does not support the requested operation."""
    pass


class OperationFailedError(FileSystemError):
    """An operation on a node failed.

    Attributes:
        operation: What was being attempted ("read", "write", "create_child", ...)
    """

    def __init__(
        self,
        operation: str,
        entry: Any,
        cause: Optional[BaseException] = None,
        reason: Optional[str] = None,
    ):
        self.operation = operation
        super().__init__(entry, cause, reason)


class AlreadyExistsError(OperationFailedError):
    """The target already exists and may not be replaced."""
    pass


class CookbookFrozenError(AlreadyExistsError):
    """The cookbook version is frozen on the server; --force is required."""
    pass


class CookbookFrozen(Exception):
    """Raised by the uploader when the server refuses to overwrite a frozen version."""

    def __init__(self, cookbook_name: str, version: Optional[str] = None):
        self.cookbook_name = cookbook_name
        self.version = version
        label = f"{cookbook_name} {version}" if version else cookbook_name
        super().__init__(
            f"Version {label} is frozen. Use --force to override."
        )
