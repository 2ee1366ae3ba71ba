"""Upload cookbooks from one cookbooks directory to another.

Only one level is compared: each source cookbook is created (uploaded)
in the destination directory as a whole.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from cookbookfs.exceptions import FileSystemError, NotFoundError, OperationNotAllowedError
from cookbookfs.vfs.base import DirectoryNode, Node

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Outcome of uploading one cookbook."""
    name: str
    ok: bool
    error: Optional[FileSystemError] = None


def select_cookbooks(source_dir: DirectoryNode, names: Optional[Iterable[str]] = None) -> List[Node]:
    """Pick the source cookbooks to upload.

    Args:
        source_dir: Directory of cookbooks to read from
        names: Cookbook names; all cookbooks when omitted

    Raises:
        NotFoundError: If a named cookbook is not in source_dir
    """
    if not names:
        return list(source_dir.list_children())

    selected = []
    for name in names:
        child = source_dir.get_child(name)
        if child is None:
            raise NotFoundError(source_dir, reason=f"Cookbook {name} not found in {source_dir.get_path()}")
        selected.append(child)
    return selected


def upload_cookbooks(
    source_dir: DirectoryNode,
    dest_dir: DirectoryNode,
    names: Optional[Iterable[str]] = None,
    options: Any = None,
) -> List[UploadResult]:
    """Create every selected source cookbook in dest_dir.

    Filesystem errors are recorded per cookbook and the remaining
    cookbooks are still uploaded; any other error propagates.

    Returns:
        One UploadResult per cookbook, in upload order
    """
    results = []
    for cookbook in select_cookbooks(source_dir, names):
        if not dest_dir.can_have_child(cookbook.name, cookbook.is_dir()):
            results.append(UploadResult(
                cookbook.name,
                False,
                OperationNotAllowedError(cookbook, reason=f"{dest_dir.get_path()} cannot hold {cookbook.name}"),
            ))
            continue

        try:
            dest_dir.create_child_from(cookbook, options)
        except FileSystemError as e:
            logger.debug(f"Upload of {cookbook.name} failed: {e}")
            results.append(UploadResult(cookbook.name, False, e))
        else:
            results.append(UploadResult(cookbook.name, True))

    return results
