"""Path resolution for the Virtual File System."""

from pathlib import PurePosixPath
from typing import Optional, List

from cookbookfs.vfs.base import Node, DirectoryNode


class PathResolver:
    """Resolves paths like /cookbooks/apache2 to nodes.

    Handles:
    - Absolute paths: /cookbooks/apache2
    - Relative paths: ../cookbooks, ./apache2
    - Special paths: ., ..
    """

    def __init__(self, root: DirectoryNode):
        """Initialize path resolver.

        Args:
            root: Root node of the VFS
        """
        self.root = root

    def resolve(self, path: str, current: Optional[DirectoryNode] = None) -> Optional[Node]:
        """Resolve a path to an existing node.

        Args:
            path: Path to resolve (absolute or relative)
            current: Directory relative paths start from (default: root)

        Returns:
            Resolved node or None if path doesn't exist
        """
        current = current or self.root
        if not path or path == ".":
            return current

        node: Node = self.root if path.startswith("/") else current

        for part in self._parse_path(path):
            if part in (".", ""):
                continue
            if part == "..":
                if node.parent is not None:
                    node = node.parent
                continue

            if not isinstance(node, DirectoryNode):
                return None

            child = node.get_child(part)
            if child is None:
                return None
            node = child

        return node

    def resolve_directory(
        self,
        path: str,
        current: Optional[DirectoryNode] = None,
    ) -> Optional[DirectoryNode]:
        """Resolve a path to a directory node.

        Returns:
            Directory node or None if path doesn't exist or isn't a directory
        """
        node = self.resolve(path, current)
        if node is None or not isinstance(node, DirectoryNode):
            return None
        return node

    def _parse_path(self, path: str) -> List[str]:
        parts = PurePosixPath(path).parts
        if parts and parts[0] == "/":
            parts = parts[1:]
        return list(parts)
