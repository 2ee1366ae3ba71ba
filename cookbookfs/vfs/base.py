"""Base classes for the Virtual File System.

The VFS presents cookbook repositories, local or on a server, as a tree
of nodes so that sync code can walk and copy between them uniformly.

Architecture:
    - Node: Base class for all VFS nodes
    - DirectoryNode: Nodes that can contain children
    - FileNode: Leaf nodes with content
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Any

from cookbookfs.exceptions import OperationNotAllowedError


class NodeType(Enum):
    """Type of VFS node."""
    DIRECTORY = "directory"
    FILE = "file"


class Node(ABC):
    """Base class for all VFS nodes.

    Attributes:
        name: The name of this node (e.g., "cookbooks", "apache2")
        parent: Parent directory node (None for root)
        node_type: Type of node (directory or file)
    """

    def __init__(
        self,
        name: str,
        parent: Optional['DirectoryNode'] = None,
        node_type: NodeType = NodeType.FILE,
    ):
        """Initialize a VFS node.

        Args:
            name: Name of this node
            parent: Parent directory (None for root)
            node_type: Type of node
        """
        self.name = name
        self.parent = parent
        self.node_type = node_type

    @property
    def root(self) -> 'Node':
        """The parent-less node at the top of this node's tree."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def is_dir(self) -> bool:
        return self.node_type == NodeType.DIRECTORY

    def exists(self) -> bool:
        """Whether this node exists; nodes built from a listing always do."""
        return True

    @abstractmethod
    def get_info(self) -> Dict[str, Any]:
        """Get metadata about this node for display.

        Returns:
            Dict with keys like: type, name, path
        """
        pass

    def get_path(self) -> str:
        """Get absolute path to this node.

        Returns:
            Path like /cookbooks/apache2
        """
        if self.parent is None:
            return "/"

        parts = []
        node = self
        while node.parent is not None:
            parts.append(node.name)
            node = node.parent

        return "/" + "/".join(reversed(parts))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', path='{self.get_path()}')"


class DirectoryNode(Node):
    """A directory node that can contain children.

    Children can be:
    - Static: Fixed set of children
    - Dynamic: Children computed on-demand (e.g., a server listing)

    Lookup by name goes through make_child_entry, which is allowed to
    return a node that does not exist yet; callers check exists().
    """

    def __init__(self, name: str, parent: Optional['DirectoryNode'] = None):
        """Initialize a directory node.

        Args:
            name: Name of this directory
            parent: Parent directory
        """
        super().__init__(name, parent, NodeType.DIRECTORY)

    @abstractmethod
    def list_children(self) -> List[Node]:
        """List all children of this directory.

        Returns:
            List of child nodes
        """
        pass

    def make_child_entry(self, name: str) -> Optional[Node]:
        """Build (or find) the child called ``name``, existing or not.

        The default looks the name up among the listed children.
        """
        for child in self.list_children():
            if child.name == name:
                return child
        return None

    def get_child(self, name: str) -> Optional[Node]:
        """Get an existing child node by name.

        Args:
            name: Name of child node

        Returns:
            Child node or None if not found
        """
        child = self.make_child_entry(name)
        if child is None or not child.exists():
            return None
        return child

    def can_have_child(self, name: str, is_dir: bool) -> bool:
        """Whether a child of this name and kind may be created here."""
        return False

    def create_child_from(self, other: Node, options: Any = None) -> Node:
        """Create a child copied from ``other`` (another tree's node).

        Raises:
            OperationNotAllowedError: If this directory cannot be written
        """
        raise OperationNotAllowedError(
            self, reason=f"{self.get_path()}: cannot create children here"
        )

    def get_info(self) -> Dict[str, Any]:
        """Get directory metadata.

        Returns:
            Dict with directory information
        """
        children = self.list_children()
        return {
            "type": "directory",
            "name": self.name,
            "children_count": len(children),
            "path": self.get_path(),
        }


class FileNode(Node):
    """A file node with readable content."""

    def __init__(
        self,
        name: str,
        parent: Optional[DirectoryNode] = None,
        size: Optional[int] = None,
    ):
        """Initialize a file node.

        Args:
            name: Name of this file
            parent: Parent directory
            size: Size in bytes (if known)
        """
        super().__init__(name, parent, NodeType.FILE)
        self._size = size

    @abstractmethod
    def read_content(self) -> str:
        """Read the content of this file.

        Returns:
            File content as string
        """
        pass

    def get_info(self) -> Dict[str, Any]:
        """Get file metadata.

        Returns:
            Dict with file information
        """
        return {
            "type": "file",
            "name": self.name,
            "size": self._size,
            "path": self.get_path(),
        }
