"""Root and generic listing nodes for the server side of the tree."""

import logging
from typing import List, Optional, Dict, Any

from cookbookfs.rest import ServerAPI
from cookbookfs.vfs.base import DirectoryNode, Node

logger = logging.getLogger(__name__)


class ServerRootNode(DirectoryNode):
    """Root directory (/) of a server tree.

    Contains:
    - cookbooks/  - Cookbooks stored on the server
    """

    def __init__(self, chef_rest: ServerAPI):
        """Initialize root node.

        Args:
            chef_rest: Client for the server (or organization) URL
        """
        super().__init__(name="", parent=None)
        self.chef_rest = chef_rest
        self._children_cache: Optional[Dict[str, Node]] = None

    @property
    def api_path(self) -> str:
        return ""

    def get_json(self, path: str) -> Any:
        """GET a server path and decode the JSON response."""
        return self.chef_rest.get_json(path)

    def list_children(self) -> List[Node]:
        if self._children_cache is None:
            self._build_children()
        return list(self._children_cache.values())

    def make_child_entry(self, name: str) -> Optional[Node]:
        if self._children_cache is None:
            self._build_children()
        return self._children_cache.get(name)

    def _build_children(self) -> None:
        from cookbookfs.vfs.nodes.cookbooks import CookbooksDirectoryNode

        self._children_cache = {
            "cookbooks": CookbooksDirectoryNode(parent=self),
        }

    def get_info(self) -> Dict[str, Any]:
        return {
            "type": "directory",
            "name": "/",
            "url": self.chef_rest.url,
            "path": "/",
        }


class RestListDirectoryNode(DirectoryNode):
    """A directory whose children are the keys of a server listing.

    ``api_path`` is the parent's api_path plus this node's name, so
    /cookbooks under the root lists GET /cookbooks.
    """

    def __init__(self, name: str, parent: DirectoryNode):
        super().__init__(name, parent)

    @property
    def api_path(self) -> str:
        return f"{self.parent.api_path}/{self.name}"

    def list_names(self) -> List[str]:
        """Fetch the sorted child names from the server."""
        logger.debug(f"Listing {self.api_path}")
        return sorted(self.root.get_json(self.api_path).keys())

    def get_info(self) -> Dict[str, Any]:
        return {
            "type": "directory",
            "name": self.name,
            "api_path": self.api_path,
            "path": self.get_path(),
        }
