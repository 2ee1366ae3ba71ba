"""Virtual File System over cookbook repositories.

A local repository and a cookbook server are both presented as trees
of nodes, so code that walks or copies cookbooks does not care which
side it is looking at.

Architecture:

    ```
    /                       # ServerRootNode or RepositoryRootNode
    └── cookbooks/          # CookbooksDirectoryNode / LocalCookbooksDirectoryNode
        ├── apache2/        # CookbookDirectoryNode / LocalCookbookDirectoryNode
        │   ├── metadata.json
        │   └── recipes/
        └── mysql/
    ```

Usage Example:

    ```python
    from cookbookfs.rest import ServerAPI
    from cookbookfs.vfs import ServerRootNode, RepositoryRootNode, PathResolver

    server = ServerRootNode(ServerAPI("https://chef.example.com/organizations/acme"))
    repo = RepositoryRootNode("~/chef-repo")

    remote = PathResolver(server).resolve_directory("/cookbooks")
    local = PathResolver(repo).resolve("/cookbooks/apache2")

    for cookbook in remote.list_children():
        print(cookbook.name)

    remote.create_child_from(local, {"freeze": True})
    ```
"""

from cookbookfs.vfs.base import Node, DirectoryNode, FileNode, NodeType
from cookbookfs.vfs.resolver import PathResolver
from cookbookfs.vfs.nodes import (
    ServerRootNode,
    CookbooksDirectoryNode,
    CookbookDirectoryNode,
    UploadOptions,
    RepositoryRootNode,
    LocalCookbooksDirectoryNode,
    LocalCookbookDirectoryNode,
)

__all__ = [
    # Core classes
    "Node",
    "DirectoryNode",
    "FileNode",
    "NodeType",
    # Path resolution
    "PathResolver",
    # Server tree
    "ServerRootNode",
    "CookbooksDirectoryNode",
    "CookbookDirectoryNode",
    "UploadOptions",
    # Local tree
    "RepositoryRootNode",
    "LocalCookbooksDirectoryNode",
    "LocalCookbookDirectoryNode",
]
