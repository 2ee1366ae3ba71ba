"""VFS node implementations."""

from cookbookfs.vfs.nodes.server import ServerRootNode, RestListDirectoryNode
from cookbookfs.vfs.nodes.cookbooks import (
    CookbooksDirectoryNode,
    CookbookDirectoryNode,
    CookbookFileNode,
    ManifestDirectoryNode,
    UploadOptions,
)
from cookbookfs.vfs.nodes.repository import (
    RepositoryRootNode,
    LocalCookbooksDirectoryNode,
    LocalCookbookDirectoryNode,
    LocalDirectoryNode,
    LocalFileNode,
)

__all__ = [
    "ServerRootNode",
    "RestListDirectoryNode",
    "CookbooksDirectoryNode",
    "CookbookDirectoryNode",
    "CookbookFileNode",
    "ManifestDirectoryNode",
    "UploadOptions",
    "RepositoryRootNode",
    "LocalCookbooksDirectoryNode",
    "LocalCookbookDirectoryNode",
    "LocalDirectoryNode",
    "LocalFileNode",
]
