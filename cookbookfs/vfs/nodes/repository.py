"""Nodes for a cookbook repository on local disk.

    /
    └── cookbooks/
        ├── apache2/
        │   ├── metadata.json
        │   └── recipes/
        │       └── default.rb
        └── mysql/
"""

from pathlib import Path
from typing import List, Optional, Dict, Any, Union

from cookbookfs.cookbook.loader import CookbookVersionLoader
from cookbookfs.cookbook.version import CookbookVersion
from cookbookfs.vfs.base import DirectoryNode, FileNode, Node


class LocalDirectoryNode(DirectoryNode):
    """A directory on disk; children are its entries, sorted by name."""

    def __init__(self, name: str, file_path: Union[str, Path], parent: Optional[DirectoryNode] = None):
        """Initialize a local directory node.

        Args:
            name: Node name
            file_path: Directory on disk
            parent: Parent directory
        """
        super().__init__(name=name, parent=parent)
        self.file_path = Path(file_path)

    def exists(self) -> bool:
        return self.file_path.is_dir()

    def list_children(self) -> List[Node]:
        if not self.exists():
            return []

        children: List[Node] = []
        for path in sorted(self.file_path.iterdir(), key=lambda p: p.name):
            if path.name.startswith("."):
                continue
            children.append(self._child_for(path))
        return children

    def make_child_entry(self, name: str) -> Node:
        return self._child_for(self.file_path / name)

    def _child_for(self, path: Path) -> Node:
        if path.is_dir():
            return LocalDirectoryNode(path.name, path, parent=self)
        return LocalFileNode(path.name, path, parent=self)

    def get_info(self) -> Dict[str, Any]:
        info = super().get_info()
        info["file_path"] = str(self.file_path)
        return info


class LocalFileNode(FileNode):
    """A file on disk."""

    def __init__(self, name: str, file_path: Union[str, Path], parent: Optional[DirectoryNode] = None):
        size = Path(file_path).stat().st_size if Path(file_path).is_file() else None
        super().__init__(name=name, parent=parent, size=size)
        self.file_path = Path(file_path)

    def exists(self) -> bool:
        return self.file_path.is_file()

    def read_content(self) -> str:
        return self.file_path.read_text()


class RepositoryRootNode(DirectoryNode):
    """Root directory (/) of a local repository.

    Contains:
    - cookbooks/  - The repository's cookbooks
    """

    def __init__(self, repo_path: Union[str, Path]):
        """Initialize root node.

        Args:
            repo_path: Repository directory (the one holding cookbooks/)
        """
        super().__init__(name="", parent=None)
        self.file_path = Path(repo_path).expanduser()
        self._children_cache: Optional[Dict[str, Node]] = None

    def list_children(self) -> List[Node]:
        if self._children_cache is None:
            self._build_children()
        return list(self._children_cache.values())

    def make_child_entry(self, name: str) -> Optional[Node]:
        if self._children_cache is None:
            self._build_children()
        return self._children_cache.get(name)

    def _build_children(self) -> None:
        self._children_cache = {
            "cookbooks": LocalCookbooksDirectoryNode(self.file_path / "cookbooks", parent=self),
        }

    def get_info(self) -> Dict[str, Any]:
        return {
            "type": "directory",
            "name": "/",
            "file_path": str(self.file_path),
            "path": "/",
        }


class LocalCookbooksDirectoryNode(LocalDirectoryNode):
    """/cookbooks/ - Cookbook directories in the repository."""

    def __init__(self, file_path: Union[str, Path], parent: Optional[DirectoryNode] = None):
        super().__init__(name="cookbooks", file_path=file_path, parent=parent)

    def list_children(self) -> List[Node]:
        if not self.exists():
            return []
        return [
            LocalCookbookDirectoryNode(path.name, path, parent=self)
            for path in sorted(self.file_path.iterdir(), key=lambda p: p.name)
            if path.is_dir() and not path.name.startswith(".")
        ]

    def make_child_entry(self, name: str) -> Node:
        return LocalCookbookDirectoryNode(name, self.file_path / name, parent=self)


class LocalCookbookDirectoryNode(LocalDirectoryNode):
    """/cookbooks/apache2/ - One cookbook in the repository."""

    def __init__(self, name: str, file_path: Union[str, Path], parent: Optional[DirectoryNode] = None):
        super().__init__(name=name, file_path=file_path, parent=parent)
        self._chef_object: Optional[CookbookVersion] = None

    @property
    def chef_object(self) -> CookbookVersion:
        """The cookbook loaded from disk (loaded once)."""
        if self._chef_object is None:
            loader = CookbookVersionLoader(self.file_path)
            self._chef_object = loader.load_cookbooks()
        return self._chef_object
