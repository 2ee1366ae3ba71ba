"""Cookbook nodes for the server side of the tree.

    /cookbooks
        apache2/
        mysql/

Creating a child of /cookbooks uploads a cookbook. Lookups never hit the
server on their own; the listing is fetched once and reused until the
next upload through this node.
"""

import gc
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import httpx

from cookbookfs.config import get_config
from cookbookfs.cookbook.loader import CookbookVersionLoader
from cookbookfs.cookbook.staging import StagingDirectory
from cookbookfs.cookbook.uploader import CookbookUploader
from cookbookfs.cookbook.version import CookbookVersion
from cookbookfs.exceptions import (
    CookbookFrozen,
    CookbookFrozenError,
    OperationFailedError,
)
from cookbookfs.rest import CookbookManifestVersions, ServerAPI
from cookbookfs.vfs.base import DirectoryNode, FileNode, Node
from cookbookfs.vfs.nodes.server import RestListDirectoryNode

logger = logging.getLogger(__name__)

# Guards the process-wide repo.cookbook_path override; uploads that go
# through with_actual_cookbooks_dir run one at a time.
_cookbook_path_lock = threading.RLock()


@dataclass
class UploadOptions:
    """Options for uploading a cookbook.

    Attributes:
        freeze: Upload the version frozen
        force: Overwrite a version that is frozen on the server
    """
    freeze: bool = False
    force: bool = False

    @classmethod
    def coerce(cls, options: Union['UploadOptions', Mapping[str, Any], None]) -> 'UploadOptions':
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls(freeze=bool(options.get("freeze")), force=bool(options.get("force")))


class CacheState(Enum):
    UNFETCHED = "unfetched"
    FETCHED = "fetched"


class ChildrenCache:
    """Holds a memoized, name-sorted child listing.

    ``invalidate()`` moves back to UNFETCHED; the next ``get()`` refetches.
    """

    def __init__(self):
        self.state = CacheState.UNFETCHED
        self._entries: List[Node] = []

    @property
    def is_fetched(self) -> bool:
        return self.state is CacheState.FETCHED

    def store(self, entries: List[Node]) -> List[Node]:
        unique: Dict[str, Node] = {}
        for entry in entries:
            unique.setdefault(entry.name, entry)
        self._entries = sorted(unique.values(), key=lambda entry: entry.name)
        self.state = CacheState.FETCHED
        return self._entries

    def get(self) -> List[Node]:
        if not self.is_fetched:
            raise LookupError("children have not been fetched")
        return self._entries

    def find(self, name: str) -> Optional[Node]:
        if not self.is_fetched:
            return None
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def invalidate(self) -> None:
        self.state = CacheState.UNFETCHED
        self._entries = []


class UploadErrorKind(Enum):
    """Closed set of upload failure kinds."""
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    FROZEN = "frozen"
    OTHER = "other"


@dataclass
class UploadFailure:
    """A classified upload failure.

    Attributes:
        kind: Which kind of failure
        cause: The original exception
        status: HTTP status code for HTTP_ERROR, else None
    """
    kind: UploadErrorKind
    cause: BaseException
    status: Optional[int] = None


def classify_upload_error(error: BaseException) -> UploadFailure:
    """Sort an exception raised while uploading into an UploadErrorKind."""
    if isinstance(error, httpx.TimeoutException):
        return UploadFailure(UploadErrorKind.TIMEOUT, error)
    if isinstance(error, httpx.HTTPStatusError):
        return UploadFailure(UploadErrorKind.HTTP_ERROR, error, error.response.status_code)
    if isinstance(error, CookbookFrozen):
        return UploadFailure(UploadErrorKind.FROZEN, error)
    return UploadFailure(UploadErrorKind.OTHER, error)


class CookbooksDirectoryNode(RestListDirectoryNode):
    """/cookbooks/ - Cookbooks stored on the server.

    Children are CookbookDirectoryNode instances, sorted by name.
    create_child_from uploads a cookbook from another tree.
    """

    def __init__(self, parent: DirectoryNode, name: str = "cookbooks"):
        """Initialize cookbooks directory.

        Args:
            parent: Parent node (usually the server root)
            name: Directory name
        """
        super().__init__(name=name, parent=parent)
        self._children = ChildrenCache()

    def list_children(self) -> List[Node]:
        """List cookbooks on the server.

        The listing is fetched once and the same list is returned until
        an upload invalidates it.

        Returns:
            CookbookDirectoryNode instances sorted by name
        """
        if not self._children.is_fetched:
            self._children.store(
                [CookbookDirectoryNode(name, self, exists=True) for name in self.list_names()]
            )
        return self._children.get()

    def make_child_entry(self, name: str) -> Node:
        """Return the listed cookbook called ``name``, or a not-yet-verified one.

        Never fetches the listing.
        """
        return self._children.find(name) or CookbookDirectoryNode(name, self)

    def can_have_child(self, name: str, is_dir: bool) -> bool:
        return is_dir

    def create_child_from(
        self,
        other: Node,
        options: Union[UploadOptions, Mapping[str, Any], None] = None,
    ) -> Node:
        """Upload ``other`` as a cookbook.

        The cached listing is dropped before the upload is attempted, so
        the next list_children() reflects the server whether or not the
        upload succeeded.

        Args:
            other: A cookbook node from another tree (exposes chef_object)
            options: UploadOptions or a mapping with freeze/force

        Returns:
            The uploaded cookbook's node

        Raises:
            CookbookFrozenError: The version is frozen on the server
            OperationFailedError: The upload failed
        """
        self._children.invalidate()
        self.upload_cookbook_from(other, options)
        return CookbookDirectoryNode(other.name, self, exists=True)

    def upload_cookbook_from(
        self,
        other: Node,
        options: Union[UploadOptions, Mapping[str, Any], None] = None,
    ) -> None:
        """upload_cookbook, with transport and frozen errors turned into filesystem errors."""
        try:
            self.upload_cookbook(other, options)
        except Exception as e:
            failure = classify_upload_error(e)
            if failure.kind is UploadErrorKind.OTHER:
                raise
            raise self._filesystem_error(failure, other) from e

    def _filesystem_error(self, failure: UploadFailure, other: Node) -> OperationFailedError:
        e = failure.cause
        if failure.kind is UploadErrorKind.TIMEOUT:
            return OperationFailedError("write", self, e, f"Timeout writing: {e}")
        if failure.kind is UploadErrorKind.HTTP_ERROR:
            if failure.status == 409:
                return CookbookFrozenError("write", self, e, f"Cookbook {other.name} is frozen")
            return OperationFailedError("write", self, e, f"HTTP error writing: {e}")
        if failure.kind is UploadErrorKind.FROZEN:
            return CookbookFrozenError("write", self, e, f"Cookbook {other.name} is frozen")
        raise ValueError(f"No filesystem error for upload failure kind {failure.kind}")

    def upload_cookbook(
        self,
        other: Node,
        options: Union[UploadOptions, Mapping[str, Any], None] = None,
    ) -> None:
        """Upload the cookbook behind ``other``.

        When the source has to compile its metadata (metadata.yaml ->
        metadata.json), the cookbook is staged under a temporary directory
        and reloaded so the upload sees the compiled file; the compiled
        file is removed again afterwards.
        """
        options = UploadOptions.coerce(options)
        # Staging mode is checked before anything is written into the source
        staging_dir = StagingDirectory(get_config().staging.mode)
        source: CookbookVersion = other.chef_object
        compiled_metadata = source.compile_metadata()
        actual_cookbooks_dir = getattr(other.parent, "file_path", None)

        try:
            with staging_dir as staging:
                if compiled_metadata:
                    proxy_cookbook_path = staging.stage(source.root_dir, other.name)
                    proxy_loader = CookbookVersionLoader(proxy_cookbook_path)
                    proxy_loader.load_cookbooks()
                    cookbook_to_upload = proxy_loader.cookbook_version
                else:
                    cookbook_to_upload = source

                if options.freeze:
                    cookbook_to_upload.freeze_version()

                with self.chef_rest() as rest:
                    uploader = CookbookUploader(
                        cookbook_to_upload,
                        force=options.force,
                        rest=rest,
                        cookbook_path=actual_cookbooks_dir,
                    )

                    with self.with_actual_cookbooks_dir(actual_cookbooks_dir):
                        uploader.upload_cookbooks()
        finally:
            if compiled_metadata:
                # Release lingering handles on the file before unlinking
                gc.collect()
                try:
                    Path(compiled_metadata).unlink()
                except FileNotFoundError:
                    logger.warning(f"Compiled metadata {compiled_metadata} was already removed")

    def chef_rest(self) -> ServerAPI:
        """A client for the root's server that negotiates cookbook manifest versions."""
        root_rest = self.root.chef_rest
        return ServerAPI(
            root_rest.url,
            {**root_rest.options, "version_class": CookbookManifestVersions},
        )

    @contextmanager
    def with_actual_cookbooks_dir(self, actual_cookbook_path: Optional[Union[str, Path]]) -> Iterator[None]:
        """Point repo.cookbook_path at the real cookbooks directory while uploading.

        An explicit setting is left alone. The previous value, including
        None, is restored on exit.
        """
        with _cookbook_path_lock:
            repo = get_config().repo
            old_cookbook_path = repo.cookbook_path
            if not old_cookbook_path and actual_cookbook_path is not None:
                repo.cookbook_path = str(actual_cookbook_path)
            try:
                yield
            finally:
                repo.cookbook_path = old_cookbook_path

    def get_info(self) -> Dict[str, Any]:
        info = super().get_info()
        if self._children.is_fetched:
            info["children_count"] = len(self._children.get())
        return info


class CookbookDirectoryNode(DirectoryNode):
    """/cookbooks/apache2/ - The latest version of a cookbook on the server.

    Children mirror the cookbook's file manifest.
    """

    def __init__(self, name: str, parent: CookbooksDirectoryNode, exists: bool = False):
        """Initialize cookbook node.

        Args:
            name: Cookbook name
            parent: The cookbooks directory
            exists: True when the node came from a server listing (kept as ``listed``)
        """
        super().__init__(name=name, parent=parent)
        self.listed = exists
        self._exists: Optional[bool] = True if exists else None
        self._chef_object: Optional[CookbookVersion] = None

    @property
    def api_path(self) -> str:
        return f"{self.parent.api_path}/{self.name}"

    def exists(self) -> bool:
        """True when listed; otherwise checked against the parent's listing once."""
        if self._exists is None:
            self._exists = any(child.name == self.name for child in self.parent.list_children())
        return self._exists

    @property
    def chef_object(self) -> CookbookVersion:
        """The latest CookbookVersion, fetched on first use."""
        if self._chef_object is None:
            manifest = self.root.get_json(f"{self.api_path}/_latest")
            self._chef_object = CookbookVersion.from_manifest(manifest)
        return self._chef_object

    def list_children(self) -> List[Node]:
        return _manifest_children(self, self.chef_object.files, "")

    def get_info(self) -> Dict[str, Any]:
        info = {
            "type": "directory",
            "name": self.name,
            "path": self.get_path(),
            "exists": self.exists(),
        }
        if self._chef_object is not None:
            info["version"] = self._chef_object.version
            info["frozen"] = self._chef_object.frozen
        return info


class ManifestDirectoryNode(DirectoryNode):
    """A sub-directory (recipes/, templates/default/, ...) of a server cookbook."""

    def __init__(self, name: str, parent: DirectoryNode, entries: List[Dict[str, str]], prefix: str):
        super().__init__(name=name, parent=parent)
        self.entries = entries
        self.prefix = prefix

    def list_children(self) -> List[Node]:
        return _manifest_children(self, self.entries, self.prefix)


class CookbookFileNode(FileNode):
    """A file of a server cookbook, read from its manifest URL."""

    def __init__(self, name: str, parent: DirectoryNode, entry: Dict[str, str]):
        super().__init__(name=name, parent=parent)
        self.entry = entry

    @property
    def checksum(self) -> str:
        return self.entry.get("checksum", "")

    def read_bytes(self) -> bytes:
        """Raw file content from the server."""
        return self.root.chef_rest.get_bytes(self.entry["url"])

    def read_content(self) -> str:
        """File content as text; undecodable bytes become U+FFFD."""
        return self.read_bytes().decode("utf-8", errors="replace")

    def get_info(self) -> Dict[str, Any]:
        info = super().get_info()
        info["checksum"] = self.checksum
        return info


def _manifest_children(parent: DirectoryNode, entries: List[Dict[str, str]], prefix: str) -> List[Node]:
    """Group manifest entries under ``prefix`` into file and directory nodes."""
    files: Dict[str, Dict[str, str]] = {}
    subdirs: Dict[str, List[Dict[str, str]]] = {}

    for entry in entries:
        path = entry.get("path", "")
        if not path.startswith(prefix):
            continue
        head, sep, _rest = path[len(prefix):].partition("/")
        if sep:
            subdirs.setdefault(head, []).append(entry)
        else:
            files[head] = entry

    children: List[Node] = [
        ManifestDirectoryNode(name, parent, subdirs[name], f"{prefix}{name}/")
        for name in subdirs
    ]
    children.extend(CookbookFileNode(name, parent, entry) for name, entry in files.items())
    return sorted(children, key=lambda child: child.name)
