"""Load a cookbook version from a directory on disk."""

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

import yaml

from cookbookfs.cookbook.version import (
    CookbookVersion,
    DEFAULT_VERSION,
    METADATA_JSON,
    METADATA_YAML,
)

logger = logging.getLogger(__name__)

# Top-level directories that map to a manifest segment of their own
SEGMENTS = ("recipes", "attributes", "templates", "files", "libraries", "definitions", "resources", "providers")


def file_checksum(path: Path) -> str:
    """MD5 hex digest of a file, the checksum the server indexes content by."""
    md5 = hashlib.md5()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(65536), b""):
            md5.update(block)
    return md5.hexdigest()


class CookbookVersionLoader:
    """Reads a cookbook directory into a CookbookVersion.

    The directory may itself be a symlink (staged uploads alias the
    real cookbook into a temporary directory); it is followed.

    Usage:
        >>> loader = CookbookVersionLoader("/repo/cookbooks/apache2")
        >>> loader.load_cookbooks()
        >>> loader.cookbook_version.version
        '1.2.0'
    """

    def __init__(self, path: Union[str, Path]):
        self.cookbook_path = Path(path)
        self.cookbook_version: Optional[CookbookVersion] = None

    def load_cookbooks(self) -> CookbookVersion:
        """Load metadata and the file manifest.

        Returns:
            The loaded CookbookVersion (also stored on ``cookbook_version``)

        Raises:
            FileNotFoundError: If the cookbook directory does not exist
        """
        if not self.cookbook_path.is_dir():
            raise FileNotFoundError(f"Cookbook directory not found: {self.cookbook_path}")

        metadata = self._load_metadata()
        name = metadata.get("name") or self.cookbook_path.name
        version = str(metadata.get("version") or DEFAULT_VERSION)

        self.cookbook_version = CookbookVersion(
            name=name,
            version=version,
            root_dir=self.cookbook_path,
            metadata=metadata,
            files=self._load_files(),
        )
        logger.debug(
            f"Loaded cookbook {self.cookbook_version.full_name} "
            f"({len(self.cookbook_version.files)} files) from {self.cookbook_path}"
        )
        return self.cookbook_version

    def _load_metadata(self) -> Dict[str, Any]:
        json_path = self.cookbook_path / METADATA_JSON
        if json_path.exists():
            with open(json_path, "r") as f:
                return json.load(f)

        yaml_path = self.cookbook_path / METADATA_YAML
        if yaml_path.exists():
            with open(yaml_path, "r") as f:
                return yaml.safe_load(f) or {}

        return {}

    def _load_files(self) -> List[Dict[str, str]]:
        files = []
        # os.walk does not descend into the top-level symlink unless asked
        for dirpath, dirnames, filenames in os.walk(self.cookbook_path, followlinks=True):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for filename in sorted(filenames):
                if filename.startswith("."):
                    continue
                full_path = Path(dirpath) / filename
                relative = full_path.relative_to(self.cookbook_path).as_posix()
                files.append({
                    "name": self._manifest_name(relative),
                    "path": relative,
                    "checksum": file_checksum(full_path),
                    "specificity": "default",
                })
        return files

    def _manifest_name(self, relative: str) -> str:
        segment = relative.split("/", 1)[0]
        if segment in SEGMENTS:
            return relative
        return f"root_files/{relative}"
