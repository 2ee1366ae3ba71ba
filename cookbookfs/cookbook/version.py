"""CookbookVersion model.

A cookbook version is the unit the server stores: a name, a version
string, a metadata document and a manifest of files identified by
checksum. Versions loaded from disk keep their ``root_dir`` so file
content can be read back for upload; versions built from a server
manifest have none.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional

import yaml

logger = logging.getLogger(__name__)

METADATA_JSON = "metadata.json"
METADATA_YAML = "metadata.yaml"

DEFAULT_VERSION = "0.0.0"


@dataclass
class CookbookVersion:
    """One version of a cookbook.

    Attributes:
        name: Cookbook name (e.g. "apache2")
        version: Version string (e.g. "1.2.0")
        root_dir: Directory holding the cookbook content, if local
        metadata: Metadata document (name, version, dependencies, ...)
        files: Manifest entries with name, path, checksum and specificity
        frozen: Whether the version is (or will be uploaded as) frozen
    """
    name: str
    version: str = DEFAULT_VERSION
    root_dir: Optional[Path] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    files: List[Dict[str, str]] = field(default_factory=list)
    frozen: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.name}-{self.version}"

    def freeze_version(self) -> None:
        """Mark this version frozen; the server will refuse unforced overwrites."""
        self.frozen = True

    def compile_metadata(self) -> Optional[Path]:
        """Generate metadata.json from metadata.yaml when needed.

        Returns:
            Path of the generated metadata.json, or None when the cookbook
            already ships an upload-ready metadata.json (or has no authoring
            metadata at all).
        """
        if self.root_dir is None:
            return None

        json_path = Path(self.root_dir) / METADATA_JSON
        yaml_path = Path(self.root_dir) / METADATA_YAML
        if json_path.exists() or not yaml_path.exists():
            return None

        with open(yaml_path, "r") as f:
            source = yaml.safe_load(f) or {}

        compiled = {
            "name": source.get("name", self.name),
            "version": str(source.get("version", self.version)),
            "description": source.get("description", ""),
            "maintainer": source.get("maintainer", ""),
            "license": source.get("license", "All rights reserved"),
            "dependencies": dict(source.get("depends") or source.get("dependencies") or {}),
            "platforms": dict(source.get("supports") or source.get("platforms") or {}),
        }

        with open(json_path, "w") as f:
            json.dump(compiled, f, indent=2, sort_keys=True)

        logger.debug(f"Compiled {yaml_path} to {json_path}")
        return json_path

    def checksums(self) -> Dict[str, Path]:
        """Map checksum -> absolute path for every locally available file."""
        if self.root_dir is None:
            return {}
        return {
            entry["checksum"]: Path(self.root_dir) / entry["path"]
            for entry in self.files
        }

    def manifest(self) -> Dict[str, Any]:
        """Build the JSON document PUT to /cookbooks/NAME/VERSION."""
        return {
            "name": self.full_name,
            "cookbook_name": self.name,
            "version": self.version,
            "json_class": "Chef::CookbookVersion",
            "chef_type": "cookbook_version",
            "frozen?": self.frozen,
            "metadata": self.metadata,
            "all_files": [dict(entry) for entry in self.files],
        }

    @classmethod
    def from_manifest(cls, data: Dict[str, Any]) -> 'CookbookVersion':
        """Build a remote-only version from a server manifest."""
        metadata = data.get("metadata") or {}
        name = data.get("cookbook_name") or metadata.get("name") or data.get("name", "")
        return cls(
            name=name,
            version=str(data.get("version") or metadata.get("version") or DEFAULT_VERSION),
            root_dir=None,
            metadata=metadata,
            files=list(data.get("all_files") or []),
            frozen=bool(data.get("frozen?", False)),
        )
