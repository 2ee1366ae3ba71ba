"""Upload cookbook versions to the server.

The upload protocol:

    1. POST /sandboxes with every checksum in the manifest
    2. PUT the content of each checksum the server reports as missing
    3. PUT /sandboxes/ID {"is_completed": true}
    4. PUT /cookbooks/NAME/VERSION with the manifest (?force=true to
       overwrite a frozen version)
"""

import json
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

import httpx
import yaml

from cookbookfs.config import get_config
from cookbookfs.cookbook.version import CookbookVersion
from cookbookfs.exceptions import CookbookFrozen
from cookbookfs.rest import ServerAPI

logger = logging.getLogger(__name__)


class CookbookUploader:
    """Uploads one or more CookbookVersion objects.

    Args:
        cookbooks: A CookbookVersion or an iterable of them
        force: Overwrite versions frozen on the server
        rest: ServerAPI to upload through
        cookbook_path: Directory holding the source cookbooks. When omitted
            the process-wide ``repo.cookbook_path`` setting is used.
    """

    def __init__(
        self,
        cookbooks: Union[CookbookVersion, Iterable[CookbookVersion]],
        force: bool = False,
        rest: Optional[ServerAPI] = None,
        cookbook_path: Optional[Union[str, Path]] = None,
    ):
        if isinstance(cookbooks, CookbookVersion):
            cookbooks = [cookbooks]
        self.cookbooks: List[CookbookVersion] = list(cookbooks)
        self.force = force
        self.rest = rest
        self.cookbook_path = cookbook_path

    def upload_cookbooks(self) -> None:
        """Validate, upload file content, then commit each manifest.

        Raises:
            CookbookFrozen: The server refused to overwrite a frozen version
            httpx.HTTPStatusError: Any other rejected request
            httpx.TimeoutException: The server did not answer in time
        """
        if self.rest is None:
            raise ValueError("CookbookUploader needs a ServerAPI to upload through")

        self.validate_cookbooks()

        checksums = {}
        for cookbook in self.cookbooks:
            checksums.update(cookbook.checksums())

        if checksums:
            self._upload_sandbox(checksums)

        for cookbook in self.cookbooks:
            self._save_cookbook(cookbook)

    def validate_cookbooks(self) -> None:
        """Check that each cookbook's metadata and JSON/YAML files parse."""
        for cookbook in self.cookbooks:
            cookbook_dir = self._locate(cookbook)
            if cookbook_dir is None:
                logger.debug(f"No local copy of {cookbook.name}; skipping validation")
                continue

            for path in self._validated_files(cookbook_dir):
                try:
                    if path.suffix == ".json":
                        with open(path, "r") as f:
                            json.load(f)
                    elif path.suffix in (".yaml", ".yml"):
                        with open(path, "r") as f:
                            yaml.safe_load(f)
                except (json.JSONDecodeError, yaml.YAMLError) as e:
                    raise ValueError(f"Cookbook {cookbook.name}: invalid {path.name}: {e}") from e

    def _validated_files(self, cookbook_dir: Path) -> List[Path]:
        """JSON and YAML files of a cookbook, skipping dot entries as the loader does."""
        found = []
        for dirpath, dirnames, filenames in os.walk(cookbook_dir, followlinks=True):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for filename in sorted(filenames):
                if filename.startswith("."):
                    continue
                path = Path(dirpath) / filename
                if path.suffix in (".json", ".yaml", ".yml"):
                    found.append(path)
        return found

    def _locate(self, cookbook: CookbookVersion) -> Optional[Path]:
        """Find a cookbook's directory under the cookbook path."""
        search = self.cookbook_path or get_config().repo.cookbook_path
        if isinstance(search, (str, Path)):
            search = [search]

        for base in search or []:
            candidate = Path(base) / cookbook.name
            if candidate.is_dir():
                return candidate

        if cookbook.root_dir is not None and Path(cookbook.root_dir).is_dir():
            return Path(cookbook.root_dir)
        return None

    def _upload_sandbox(self, checksums: dict) -> None:
        sandbox = self.rest.post_json(
            "/sandboxes", {"checksums": {checksum: None for checksum in checksums}}
        )

        for checksum, info in (sandbox.get("checksums") or {}).items():
            if not info.get("needs_upload"):
                continue
            path = checksums[checksum]
            logger.debug(f"Uploading {path} ({checksum})")
            self.rest.put_bytes(
                info["url"],
                path.read_bytes(),
                headers={"Content-Type": "application/x-binary"},
            )

        self.rest.put_json(f"/sandboxes/{sandbox['sandbox_id']}", {"is_completed": True})

    def _save_cookbook(self, cookbook: CookbookVersion) -> None:
        params = {"force": "true"} if self.force else None
        try:
            self.rest.put_json(
                f"/cookbooks/{cookbook.name}/{cookbook.version}",
                cookbook.manifest(),
                params=params,
            )
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 409:
                raise CookbookFrozen(cookbook.name, cookbook.version) from e
            raise

        logger.info(f"Uploaded {cookbook.full_name}{' (frozen)' if cookbook.frozen else ''}")
