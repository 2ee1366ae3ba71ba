"""Temporary staging of cookbook content for upload."""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

from cookbookfs.config import STAGING_MODES

logger = logging.getLogger(__name__)


class StagingDirectory:
    """A temporary directory that cookbooks are placed into before loading.

    The directory exists only inside the ``with`` block and is removed on
    every exit path.

    Modes:
        symlink: ``<tmp>/<name>`` is a symlink to the source directory
        copy: ``<tmp>/<name>`` is a full copy of the source directory

    Usage:
        >>> with StagingDirectory("symlink") as staging:
        ...     staged = staging.stage("/repo/cookbooks/apache2", "apache2")
    """

    def __init__(self, mode: str = "symlink"):
        if mode not in STAGING_MODES:
            raise ValueError(
                f"Unknown staging mode '{mode}' (expected one of {', '.join(STAGING_MODES)})"
            )
        self.mode = mode
        self._tmp: Optional[tempfile.TemporaryDirectory] = None

    @property
    def path(self) -> Path:
        if self._tmp is None:
            raise RuntimeError("StagingDirectory is not open")
        return Path(self._tmp.name)

    def __enter__(self) -> 'StagingDirectory':
        self._tmp = tempfile.TemporaryDirectory(prefix="cookbookfs-")
        logger.debug(f"Created staging directory {self._tmp.name}")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._tmp is not None:
            # TemporaryDirectory removes the symlink itself, never its target
            self._tmp.cleanup()
            self._tmp = None

    def stage(self, source: Union[str, Path], name: str) -> Path:
        """Place ``source`` at ``<tmp>/<name>``.

        Returns:
            Path of the staged cookbook
        """
        target = self.path / name
        if self.mode == "symlink":
            os.symlink(os.fspath(source), target, target_is_directory=True)
        else:
            shutil.copytree(source, target)
        logger.debug(f"Staged {source} at {target} ({self.mode})")
        return target
