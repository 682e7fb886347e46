"""
Data Layout Module

Owns the on-disk directory tree of a journal:

    <base_dir>/data/trades/<year>/<prefix>_<id>.json
    <base_dir>/data/theses/<prefix>_<id>.json
    <base_dir>/data/screenshots/
    <base_dir>/data/backups/

and the two hooks the backup subsystem uses: enumerating the entity files
to archive, and replacing the whole data tree on restore.
"""

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Union

from tradejournal.core.errors import InvalidArgumentError, NotFoundError
from tradejournal.journal.locator import ENTITY_SUFFIX

logger = logging.getLogger(__name__)

ENTITY_FOLDERS = ("trades", "theses")
ASSET_FOLDERS = ("screenshots", "backups")


class DataLayout:
    """
    Directory layout of one journal.

    Creating a layout does not touch the disk; call
    :meth:`ensure_data_directory` before the first write.
    """

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)
        self.data_dir = self.base_dir / "data"
        self.folders: Dict[str, Path] = {
            name: self.data_dir / name for name in ENTITY_FOLDERS + ASSET_FOLDERS
        }

    @property
    def trades_dir(self) -> Path:
        return self.folders["trades"]

    @property
    def theses_dir(self) -> Path:
        return self.folders["theses"]

    @property
    def screenshots_dir(self) -> Path:
        return self.folders["screenshots"]

    @property
    def backups_dir(self) -> Path:
        return self.folders["backups"]

    def ensure_data_directory(self) -> Path:
        """Create every standard folder plus the current year's trade partition."""
        for folder in self.folders.values():
            folder.mkdir(parents=True, exist_ok=True)
        current_year = datetime.now(timezone.utc).year
        (self.trades_dir / str(current_year)).mkdir(exist_ok=True)
        logger.debug(f"Data directory ready at {self.data_dir}")
        return self.data_dir

    def trade_partition(self, year: int) -> Path:
        partition = self.trades_dir / str(year)
        partition.mkdir(parents=True, exist_ok=True)
        return partition

    # =========================================================================
    # Backup collaborator hooks
    # =========================================================================

    def entity_files(self) -> List[Path]:
        """Every trade and thesis file, as paths relative to the data directory."""
        files: List[Path] = []
        for name in ENTITY_FOLDERS:
            folder = self.folders[name]
            if folder.exists():
                files.extend(
                    p.relative_to(self.data_dir)
                    for p in sorted(folder.rglob(f"*{ENTITY_SUFFIX}"))
                    if p.is_file()
                )
        return files

    def replace_from(self, source_dir: Union[str, Path]) -> int:
        """
        Replace the entity folders with those found in ``source_dir``.

        ``source_dir`` is an extracted backup laid out like the data
        directory. Screenshots and backups are left untouched.

        Returns:
            Number of entity files restored
        """
        source = Path(source_dir)
        if not source.is_dir():
            raise NotFoundError(detail=f"restore source {source} is not a directory")
        if not any((source / name).is_dir() for name in ENTITY_FOLDERS):
            raise InvalidArgumentError(
                detail=f"{source} contains neither trades/ nor theses/"
            )

        for name in ENTITY_FOLDERS:
            target = self.folders[name]
            if target.exists():
                shutil.rmtree(target)
            incoming = source / name
            if incoming.is_dir():
                shutil.copytree(incoming, target)
            else:
                target.mkdir(parents=True)

        restored = len(self.entity_files())
        logger.info(f"Restored {restored} entity files from {source}")
        return restored
