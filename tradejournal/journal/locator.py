"""
Entity Locator Module

Resolves entity ids to files. Every entity file is named
``<prefix>_<id>.json``, so an id can be found by matching the filename
suffix without a separate index. Stores only talk to the EntityLocator
interface, which lets the directory scan be replaced by an index.
"""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from tradejournal.core.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

ENTITY_SUFFIX = ".json"

_ID_RE = re.compile(r"^[A-Za-z0-9-]+$")
_PREFIX_UNSAFE_RE = re.compile(r"[^A-Za-z0-9.-]+")


def check_id(entity_id: str) -> str:
    """Reject ids that could escape the filename pattern."""
    if not isinstance(entity_id, str) or not _ID_RE.match(entity_id):
        raise InvalidArgumentError(detail=f"invalid entity id {entity_id!r}")
    return entity_id


def sanitize_prefix(*parts: object) -> str:
    """Join prefix parts with underscores, replacing unsafe characters with '-'."""
    cleaned = []
    for part in parts:
        text = _PREFIX_UNSAFE_RE.sub("-", str(part)).strip("-")
        cleaned.append(text or "untitled")
    return "_".join(cleaned)


def entity_filename(prefix: str, entity_id: str) -> str:
    return f"{prefix}_{check_id(entity_id)}{ENTITY_SUFFIX}"


class EntityLocator(ABC):
    """
    Maps entity ids to file paths under a root directory.

    Implementations must be consistent with the files on disk after any
    call to :meth:`register` or :meth:`forget`.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    @abstractmethod
    def locate(self, entity_id: str) -> Optional[Path]:
        """Return the file holding ``entity_id``, or None if there is none."""

    @abstractmethod
    def iter_files(self) -> Iterator[Path]:
        """Yield every entity file under the root in a stable order."""

    def path_for(self, prefix: str, entity_id: str, partition: Optional[str] = None) -> Path:
        """Path a new entity file should be written to."""
        directory = self.root / partition if partition else self.root
        return directory / entity_filename(prefix, entity_id)

    def register(self, entity_id: str, path: Path) -> None:
        """Record that ``entity_id`` now lives at ``path``."""

    def forget(self, entity_id: str) -> None:
        """Record that ``entity_id`` no longer exists."""


class GlobLocator(EntityLocator):
    """Finds files by globbing for the ``*_<id>.json`` suffix."""

    def __init__(self, root: Union[str, Path], recursive: bool = False):
        super().__init__(root)
        self.recursive = recursive

    def _glob(self, pattern: str) -> Iterator[Path]:
        if not self.root.exists():
            return iter(())
        matches = self.root.rglob(pattern) if self.recursive else self.root.glob(pattern)
        return iter(sorted(p for p in matches if p.is_file()))

    def locate(self, entity_id: str) -> Optional[Path]:
        check_id(entity_id)
        for path in self._glob(f"*_{entity_id}{ENTITY_SUFFIX}"):
            return path
        return None

    def iter_files(self) -> Iterator[Path]:
        return self._glob(f"*{ENTITY_SUFFIX}")


class IndexedLocator(EntityLocator):
    """
    Keeps an in-memory id -> path index in front of another locator.

    Misses fall through to the wrapped locator and are cached; stale entries
    (files removed behind our back) are dropped on lookup.
    """

    def __init__(self, inner: EntityLocator):
        super().__init__(inner.root)
        self.inner = inner
        self._index: Dict[str, Path] = {}

    def locate(self, entity_id: str) -> Optional[Path]:
        check_id(entity_id)
        path = self._index.get(entity_id)
        if path is not None:
            if path.exists():
                return path
            logger.debug(f"Dropping stale index entry for {entity_id}")
            del self._index[entity_id]

        path = self.inner.locate(entity_id)
        if path is not None:
            self._index[entity_id] = path
        return path

    def iter_files(self) -> Iterator[Path]:
        return self.inner.iter_files()

    def path_for(self, prefix: str, entity_id: str, partition: Optional[str] = None) -> Path:
        return self.inner.path_for(prefix, entity_id, partition)

    def register(self, entity_id: str, path: Path) -> None:
        self._index[entity_id] = path
        self.inner.register(entity_id, path)

    def forget(self, entity_id: str) -> None:
        self._index.pop(entity_id, None)
        self.inner.forget(entity_id)

    def __len__(self) -> int:
        return len(self._index)
