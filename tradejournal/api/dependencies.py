"""
Trade Journal API Dependencies
==============================

Dependency injection container for the journal API, holding the single
JournalManager the routers operate on.

Usage:
    from tradejournal.api.dependencies import get_journal

    @router.get("/api/trades")
    def list_trades(journal: JournalManager = Depends(get_journal)):
        ...
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from fastapi import HTTPException

from tradejournal.config.settings import JournalSettings
from tradejournal.journal.manager import JournalManager

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """
    Dependency injection container for journal services.

    Attributes:
        journal: JournalManager for the configured data directory
    """

    journal: Optional[JournalManager] = None

    _initialized: bool = field(default=False, repr=False)

    def initialize(
        self,
        base_dir: Optional[Union[str, Path]] = None,
        settings: Optional[JournalSettings] = None,
    ) -> None:
        """Open the journal. Calling it again is a no-op."""
        if self._initialized:
            logger.debug("Container already initialized")
            return

        self.journal = JournalManager(base_dir, settings=settings)
        self._initialized = True
        logger.info("Journal API container initialized")

    def reset(self) -> None:
        self.journal = None
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized


_container: Optional[Container] = None


def get_container() -> Container:
    """Get or create the global container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    """
    Reset the global container.

    Primarily used for testing to ensure a clean state.
    """
    global _container
    if _container is not None:
        _container.reset()
    _container = None


def get_journal() -> JournalManager:
    """
    FastAPI dependency returning the JournalManager.

    Raises:
        HTTPException: If the container has not been initialized
    """
    container = get_container()
    if container.journal is None:
        raise HTTPException(status_code=503, detail="Journal not initialized")
    return container.journal
