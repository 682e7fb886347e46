"""
Thesis Store Module

CRUD over quarterly theses, stored flat under ``theses/`` as
``<year>_<quarter>_<title-slug>_<id>.json``.

Two rules set this store apart from the trade store:

- At most one active thesis may exist per (year, quarter). The check runs
  when a thesis is created, never on update.
- Every update appends one entry to the thesis version history, computed
  from the state on disk before the update. Caller-supplied versions are
  ignored.
"""

import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from tradejournal.config.logging import journal_events, log_performance
from tradejournal.core.errors import ConflictError, InvalidArgumentError, JournalError, NotFoundError
from tradejournal.journal.locator import EntityLocator, GlobLocator, check_id, sanitize_prefix
from tradejournal.journal.models import (
    Quarter,
    Thesis,
    ThesisSummary,
    VersionHistory,
    describe_changes,
    utcnow,
)
from tradejournal.journal.response import returns_envelope
from tradejournal.journal.storage import DataLayout
from tradejournal.journal.trade_store import SLOW_SCAN_MS, TradeStore
from tradejournal.journal.validation import read_entity, serialize_entity, validate_thesis

logger = logging.getLogger(__name__)

TITLE_SLUG_LENGTH = 40


def thesis_prefix(thesis: Thesis) -> str:
    """Descriptive filename prefix, e.g. ``2024_Q1_tech-momentum``."""
    slug = "-".join(thesis.title.lower().split())[:TITLE_SLUG_LENGTH]
    return sanitize_prefix(thesis.year, thesis.quarter.value, slug)


class ThesisStore:
    """
    File-backed store of theses with quarter uniqueness and version history.

    Args:
        layout: Journal directory layout
        trade_store: Used to count trades linked to each thesis
        locator: Optional locator; defaults to a flat glob over ``theses/``
    """

    def __init__(
        self,
        layout: DataLayout,
        trade_store: TradeStore,
        locator: Optional[EntityLocator] = None,
    ):
        self.layout = layout
        self.trade_store = trade_store
        self.locator = locator if locator is not None else GlobLocator(layout.theses_dir, recursive=False)

    def _write(self, path: Path, thesis: Thesis) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(serialize_entity(thesis), encoding="utf-8")

    def _require(self, thesis_id: str) -> Path:
        path = self.locator.locate(check_id(thesis_id))
        if path is None:
            raise NotFoundError(detail=f"thesis {thesis_id}", context={"thesis_id": thesis_id})
        return path

    def _find_active(self, year: int, quarter: Quarter, exclude: Optional[str] = None) -> Optional[Thesis]:
        for thesis in self.iter_theses():
            if (
                thesis.is_active
                and thesis.year == year
                and thesis.quarter == quarter
                and thesis.id != exclude
            ):
                return thesis
        return None

    # =========================================================================
    # CRUD
    # =========================================================================

    @returns_envelope
    def save(
        self,
        thesis: Union[Thesis, Dict[str, Any]],
        changes: Optional[str] = None,
        changed_by: Optional[str] = None,
    ) -> str:
        """
        Create a thesis or update an existing one.

        Args:
            thesis: Full thesis document
            changes: Description for the new version; generated from a field
                diff against the stored state when omitted
            changed_by: Optional author recorded on the new version

        Returns:
            The thesis id

        Raises (as a failed response):
            ConflictError: Creating an active thesis for a quarter that
                already has one
        """
        incoming = validate_thesis(thesis)
        now = utcnow()
        path = self.locator.locate(incoming.id)

        if path is not None:
            current = read_entity(Thesis, path)
            description = changes or describe_changes(current, incoming)
            versions = current.versions.append(description, changed_by=changed_by, timestamp=now)
            updated = incoming.model_copy(
                update={"versions": versions, "created_at": current.created_at, "updated_at": now}
            )
            self._write(path, updated)
            journal_events.log_versioned(updated.id, len(versions), description)
            journal_events.log_saved("thesis", updated.id, path, created=False)
            return updated.id

        if incoming.is_active:
            clash = self._find_active(incoming.year, incoming.quarter, exclude=incoming.id)
            if clash is not None:
                detail = (
                    f"thesis {clash.id} ({clash.title!r}) is already active "
                    f"for {incoming.quarter.value} {incoming.year}"
                )
                journal_events.log_conflict(incoming.id, detail)
                raise ConflictError(
                    detail=detail,
                    context={"conflicting_id": clash.id, "year": incoming.year, "quarter": incoming.quarter.value},
                )

        created = incoming.model_copy(update={"versions": VersionHistory(), "updated_at": now})
        path = self.locator.path_for(thesis_prefix(created), created.id)
        self._write(path, created)
        self.locator.register(created.id, path)
        journal_events.log_saved("thesis", created.id, path, created=True)
        return created.id

    @returns_envelope
    def load(self, thesis_id: str) -> Thesis:
        return read_entity(Thesis, self._require(thesis_id))

    @returns_envelope
    @log_performance(threshold_ms=SLOW_SCAN_MS, log_result=True)
    def list(self) -> List[ThesisSummary]:
        """
        Summaries of every readable thesis with its linked trade count, newest first.
        """
        theses = list(self.iter_theses())
        trade_counts = Counter(
            trade.linked_thesis_id
            for trade in self.trade_store.iter_trades()
            if trade.linked_thesis_id
        )
        summaries = [thesis.to_summary(trade_counts.get(thesis.id, 0)) for thesis in theses]
        summaries.sort(key=lambda s: s.created_at, reverse=True)
        return summaries

    @returns_envelope
    def all(self) -> List[Thesis]:
        theses = list(self.iter_theses())
        theses.sort(key=lambda t: t.created_at, reverse=True)
        return theses

    @returns_envelope
    def delete(self, thesis_id: str) -> None:
        """Remove a thesis file. Trades linking to it keep their dangling reference."""
        path = self._require(thesis_id)
        path.unlink()
        self.locator.forget(thesis_id)
        journal_events.log_deleted("thesis", thesis_id, path)

    @returns_envelope
    def get_active(self, year: int, quarter: Union[Quarter, str]) -> Optional[Thesis]:
        """The active thesis for a quarter, or None when there is none."""
        try:
            year = int(year)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(detail=f"invalid year {year!r}", original_error=e) from e
        try:
            quarter = Quarter(quarter)
        except ValueError as e:
            raise InvalidArgumentError(detail=f"unknown quarter {quarter!r}", original_error=e) from e
        return self._find_active(year, quarter)

    @returns_envelope
    def verify(self) -> List[Dict[str, str]]:
        """Integrity check: every thesis file that ``list`` would skip."""
        problems = []
        for path in self.locator.iter_files():
            try:
                read_entity(Thesis, path)
            except JournalError as e:
                problems.append(
                    {
                        "path": path.relative_to(self.layout.data_dir).as_posix(),
                        "code": e.code,
                        "error": e.technical_message,
                    }
                )
        return problems

    def iter_theses(self) -> Iterator[Thesis]:
        """Yield every thesis that reads and validates, skipping the rest."""
        for path in self.locator.iter_files():
            try:
                yield read_entity(Thesis, path)
            except JournalError as e:
                journal_events.log_skipped(path, e)
