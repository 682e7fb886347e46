"""
Journal Models Module

Pydantic models for the two journal entities, Trade and Thesis, plus their
version history and list-view summaries. Documents are stored with camelCase
keys; Python code works with the snake_case attribute names.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Iterator, List, Optional, Tuple

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    RootModel,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

BREAKEVEN_TOLERANCE = 0.01

ID_PATTERN = r"^[A-Za-z0-9-]+$"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def unique(values: List[str]) -> List[str]:
    """De-duplicate while keeping first-seen order."""
    return list(dict.fromkeys(values))


EntityId = Annotated[str, StringConstraints(pattern=ID_PATTERN)]
UtcDateTime = Annotated[datetime, AfterValidator(as_utc)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# =============================================================================
# Enumerations
# =============================================================================


class TradeType(str, Enum):
    LONG = "long"
    SHORT = "short"


class TradeStatus(str, Enum):
    """Trade lifecycle; declaration order is the display sort order."""

    PLANNING = "planning"
    OPEN = "open"
    MONITORING = "monitoring"
    CLOSED = "closed"
    CANCELLED = "cancelled"


STATUS_ORDER = {status: index for index, status in enumerate(TradeStatus)}


class TradeOutcome(str, Enum):
    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"


class TradeUpdateType(str, Enum):
    NOTE = "note"
    PRICE_ALERT = "price_alert"
    STOP_LOSS_ADJUSTMENT = "stop_loss_adjustment"
    TARGET_ADJUSTMENT = "target_adjustment"
    POSITION_SIZE_CHANGE = "position_size_change"
    EXIT_PLAN = "exit_plan"


class Quarter(str, Enum):
    Q1 = "Q1"
    Q2 = "Q2"
    Q3 = "Q3"
    Q4 = "Q4"

    @classmethod
    def of(cls, moment: datetime) -> "Quarter":
        return cls(f"Q{(moment.month - 1) // 3 + 1}")


class MarketOutlook(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


def classify_pnl(value: float) -> TradeOutcome:
    """Win, loss or breakeven for a realized P&L figure."""
    if abs(value) < BREAKEVEN_TOLERANCE:
        return TradeOutcome.BREAKEVEN
    return TradeOutcome.WIN if value > 0 else TradeOutcome.LOSS


# =============================================================================
# Base Model
# =============================================================================


class JournalModel(BaseModel):
    """Common configuration: camelCase on disk, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        validate_assignment=False,
    )

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys; unset optionals are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Trade
# =============================================================================


class PreTradeNotes(JournalModel):
    """Plan written before entering the position."""

    thesis: Annotated[str, StringConstraints(min_length=10)]
    risk_assessment: Annotated[str, StringConstraints(min_length=10)]
    target_price: Optional[PositiveFloat] = None
    stop_loss: Optional[PositiveFloat] = None
    position_size: Optional[PositiveFloat] = None
    timeframe: Optional[str] = None


class PostTradeNotes(JournalModel):
    """Review written after the position is closed."""

    outcome: TradeOutcome
    profit_loss: Optional[float] = None
    profit_loss_percentage: Optional[float] = None
    actual_exit_price: Optional[PositiveFloat] = None
    execution_quality: Optional[int] = Field(default=None, ge=1, le=10)
    emotional_state: Optional[str] = None
    exit_reason: Optional[str] = None
    lessons_learned: Optional[str] = None


class TradeNote(JournalModel):
    """A timestamped note taken while the trade is live."""

    id: EntityId = Field(default_factory=new_id)
    timestamp: UtcDateTime = Field(default_factory=utcnow)
    content: NonEmptyStr
    price_at_time: Optional[PositiveFloat] = None
    update_type: TradeUpdateType = TradeUpdateType.NOTE
    tags: List[str] = Field(default_factory=list)
    is_important: bool = False
    created_at: UtcDateTime = Field(default_factory=utcnow)


class Trade(JournalModel):
    """
    A single position with its pre-, during- and post-trade notes.

    The entry date decides the year partition the document is written to when
    it is first saved; later edits do not move the file.
    """

    id: EntityId = Field(default_factory=new_id)
    ticker: Annotated[
        str, StringConstraints(strip_whitespace=True, to_upper=True, min_length=1, max_length=10)
    ]
    type: TradeType
    status: TradeStatus = TradeStatus.PLANNING
    entry_date: UtcDateTime
    exit_date: Optional[UtcDateTime] = None
    entry_price: Optional[PositiveFloat] = None
    exit_price: Optional[PositiveFloat] = None
    quantity: Optional[PositiveFloat] = None
    current_price: Optional[PositiveFloat] = None
    unrealized_pnl: Optional[float] = Field(default=None, alias="unrealizedPnL")
    realized_pnl: Optional[float] = Field(default=None, alias="realizedPnL")
    pre_trade_notes: PreTradeNotes
    during_trade_notes: List[TradeNote] = Field(default_factory=list)
    post_trade_notes: Optional[PostTradeNotes] = None
    screenshots: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    linked_thesis_id: Optional[EntityId] = None
    created_at: UtcDateTime = Field(default_factory=utcnow)
    updated_at: UtcDateTime = Field(default_factory=utcnow)

    @field_validator("tags", mode="after")
    @classmethod
    def dedupe_tags(cls, v: List[str]) -> List[str]:
        return unique(v)

    @model_validator(mode="after")
    def check_exit_fields(self) -> "Trade":
        if self.exit_price is not None and self.exit_date is None:
            raise PydanticCustomError(
                "cross_field",
                "exitPrice is set but exitDate is missing",
                {"field": "exitDate"},
            )
        if self.exit_date is not None and self.exit_date < self.entry_date:
            raise PydanticCustomError(
                "cross_field",
                "exitDate precedes entryDate",
                {"field": "exitDate"},
            )
        return self

    @property
    def partition_year(self) -> int:
        return self.entry_date.year

    @property
    def is_completed(self) -> bool:
        """Closed with both prices recorded; only these count in metrics."""
        return (
            self.status == TradeStatus.CLOSED
            and self.entry_price is not None
            and self.exit_price is not None
        )

    def realized_profit_loss(self) -> float:
        """
        Realized P&L for this trade.

        Uses the stored realizedPnL when present, then the profit/loss from the
        post-trade review, and otherwise computes it from the entry and exit
        prices. Open trades and trades without a quantity realize nothing.
        """
        if self.realized_pnl is not None:
            return self.realized_pnl
        if self.post_trade_notes is not None and self.post_trade_notes.profit_loss is not None:
            return self.post_trade_notes.profit_loss
        if self.entry_price is None or self.exit_price is None or self.quantity is None:
            return 0.0
        pnl = (self.exit_price - self.entry_price) * self.quantity
        return -pnl if self.type == TradeType.SHORT else pnl

    @property
    def outcome(self) -> Optional[TradeOutcome]:
        """Outcome of a closed trade, classified from realized P&L like the metrics."""
        if self.status != TradeStatus.CLOSED:
            return None
        return classify_pnl(self.realized_profit_loss())

    def searchable_text(self) -> str:
        """Lowercased text searched by the free-text filter."""
        parts = [self.ticker, self.type.value, self.status.value]
        parts.append(self.pre_trade_notes.thesis)
        parts.append(self.pre_trade_notes.risk_assessment)
        if self.post_trade_notes is not None:
            parts.extend(
                value
                for value in (
                    self.post_trade_notes.exit_reason,
                    self.post_trade_notes.lessons_learned,
                    self.post_trade_notes.emotional_state,
                )
                if value
            )
        parts.extend(self.tags)
        parts.extend(note.content for note in self.during_trade_notes)
        return " ".join(parts).lower()

    def to_summary(self) -> "TradeSummary":
        post = self.post_trade_notes
        return TradeSummary(
            id=self.id,
            ticker=self.ticker,
            type=self.type,
            status=self.status,
            entry_date=self.entry_date,
            exit_date=self.exit_date,
            outcome=post.outcome if post is not None else None,
            profit_loss=post.profit_loss if post is not None else None,
            linked_thesis_id=self.linked_thesis_id,
            tags=self.tags,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class TradeSummary(JournalModel):
    """List-view projection of a trade without notes or screenshots."""

    id: str
    ticker: str
    type: TradeType
    status: TradeStatus
    entry_date: datetime
    exit_date: Optional[datetime] = None
    outcome: Optional[TradeOutcome] = None
    profit_loss: Optional[float] = None
    linked_thesis_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Thesis
# =============================================================================


class ThesisStrategies(JournalModel):
    focus: List[str] = Field(min_length=1)
    avoid: List[str] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)
    sectors: List[str] = Field(default_factory=list)

    @field_validator("focus", "avoid", "themes", "sectors", mode="after")
    @classmethod
    def dedupe(cls, v: List[str]) -> List[str]:
        return unique(v)


class RiskParameters(JournalModel):
    max_position_size: float = Field(gt=0, le=1)
    stop_loss_rules: List[str] = Field(default_factory=list)
    diversification_rules: List[str] = Field(default_factory=list)
    max_daily_loss: Optional[PositiveFloat] = None
    max_correlated_positions: Optional[int] = Field(default=None, ge=1)
    risk_reward_ratio: Optional[PositiveFloat] = None

    @field_validator("stop_loss_rules", "diversification_rules", mode="before")
    @classmethod
    def rules_as_list(cls, v: Any) -> Any:
        # Rules may be written as one free-text paragraph
        if isinstance(v, str):
            return [v]
        return v


class ThesisGoals(JournalModel):
    profit_target: PositiveFloat
    trade_count: int = Field(gt=0)
    learning_objectives: List[str] = Field(min_length=1)
    win_rate_target: Optional[float] = Field(default=None, ge=0, le=1)
    timeframe: Optional[str] = None
    sharpe_ratio_target: Optional[float] = None


class ThesisVersion(JournalModel):
    """Marker recorded each time a thesis is updated."""

    id: EntityId = Field(default_factory=new_id)
    version_number: int = Field(ge=1)
    changes: str
    changed_by: Optional[str] = None
    timestamp: UtcDateTime = Field(default_factory=utcnow)
    previous_version: Optional[EntityId] = None

    model_config = ConfigDict(frozen=True)


class VersionHistory(RootModel[Tuple[ThesisVersion, ...]]):
    """
    Immutable, append-only sequence of thesis versions.

    Version numbers run 1..N without gaps and every entry after the first
    points back at its predecessor. The only way to grow a history is
    :meth:`append`, which returns a new history.
    """

    root: Tuple[ThesisVersion, ...] = ()

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_chain(self) -> "VersionHistory":
        previous: Optional[ThesisVersion] = None
        for index, version in enumerate(self.root, start=1):
            if version.version_number != index:
                raise PydanticCustomError(
                    "version_sequence",
                    "versionNumber {found} at position {index}, expected {index}",
                    {"found": version.version_number, "index": index},
                )
            expected_ref = previous.id if previous is not None else None
            if version.previous_version != expected_ref:
                raise PydanticCustomError(
                    "version_sequence",
                    "version {index} does not reference the preceding version",
                    {"index": index},
                )
            previous = version
        return self

    def __iter__(self) -> Iterator[ThesisVersion]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> ThesisVersion:
        return self.root[index]

    @property
    def latest(self) -> Optional[ThesisVersion]:
        return self.root[-1] if self.root else None

    def append(
        self,
        changes: str,
        changed_by: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> "VersionHistory":
        """Return a new history with one more version chained onto the latest."""
        latest = self.latest
        version = ThesisVersion(
            version_number=len(self.root) + 1,
            changes=changes,
            changed_by=changed_by,
            timestamp=timestamp or utcnow(),
            previous_version=latest.id if latest is not None else None,
        )
        return VersionHistory(self.root + (version,))


class Thesis(JournalModel):
    """A quarterly trading plan that trades may link to."""

    id: EntityId = Field(default_factory=new_id)
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=5)]
    quarter: Quarter
    year: int = Field(ge=2000, le=2100)
    market_outlook: MarketOutlook
    strategies: ThesisStrategies
    risk_parameters: RiskParameters
    goals: ThesisGoals
    versions: VersionHistory = Field(default_factory=VersionHistory)
    is_active: bool = True
    created_at: UtcDateTime = Field(default_factory=utcnow)
    updated_at: UtcDateTime = Field(default_factory=utcnow)

    def to_summary(self, trade_count: int = 0) -> "ThesisSummary":
        return ThesisSummary(
            id=self.id,
            title=self.title,
            quarter=self.quarter,
            year=self.year,
            market_outlook=self.market_outlook,
            is_active=self.is_active,
            trade_count=trade_count,
            version_count=len(self.versions),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class ThesisSummary(JournalModel):
    id: str
    title: str
    quarter: Quarter
    year: int
    market_outlook: MarketOutlook
    is_active: bool
    trade_count: int = 0
    version_count: int = 0
    created_at: datetime
    updated_at: datetime


# Fields compared when describing what changed between two thesis revisions.
TRACKED_THESIS_FIELDS = {
    "title": "title",
    "quarter": "quarter",
    "year": "year",
    "market_outlook": "market outlook",
    "strategies": "strategies",
    "risk_parameters": "risk parameters",
    "goals": "goals",
    "is_active": "active flag",
}


def describe_changes(before: Thesis, after: Thesis) -> str:
    """
    Human-readable description of the differences between two revisions.

    Scalar fields render as ``old -> new``; nested sections list the keys
    that changed.
    """
    changes: List[str] = []
    old_doc = before.model_dump(mode="json")
    new_doc = after.model_dump(mode="json")

    for name, label in TRACKED_THESIS_FIELDS.items():
        old_value, new_value = old_doc[name], new_doc[name]
        if old_value == new_value:
            continue
        if isinstance(old_value, dict) and isinstance(new_value, dict):
            keys = sorted(k for k in set(old_value) | set(new_value) if old_value.get(k) != new_value.get(k))
            changes.append(f"{label} updated ({', '.join(keys)})")
        else:
            changes.append(f"{label}: {old_value} -> {new_value}")

    return "; ".join(changes) if changes else "No field changes"
