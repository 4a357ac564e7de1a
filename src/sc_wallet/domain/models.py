"""Domain models for sc_wallet — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.sc_common.enums import PlayState, ReserveStatus, SettleStatus


@dataclass
class Account:
    user_id: str
    balance_cents: int
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Play:
    id: str
    user_id: str
    category_id: int
    stake_cents: int
    state: str                       # PlayState value
    is_win: bool | None = None       # None until the outcome is recorded
    tier_id: str | None = None
    prize_cents: int = 0
    rtp_bps: int | None = None
    grid: list[str] = field(default_factory=list)
    coverage_bps: int = 0
    credited_cents: int = 0          # what settlement actually paid back
    settlement_reason: str | None = None
    created_at: datetime | None = None
    revealed_at: datetime | None = None
    settled_at: datetime | None = None

    @property
    def is_settled(self) -> bool:
        return self.state == PlayState.SETTLED

    @property
    def is_revealed(self) -> bool:
        return self.state in (PlayState.REVEALED, PlayState.SETTLED)

    @property
    def has_outcome(self) -> bool:
        return self.is_win is not None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # cents, positive=credit negative=debit
    balance_after: int               # cents, balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class ReserveResult:
    status: ReserveStatus
    play: Play | None = None         # new play on OK, existing play on DUPLICATE_PLAY
    account: Account | None = None
    available_cents: int = 0         # reported on INSUFFICIENT_FUNDS

    @property
    def ok(self) -> bool:
        return self.status == ReserveStatus.OK


@dataclass
class SettleResult:
    status: SettleStatus
    play: Play | None = None         # settled play on OK / ALREADY_SETTLED
    credited_cents: int = 0

    @property
    def ok(self) -> bool:
        return self.status == SettleStatus.OK
