"""Pydantic schemas for the play lifecycle API."""

import base64
import json
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.sc_catalog.domain.catalog import get_prize_table
from src.sc_common.cents import cents_to_display
from src.sc_common.errors import CategoryNotFoundError
from src.sc_wallet.domain.models import Play

# ---------------------------------------------------------------------------
# Cursor: (created_at, id) of the last play on the page
# ---------------------------------------------------------------------------


def play_cursor_encode(created_at: datetime, play_id: str) -> str:
    payload = json.dumps({"ts": created_at.isoformat(), "id": play_id})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def play_cursor_decode(cursor: str | None) -> tuple[datetime, str] | None:
    """Returns None for a missing or malformed cursor (first page)."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(payload["ts"]), str(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class PurchaseRequest(BaseModel):
    category_id: int
    stake_cents: int | None = Field(None, gt=0, description="Defaults to the category stake")
    play_id: str | None = Field(
        None,
        min_length=1,
        max_length=64,
        description="Client retry key; a retried purchase returns the original play",
    )

    @field_validator("play_id")
    @classmethod
    def no_whitespace(cls, v: str | None) -> str | None:
        if v is not None and (v != v.strip() or " " in v):
            raise ValueError("play_id must not contain whitespace")
        return v


class RevealRequest(BaseModel):
    uncovered_bps: int | None = Field(None, ge=0, le=10000)
    reveal_all: bool = False


class CompleteRequest(BaseModel):
    claimed_is_win: bool | None = None
    claimed_tier_id: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class TierInfo(BaseModel):
    id: str
    display_name: str


class OutcomeItem(BaseModel):
    is_win: bool
    tier: TierInfo | None
    prize_cents: int
    prize_display: str

    @classmethod
    def from_play(cls, play: Play) -> "OutcomeItem":
        return cls(
            is_win=bool(play.is_win),
            tier=_tier_info(play),
            prize_cents=play.prize_cents,
            prize_display=cents_to_display(play.prize_cents),
        )


def _tier_info(play: Play) -> TierInfo | None:
    if not play.is_win or play.tier_id is None:
        return None
    try:
        tier = get_prize_table(play.category_id).tier(play.tier_id)
    except CategoryNotFoundError:
        tier = None
    return TierInfo(id=play.tier_id, display_name=tier.display_name if tier else play.tier_id)


class PurchaseResponse(BaseModel):
    play_id: str
    category_id: int
    state: str
    stake_cents: int
    stake_display: str

    @classmethod
    def from_play(cls, play: Play) -> "PurchaseResponse":
        return cls(
            play_id=play.id,
            category_id=play.category_id,
            state=play.state,
            stake_cents=play.stake_cents,
            stake_display=cents_to_display(play.stake_cents),
        )


class RevealResponse(BaseModel):
    play_id: str
    coverage_bps: int
    completed: bool
    state: str
    grid: list[str] | None = None       # only once completed
    outcome: OutcomeItem | None = None  # only once completed

    @classmethod
    def from_play(cls, play: Play, coverage_bps: int, completed: bool) -> "RevealResponse":
        visible = completed or play.is_revealed
        return cls(
            play_id=play.id,
            coverage_bps=coverage_bps,
            completed=visible,
            state=play.state,
            grid=list(play.grid) if visible else None,
            outcome=OutcomeItem.from_play(play) if visible else None,
        )


class CompleteResponse(BaseModel):
    play_id: str
    is_win: bool
    tier: TierInfo | None
    prize_cents: int
    prize_display: str
    credited_cents: int
    status: str  # SettleStatus value

    @classmethod
    def from_play(cls, play: Play, status: str) -> "CompleteResponse":
        return cls(
            play_id=play.id,
            is_win=bool(play.is_win),
            tier=_tier_info(play),
            prize_cents=play.prize_cents,
            prize_display=cents_to_display(play.prize_cents),
            credited_cents=play.credited_cents,
            status=status,
        )


class PlayResponse(BaseModel):
    play_id: str
    category_id: int
    state: str
    stake_cents: int
    stake_display: str
    coverage_bps: int
    grid: list[str] | None
    outcome: OutcomeItem | None
    credited_cents: int
    settlement_reason: str | None
    created_at: datetime | None = None
    revealed_at: datetime | None = None
    settled_at: datetime | None = None

    @classmethod
    def from_play(cls, play: Play) -> "PlayResponse":
        # the result stays hidden until the reveal completes
        visible = play.is_revealed
        return cls(
            play_id=play.id,
            category_id=play.category_id,
            state=play.state,
            stake_cents=play.stake_cents,
            stake_display=cents_to_display(play.stake_cents),
            coverage_bps=play.coverage_bps,
            grid=list(play.grid) if visible else None,
            outcome=OutcomeItem.from_play(play) if visible else None,
            credited_cents=play.credited_cents,
            settlement_reason=play.settlement_reason,
            created_at=play.created_at,
            revealed_at=play.revealed_at,
            settled_at=play.settled_at,
        )


class PlayListResponse(BaseModel):
    items: list[PlayResponse]
    next_cursor: str | None
    has_more: bool
