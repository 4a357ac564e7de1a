"""In-memory stand-ins for the ledger repository and the reveal store.

They keep the same contracts as the SQL/Redis implementations (guarded
transitions, one-shot completion) so service tests can check money
conservation end to end without a database.
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest

from src.sc_catalog.domain.outcome import Outcome
from src.sc_common.enums import (
    LedgerEntryType,
    PlayState,
    ReserveStatus,
    SettlementReason,
    SettleStatus,
)
from src.sc_wallet.domain.models import Account, LedgerEntry, Play, ReserveResult, SettleResult


class InMemoryLedger:
    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}
        self.plays: dict[str, Play] = {}
        self.entries: list[LedgerEntry] = []
        self._ids = count(1)
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _move(self, user_id: str, amount: int, entry_type: LedgerEntryType,
              play_id: str | None) -> tuple[Account, LedgerEntry]:
        account = self.accounts.setdefault(user_id, Account(user_id, 0, 0))
        account.balance_cents += amount
        account.version += 1
        entry = LedgerEntry(
            id=next(self._ids),
            user_id=user_id,
            entry_type=entry_type.value,
            amount=amount,
            balance_after=account.balance_cents,
            reference_type="PLAY" if play_id else "DEPOSIT",
            reference_id=play_id,
            created_at=self._tick(),
        )
        self.entries.append(entry)
        return account, entry

    def ledger_sum(self, user_id: str) -> int:
        return sum(e.amount for e in self.entries if e.user_id == user_id)

    async def get_account(self, db, user_id):
        return self.accounts.get(user_id)

    async def balance_of(self, db, user_id):
        account = self.accounts.get(user_id)
        return account.balance_cents if account else 0

    async def deposit(self, db, user_id, amount):
        return self._move(user_id, amount, LedgerEntryType.DEPOSIT, None)

    async def reserve(self, db, user_id, play_id, category_id, stake):
        if play_id in self.plays:
            return ReserveResult(ReserveStatus.DUPLICATE_PLAY, play=self.plays[play_id])
        balance = await self.balance_of(db, user_id)
        if balance < stake:
            return ReserveResult(ReserveStatus.INSUFFICIENT_FUNDS, available_cents=balance)
        account, _ = self._move(user_id, -stake, LedgerEntryType.PLAY_STAKE, play_id)
        play = Play(play_id, user_id, category_id, stake, PlayState.PURCHASED.value,
                    created_at=self._tick())
        self.plays[play_id] = play
        return ReserveResult(ReserveStatus.OK, play=replace(play), account=account)

    async def record_outcome(self, db, play_id, outcome: Outcome, grid, rtp_bps):
        play = self.plays[play_id]
        assert play.is_win is None, "outcome written twice"
        play.is_win = outcome.is_win
        play.tier_id = outcome.tier_id
        play.prize_cents = outcome.prize_cents
        play.rtp_bps = rtp_bps
        play.grid = list(grid)
        return replace(play)

    async def mark_revealed(self, db, play_id, user_id, coverage_bps):
        play = self.plays.get(play_id)
        if play is None or play.user_id != user_id or play.state != PlayState.PURCHASED:
            return None
        play.state = PlayState.REVEALED.value
        play.coverage_bps = coverage_bps
        play.revealed_at = self._tick()
        return replace(play)

    def _transition(self, play_id, user_id, credited, reason):
        play = self.plays.get(play_id)
        if play is None or play.user_id != user_id or play.is_win is None:
            return None, SettleStatus.UNKNOWN_PLAY
        if play.state == PlayState.SETTLED:
            return replace(play), SettleStatus.ALREADY_SETTLED
        play.state = PlayState.SETTLED.value
        play.credited_cents = credited
        play.settlement_reason = reason.value
        play.revealed_at = play.revealed_at or self._tick()
        play.settled_at = self._tick()
        return replace(play), SettleStatus.OK

    async def settle(self, db, play_id, user_id, outcome: Outcome,
                     reason=SettlementReason.CLIENT_COMPLETE):
        credit = outcome.prize_cents if outcome.is_win else 0
        play, status = self._transition(play_id, user_id, credit, reason)
        if status != SettleStatus.OK:
            return SettleResult(status, play=play, credited_cents=play.credited_cents if play else 0)
        if credit:
            self._move(user_id, credit, LedgerEntryType.PRIZE_PAYOUT, play_id)
        return SettleResult(SettleStatus.OK, play=play, credited_cents=credit)

    async def settle_with_refund(self, db, play_id, user_id):
        existing = self.plays.get(play_id)
        if existing is None or existing.user_id != user_id:
            return SettleResult(SettleStatus.UNKNOWN_PLAY)
        play, status = self._transition(
            play_id, user_id, existing.stake_cents, SettlementReason.RECONCILED_REFUND
        )
        if status != SettleStatus.OK:
            return SettleResult(status, play=play, credited_cents=play.credited_cents if play else 0)
        self._move(user_id, existing.stake_cents, LedgerEntryType.STAKE_REFUND, play_id)
        return SettleResult(SettleStatus.OK, play=play, credited_cents=existing.stake_cents)

    async def get_play(self, db, play_id):
        play = self.plays.get(play_id)
        return replace(play) if play else None

    async def list_plays(self, db, user_id, cursor_ts, cursor_id, limit):
        mine = sorted(
            (p for p in self.plays.values() if p.user_id == user_id),
            key=lambda p: (p.created_at, p.id),
            reverse=True,
        )
        if cursor_ts is not None:
            mine = [p for p in mine if (p.created_at, p.id) < (cursor_ts, cursor_id)]
        return [replace(p) for p in mine[:limit]]

    async def list_stale_plays(self, db, created_before, limit):
        stale = [
            p for p in self.plays.values()
            if p.state != PlayState.SETTLED and p.created_at < created_before
        ]
        return [replace(p) for p in sorted(stale, key=lambda p: p.created_at)[:limit]]

    async def list_ledger_entries(self, db, user_id, cursor_id, limit, entry_type):
        rows = [
            e for e in reversed(self.entries)
            if e.user_id == user_id
            and (cursor_id is None or e.id < cursor_id)
            and (entry_type is None or e.entry_type == entry_type)
        ]
        return rows[:limit]


class InMemoryRevealStore:
    def __init__(self) -> None:
        self.coverage: dict[str, int] = {}
        self.completed: set[str] = set()

    async def get(self, play_id: str) -> tuple[int, bool]:
        return self.coverage.get(play_id, 0), play_id in self.completed

    async def add_coverage(self, play_id: str, delta_bps: int) -> int:
        self.coverage[play_id] = self.coverage.get(play_id, 0) + delta_bps
        return self.coverage[play_id]

    async def set_coverage(self, play_id: str, coverage_bps: int) -> None:
        self.coverage[play_id] = coverage_bps

    async def mark_complete(self, play_id: str) -> bool:
        if play_id in self.completed:
            return False
        self.completed.add(play_id)
        return True


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def store() -> InMemoryRevealStore:
    return InMemoryRevealStore()
