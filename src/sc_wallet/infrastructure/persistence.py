"""PlayLedgerRepository — concrete implementation of LedgerRepositoryProtocol.

Every balance or play-state mutation is one atomic PostgreSQL statement
(conditional UPDATE ... RETURNING, or INSERT ... ON CONFLICT DO NOTHING).
Zero returned rows means the guard rejected the change: insufficient funds,
duplicate play id, or a play that is not in a settleable state.

Transaction ownership: the CALLER (application service) commits, or rolls
back on any non-OK result. reserve() relies on that: on INSUFFICIENT_FUNDS the
play row it inserted disappears with the rollback.
"""

import json
import logging
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_catalog.domain.outcome import Outcome
from src.sc_common.enums import (
    LedgerEntryType,
    ReserveStatus,
    SettlementReason,
    SettleStatus,
)
from src.sc_common.errors import InternalError
from src.sc_wallet.domain.models import Account, LedgerEntry, Play, ReserveResult, SettleResult

logger = logging.getLogger(__name__)

_PLAY_COLUMNS = """
    id, user_id, category_id, stake_cents, state,
    is_win, tier_id, prize_cents, rtp_bps, grid, coverage_bps,
    credited_cents, settlement_reason, created_at, revealed_at, settled_at
"""

_ACCOUNT_COLUMNS = "user_id, balance, version, created_at, updated_at"

# ---------------------------------------------------------------------------
# SQL: accounts
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")

_DEPOSIT_SQL = text(f"""
    INSERT INTO accounts (user_id, balance)
    VALUES (:user_id, :amount)
    ON CONFLICT (user_id) DO UPDATE
        SET balance = accounts.balance + EXCLUDED.balance,
            version = accounts.version + 1,
            updated_at = NOW()
    RETURNING {_ACCOUNT_COLUMNS}
""")

_DEBIT_SQL = text(f"""
    UPDATE accounts
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CREDIT_SQL = text(f"""
    UPDATE accounts
    SET balance = balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: plays
# ---------------------------------------------------------------------------

_INSERT_PLAY_SQL = text(f"""
    INSERT INTO plays (id, user_id, category_id, stake_cents, state)
    VALUES (:play_id, :user_id, :category_id, :stake_cents, 'PURCHASED')
    ON CONFLICT (id) DO NOTHING
    RETURNING {_PLAY_COLUMNS}
""")

_RECORD_OUTCOME_SQL = text(f"""
    UPDATE plays
    SET is_win = :is_win,
        tier_id = :tier_id,
        prize_cents = :prize_cents,
        rtp_bps = :rtp_bps,
        grid = CAST(:grid AS JSONB)
    WHERE id = :play_id AND is_win IS NULL
    RETURNING {_PLAY_COLUMNS}
""")

_MARK_REVEALED_SQL = text(f"""
    UPDATE plays
    SET state = 'REVEALED',
        coverage_bps = :coverage_bps,
        revealed_at = NOW()
    WHERE id = :play_id AND user_id = :user_id AND state = 'PURCHASED'
    RETURNING {_PLAY_COLUMNS}
""")

_SETTLE_SQL = text(f"""
    UPDATE plays
    SET state = 'SETTLED',
        credited_cents = :credited_cents,
        settlement_reason = :reason,
        revealed_at = COALESCE(revealed_at, NOW()),
        settled_at = NOW()
    WHERE id = :play_id
      AND user_id = :user_id
      AND state IN ('PURCHASED', 'REVEALED')
      AND is_win IS NOT NULL
    RETURNING {_PLAY_COLUMNS}
""")

_GET_PLAY_SQL = text(f"""
    SELECT {_PLAY_COLUMNS}
    FROM plays
    WHERE id = :play_id
""")

_LIST_PLAYS_SQL = text(f"""
    SELECT {_PLAY_COLUMNS}
    FROM plays
    WHERE user_id = :user_id
      AND (CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
           OR (created_at, id) < (:cursor_ts, :cursor_id))
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_LIST_STALE_PLAYS_SQL = text(f"""
    SELECT {_PLAY_COLUMNS}
    FROM plays
    WHERE state <> 'SETTLED' AND created_at < :created_before
    ORDER BY created_at
    LIMIT :limit
""")


def _load_grid(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return list(json.loads(value))
    return list(value)  # type: ignore[call-overload]


def _row_to_account(row: object) -> Account:
    return Account(
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance_cents=row.balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_play(row: object) -> Play:
    return Play(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        category_id=row.category_id,  # type: ignore[attr-defined]
        stake_cents=row.stake_cents,  # type: ignore[attr-defined]
        state=row.state,  # type: ignore[attr-defined]
        is_win=row.is_win,  # type: ignore[attr-defined]
        tier_id=row.tier_id,  # type: ignore[attr-defined]
        prize_cents=row.prize_cents,  # type: ignore[attr-defined]
        rtp_bps=row.rtp_bps,  # type: ignore[attr-defined]
        grid=_load_grid(row.grid),  # type: ignore[attr-defined]
        coverage_bps=row.coverage_bps,  # type: ignore[attr-defined]
        credited_cents=row.credited_cents,  # type: ignore[attr-defined]
        settlement_reason=row.settlement_reason,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        revealed_at=row.revealed_at,  # type: ignore[attr-defined]
        settled_at=row.settled_at,  # type: ignore[attr-defined]
    )


class PlayLedgerRepository:
    """Concrete repository — all mutations atomic at the SQL level."""

    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def balance_of(self, db: AsyncSession, user_id: str) -> int:
        account = await self.get_account(db, user_id)
        return account.balance_cents if account else 0

    async def _write_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: LedgerEntryType,
        amount: int,
        balance_after: int,
        reference_type: str | None,
        reference_id: str | None,
        description: str,
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": user_id,
                "entry_type": entry_type.value,
                "amount": amount,
                "balance_after": balance_after,
                "reference_type": reference_type,
                "reference_id": reference_id,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(row)

    async def _credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: LedgerEntryType,
        play_id: str,
        description: str,
    ) -> Account:
        result = await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            # a play exists only for a user whose account paid the stake
            raise InternalError(f"Account not found for user {user_id}")
        account = _row_to_account(row)
        await self._write_ledger(
            db, user_id, entry_type, amount, account.balance_cents, "PLAY", play_id, description
        )
        return account

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]:
        result = await db.execute(_DEPOSIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Deposit upsert returned no rows for user {user_id}")
        account = _row_to_account(row)
        entry = await self._write_ledger(
            db,
            user_id,
            LedgerEntryType.DEPOSIT,
            amount,
            account.balance_cents,
            "DEPOSIT",
            None,
            "Balance top-up",
        )
        return account, entry

    async def reserve(
        self,
        db: AsyncSession,
        user_id: str,
        play_id: str,
        category_id: int,
        stake: int,
    ) -> ReserveResult:
        # 1. Claim the play id; the primary key serializes concurrent retries.
        result = await db.execute(
            _INSERT_PLAY_SQL,
            {
                "play_id": play_id,
                "user_id": user_id,
                "category_id": category_id,
                "stake_cents": stake,
            },
        )
        play_row = result.fetchone()
        if play_row is None:
            return ReserveResult(ReserveStatus.DUPLICATE_PLAY, play=await self.get_play(db, play_id))

        # 2. Conditional debit: one statement, no read-then-write race.
        result = await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": stake})
        account_row = result.fetchone()
        if account_row is None:
            return ReserveResult(
                ReserveStatus.INSUFFICIENT_FUNDS,
                available_cents=await self.balance_of(db, user_id),
            )

        account = _row_to_account(account_row)
        await self._write_ledger(
            db,
            user_id,
            LedgerEntryType.PLAY_STAKE,
            -stake,
            account.balance_cents,
            "PLAY",
            play_id,
            f"Scratch card purchase (category {category_id})",
        )
        return ReserveResult(ReserveStatus.OK, play=_row_to_play(play_row), account=account)

    async def record_outcome(
        self,
        db: AsyncSession,
        play_id: str,
        outcome: Outcome,
        grid: tuple[str, ...],
        rtp_bps: int,
    ) -> Play:
        result = await db.execute(
            _RECORD_OUTCOME_SQL,
            {
                "play_id": play_id,
                "is_win": outcome.is_win,
                "tier_id": outcome.tier_id,
                "prize_cents": outcome.prize_cents,
                "rtp_bps": rtp_bps,
                "grid": json.dumps(list(grid)),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Outcome already recorded or play missing: {play_id}")
        return _row_to_play(row)

    async def mark_revealed(
        self, db: AsyncSession, play_id: str, user_id: str, coverage_bps: int
    ) -> Play | None:
        result = await db.execute(
            _MARK_REVEALED_SQL,
            {"play_id": play_id, "user_id": user_id, "coverage_bps": coverage_bps},
        )
        row = result.fetchone()
        return _row_to_play(row) if row else None

    async def _transition_to_settled(
        self,
        db: AsyncSession,
        play_id: str,
        user_id: str,
        credited_cents: int,
        reason: SettlementReason,
    ) -> tuple[Play | None, SettleStatus]:
        result = await db.execute(
            _SETTLE_SQL,
            {
                "play_id": play_id,
                "user_id": user_id,
                "credited_cents": credited_cents,
                "reason": reason.value,
            },
        )
        row = result.fetchone()
        if row is not None:
            return _row_to_play(row), SettleStatus.OK

        existing = await self.get_play(db, play_id)
        if existing is None or existing.user_id != user_id or not existing.has_outcome:
            return None, SettleStatus.UNKNOWN_PLAY
        return existing, SettleStatus.ALREADY_SETTLED

    async def settle(
        self,
        db: AsyncSession,
        play_id: str,
        user_id: str,
        outcome: Outcome,
        reason: SettlementReason = SettlementReason.CLIENT_COMPLETE,
    ) -> SettleResult:
        credit = outcome.prize_cents if outcome.is_win else 0
        play, status = await self._transition_to_settled(db, play_id, user_id, credit, reason)
        if status != SettleStatus.OK:
            return SettleResult(status, play=play, credited_cents=play.credited_cents if play else 0)

        if credit > 0:
            await self._credit(
                db,
                user_id,
                credit,
                LedgerEntryType.PRIZE_PAYOUT,
                play_id,
                f"Prize {outcome.tier_id}",
            )
        return SettleResult(SettleStatus.OK, play=play, credited_cents=credit)

    async def settle_with_refund(
        self, db: AsyncSession, play_id: str, user_id: str
    ) -> SettleResult:
        existing = await self.get_play(db, play_id)
        if existing is None or existing.user_id != user_id:
            return SettleResult(SettleStatus.UNKNOWN_PLAY)
        refund = existing.stake_cents
        play, status = await self._transition_to_settled(
            db, play_id, user_id, refund, SettlementReason.RECONCILED_REFUND
        )
        if status != SettleStatus.OK:
            return SettleResult(status, play=play, credited_cents=play.credited_cents if play else 0)

        await self._credit(
            db, user_id, refund, LedgerEntryType.STAKE_REFUND, play_id, "Stake refund for unsettled play"
        )
        return SettleResult(SettleStatus.OK, play=play, credited_cents=refund)

    async def get_play(self, db: AsyncSession, play_id: str) -> Play | None:
        result = await db.execute(_GET_PLAY_SQL, {"play_id": play_id})
        row = result.fetchone()
        return _row_to_play(row) if row else None

    async def list_plays(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Play]:
        result = await db.execute(
            _LIST_PLAYS_SQL,
            {
                "user_id": user_id,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_play(row) for row in result.fetchall()]

    async def list_stale_plays(
        self, db: AsyncSession, created_before: datetime, limit: int
    ) -> list[Play]:
        result = await db.execute(
            _LIST_STALE_PLAYS_SQL, {"created_before": created_before, "limit": limit}
        )
        return [_row_to_play(row) for row in result.fetchall()]

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]
