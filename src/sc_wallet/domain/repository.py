"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_catalog.domain.outcome import Outcome
from src.sc_common.enums import SettlementReason
from src.sc_wallet.domain.models import Account, LedgerEntry, Play, ReserveResult, SettleResult


class LedgerRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None: ...

    async def balance_of(self, db: AsyncSession, user_id: str) -> int: ...

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]: ...

    async def reserve(
        self,
        db: AsyncSession,
        user_id: str,
        play_id: str,
        category_id: int,
        stake: int,
    ) -> ReserveResult: ...

    async def record_outcome(
        self,
        db: AsyncSession,
        play_id: str,
        outcome: Outcome,
        grid: tuple[str, ...],
        rtp_bps: int,
    ) -> Play: ...

    async def mark_revealed(
        self, db: AsyncSession, play_id: str, user_id: str, coverage_bps: int
    ) -> Play | None: ...

    async def settle(
        self,
        db: AsyncSession,
        play_id: str,
        user_id: str,
        outcome: Outcome,
        reason: SettlementReason = SettlementReason.CLIENT_COMPLETE,
    ) -> SettleResult: ...

    async def settle_with_refund(
        self, db: AsyncSession, play_id: str, user_id: str
    ) -> SettleResult: ...

    async def get_play(self, db: AsyncSession, play_id: str) -> Play | None: ...

    async def list_plays(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Play]: ...

    async def list_stale_plays(
        self, db: AsyncSession, created_before: datetime, limit: int
    ) -> list[Play]: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
