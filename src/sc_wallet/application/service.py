"""AccountApplicationService — thin composition layer.

Combines repository calls with schema transformations. Deposit commits on
success and rolls back on any error; the read paths run without an explicit
transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.cents import cents_to_display
from src.sc_wallet.application.schemas import (
    BalanceResponse,
    DepositResponse,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.sc_wallet.domain.repository import LedgerRepositoryProtocol
from src.sc_wallet.infrastructure.persistence import PlayLedgerRepository

logger = logging.getLogger(__name__)


class AccountApplicationService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or PlayLedgerRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        # a player who never deposited simply has a zero balance
        balance = await self._repo.balance_of(db, user_id)
        return BalanceResponse.from_cents(user_id=user_id, balance=balance)

    async def deposit(
        self, db: AsyncSession, user_id: str, amount_cents: int, source: str | None = None
    ) -> DepositResponse:
        """Credit a confirmed payment. `source` is the payment service that reported it."""
        try:
            account, entry = await self._repo.deposit(db, user_id, amount_cents)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Deposit user=%s amount=%d balance=%d source=%s",
            user_id,
            amount_cents,
            account.balance_cents,
            source,
        )
        return DepositResponse.from_result(
            balance=account.balance_cents,
            amount=amount_cents,
            entry_id=entry.id,
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [
            LedgerEntryItem(
                id=e.id,
                entry_type=e.entry_type,
                amount_cents=e.amount,
                amount_display=cents_to_display(e.amount),
                balance_after_cents=e.balance_after,
                balance_after_display=cents_to_display(e.balance_after),
                reference_type=e.reference_type,
                reference_id=e.reference_id,
                description=e.description,
                created_at=e.created_at.isoformat() if e.created_at else "",
            )
            for e in page
        ]

        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)
