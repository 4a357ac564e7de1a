# src/sc_admin/domain/invariants.py
"""Ledger conservation checks.

Every balance change writes a ledger entry, so for each account the balance
must equal the sum of its entries, and for each settled play the credit on
the play row must equal the payout/refund entries that reference it.
"""
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_ACCOUNT_DRIFT_SQL = text("""
    SELECT a.user_id, a.balance, COALESCE(SUM(l.amount), 0) AS ledger_sum
    FROM accounts a
    LEFT JOIN ledger_entries l ON l.user_id = a.user_id
    GROUP BY a.user_id, a.balance
    HAVING a.balance <> COALESCE(SUM(l.amount), 0)
""")

_PLAY_CREDIT_DRIFT_SQL = text("""
    SELECT p.id, p.state, p.credited_cents, COALESCE(SUM(l.amount), 0) AS ledger_sum
    FROM plays p
    LEFT JOIN ledger_entries l
        ON l.reference_type = 'PLAY'
       AND l.reference_id = p.id
       AND l.entry_type IN ('PRIZE_PAYOUT', 'STAKE_REFUND')
    GROUP BY p.id, p.state, p.credited_cents
    HAVING p.credited_cents <> COALESCE(SUM(l.amount), 0)
""")

_PLAY_STAKE_DRIFT_SQL = text("""
    SELECT p.id, p.stake_cents, COALESCE(SUM(l.amount), 0) AS ledger_sum
    FROM plays p
    LEFT JOIN ledger_entries l
        ON l.reference_type = 'PLAY'
       AND l.reference_id = p.id
       AND l.entry_type = 'PLAY_STAKE'
    GROUP BY p.id, p.stake_cents
    HAVING COALESCE(SUM(l.amount), 0) <> -p.stake_cents
""")


async def verify_ledger_conservation(db: AsyncSession) -> list[str]:
    """Returns one violation string per drifting account or play."""
    violations: list[str] = []

    for row in (await db.execute(_ACCOUNT_DRIFT_SQL)).fetchall():
        violations.append(
            f"Account {row.user_id}: balance={row.balance} != ledger_sum={row.ledger_sum}"
        )
    for row in (await db.execute(_PLAY_STAKE_DRIFT_SQL)).fetchall():
        violations.append(
            f"Play {row.id}: stake={row.stake_cents} but stake entries sum to {row.ledger_sum}"
        )
    for row in (await db.execute(_PLAY_CREDIT_DRIFT_SQL)).fetchall():
        violations.append(
            f"Play {row.id} ({row.state}): credited={row.credited_cents} "
            f"but payout entries sum to {row.ledger_sum}"
        )

    for msg in violations:
        logger.error("Ledger conservation violated: %s", msg)
    return violations
