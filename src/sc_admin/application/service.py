# src/sc_admin/application/service.py
"""Reconciliation of plays that were purchased but never settled.

A play stuck in PURCHASED or REVEALED means the client went away before
calling complete. Its stake is already debited and its outcome is already
stored, so the sweep can close it without any client input, according to
ORPHAN_POLICY:

    HONOR    settle from the stored outcome (a winner is still paid)
    FORFEIT  settle as a loss, nothing credited
    REFUND   return the stake, nothing else credited

Each play is settled in its own transaction so one bad row cannot block the
rest of the sweep.
"""

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sc_admin.domain.invariants import verify_ledger_conservation
from src.sc_catalog.api.router import build_catalog
from src.sc_catalog.domain.outcome import LOSS
from src.sc_common.database import async_session_factory
from src.sc_common.datetime_utils import seconds_ago
from src.sc_common.enums import OrphanPolicy, SettlementReason, SettleStatus
from src.sc_play.domain.lifecycle import stored_outcome
from src.sc_wallet.domain.models import Play, SettleResult
from src.sc_wallet.domain.repository import LedgerRepositoryProtocol
from src.sc_wallet.infrastructure.persistence import PlayLedgerRepository

logger = logging.getLogger(__name__)

_PLAY_STATS_SQL = text("""
    SELECT
        category_id,
        COUNT(*) AS plays,
        COUNT(*) FILTER (WHERE is_win) AS wins,
        COALESCE(SUM(stake_cents), 0) AS staked_cents,
        COALESCE(SUM(credited_cents), 0) AS credited_cents
    FROM plays
    WHERE state = 'SETTLED'
    GROUP BY category_id
""")


@dataclass
class ReconcileReport:
    policy: str
    scanned: int = 0
    settled: int = 0
    already_settled: int = 0
    failed: int = 0
    credited_cents: int = 0


class ReconciliationService:
    def __init__(
        self,
        repo: LedgerRepositoryProtocol | None = None,
        session_factory: Callable[[], Any] = async_session_factory,
    ) -> None:
        self._repo: LedgerRepositoryProtocol = repo or PlayLedgerRepository()
        self._session_factory = session_factory

    async def find_stale_plays(
        self, db: AsyncSession, older_than_seconds: int | None = None, limit: int = 100
    ) -> list[Play]:
        seconds = (
            settings.PLAY_STALE_AFTER_SECONDS if older_than_seconds is None else older_than_seconds
        )
        return await self._repo.list_stale_plays(db, seconds_ago(seconds), limit)

    async def _close(self, db: AsyncSession, play: Play, policy: OrphanPolicy) -> SettleResult:
        if policy == OrphanPolicy.REFUND:
            return await self._repo.settle_with_refund(db, play.id, play.user_id)
        if policy == OrphanPolicy.FORFEIT:
            return await self._repo.settle(
                db, play.id, play.user_id, LOSS, SettlementReason.RECONCILED_FORFEIT
            )
        return await self._repo.settle(
            db, play.id, play.user_id, stored_outcome(play), SettlementReason.RECONCILED_HONOR
        )

    async def reconcile_stale_plays(
        self,
        policy: OrphanPolicy | str | None = None,
        older_than_seconds: int | None = None,
        limit: int = 100,
    ) -> ReconcileReport:
        policy = OrphanPolicy(policy or settings.ORPHAN_POLICY)
        report = ReconcileReport(policy=policy.value)

        async with self._session_factory() as db:
            stale = await self.find_stale_plays(db, older_than_seconds, limit)
        report.scanned = len(stale)

        for play in stale:
            async with self._session_factory() as db:
                try:
                    result = await self._close(db, play, policy)
                    await db.commit()
                except Exception:
                    await db.rollback()
                    report.failed += 1
                    logger.exception("Reconciliation failed play=%s", play.id)
                    continue

            if result.status == SettleStatus.OK:
                report.settled += 1
                report.credited_cents += result.credited_cents
                logger.warning(
                    "Orphaned play reconciled play=%s user=%s policy=%s credited=%d",
                    play.id,
                    play.user_id,
                    policy.value,
                    result.credited_cents,
                )
            elif result.status == SettleStatus.ALREADY_SETTLED:
                # the client completed it between the scan and the settle
                report.already_settled += 1
            else:
                report.failed += 1
                logger.error("Stale play could not be settled play=%s", play.id)

        if report.scanned:
            logger.info("Reconciliation sweep finished %s", asdict(report))
        return report

    async def verify_all_invariants(self, db: AsyncSession) -> dict[str, object]:
        violations = await verify_ledger_conservation(db)
        return {"ok": len(violations) == 0, "violations": violations}

    async def catalog_report(self, db: AsyncSession) -> dict[str, Any]:
        """Configured RTP and expected return next to what settled plays realized."""
        rows = (await db.execute(_PLAY_STATS_SQL)).fetchall()
        realized = {
            row.category_id: {
                "plays": int(row.plays),
                "wins": int(row.wins),
                "staked_cents": int(row.staked_cents),
                "credited_cents": int(row.credited_cents),
                "win_rate_bps": int(row.wins) * 10000 // int(row.plays) if row.plays else 0,
            }
            for row in rows
        }
        categories = []
        for item in build_catalog().categories:
            entry = item.model_dump()
            entry["realized"] = realized.get(item.category_id)
            categories.append(entry)
        return {"orphan_policy": settings.ORPHAN_POLICY, "categories": categories}
