"""PlayApplicationService — the play lifecycle coordinator.

    PURCHASED ──reveal completes──▶ REVEALED ──complete──▶ SETTLED
        └────────────── complete (combined flow) ─────────────┘

purchase: reserve the stake, decide the outcome, store outcome + grid, all in
          one transaction. The response never carries the outcome.
reveal:   feed scratch progress to the reveal tracker; when it completes the
          play becomes REVEALED and the stored result is shown.
complete: settle from the STORED outcome. Whatever the client claims is only
          compared and logged.

Every play-scoped call re-checks ownership; a foreign play id is reported as
not found.
"""

import logging
import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sc_catalog.domain.catalog import get_prize_table
from src.sc_catalog.domain.grid import build_grid, winning_tier
from src.sc_catalog.domain.outcome import RandomSource, decide
from src.sc_common.cents import percent_to_bps
from src.sc_common.enums import ReserveStatus, SettleStatus
from src.sc_common.errors import (
    DuplicatePlayError,
    InsufficientBalanceError,
    InternalError,
    InvalidRevealError,
    PlayNotFoundError,
    StakeMismatchError,
)
from src.sc_common.id_generator import generate_id
from src.sc_play.application.schemas import (
    CompleteResponse,
    PlayListResponse,
    PlayResponse,
    PurchaseResponse,
    RevealResponse,
    play_cursor_decode,
    play_cursor_encode,
)
from src.sc_play.domain.lifecycle import claim_matches, stored_outcome
from src.sc_reveal.domain.tracker import RevealTracker
from src.sc_reveal.infrastructure.redis_store import RedisRevealStore
from src.sc_wallet.domain.models import Play
from src.sc_wallet.domain.repository import LedgerRepositoryProtocol
from src.sc_wallet.infrastructure.persistence import PlayLedgerRepository

logger = logging.getLogger(__name__)


class PlayApplicationService:
    def __init__(
        self,
        repo: LedgerRepositoryProtocol | None = None,
        tracker: RevealTracker | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self._repo: LedgerRepositoryProtocol = repo or PlayLedgerRepository()
        self._tracker = tracker or RevealTracker(
            RedisRevealStore(), settings.REVEAL_THRESHOLD_BPS
        )
        self._rng: RandomSource = rng or secrets.SystemRandom()

    async def _get_owned_play(self, db: AsyncSession, user_id: str, play_id: str) -> Play:
        play = await self._repo.get_play(db, play_id)
        if play is None or play.user_id != user_id:
            raise PlayNotFoundError(play_id)
        return play

    # ------------------------------------------------------------------
    # purchase
    # ------------------------------------------------------------------

    async def purchase(
        self,
        db: AsyncSession,
        user_id: str,
        category_id: int,
        stake_cents: int | None = None,
        play_id: str | None = None,
    ) -> PurchaseResponse:
        table = get_prize_table(category_id)
        stake = table.stake_cents if stake_cents is None else stake_cents
        if stake != table.stake_cents:
            raise StakeMismatchError(table.stake_cents, stake)

        play_id = play_id or generate_id()
        rtp_percent = settings.rtp_for(category_id)

        try:
            reserved = await self._repo.reserve(db, user_id, play_id, category_id, stake)
            if reserved.ok:
                outcome = decide(rtp_percent, table, self._rng)
                grid = build_grid(outcome, table, self._rng)
                if winning_tier(grid) != outcome.tier_id:
                    raise InternalError(f"Grid does not match the outcome of play {play_id}")
                play = await self._repo.record_outcome(
                    db, play_id, outcome, grid, percent_to_bps(rtp_percent)
                )
                await db.commit()
            else:
                # insufficient funds leaves a play row behind until rolled back
                await db.rollback()
        except Exception:
            await db.rollback()
            raise

        if reserved.status == ReserveStatus.DUPLICATE_PLAY:
            existing = reserved.play
            if (
                existing is None
                or existing.user_id != user_id
                or existing.category_id != category_id
            ):
                raise DuplicatePlayError(play_id)
            logger.info("Purchase replay absorbed play=%s user=%s", play_id, user_id)
            return PurchaseResponse.from_play(existing)

        if reserved.status == ReserveStatus.INSUFFICIENT_FUNDS:
            logger.info(
                "Purchase declined play=%s user=%s stake=%d available=%d",
                play_id,
                user_id,
                stake,
                reserved.available_cents,
            )
            raise InsufficientBalanceError(stake, reserved.available_cents)

        logger.info(
            "Purchase play=%s user=%s category=%d stake=%d",
            play_id,
            user_id,
            category_id,
            stake,
        )
        return PurchaseResponse.from_play(play)

    # ------------------------------------------------------------------
    # reveal
    # ------------------------------------------------------------------

    async def reveal(
        self,
        db: AsyncSession,
        user_id: str,
        play_id: str,
        uncovered_bps: int | None = None,
        reveal_all: bool = False,
    ) -> RevealResponse:
        play = await self._get_owned_play(db, user_id, play_id)
        if play.is_revealed:
            # tracker input is ignored once the result is visible
            return RevealResponse.from_play(play, play.coverage_bps, True)

        if reveal_all:
            progress = await self._tracker.reveal_all(play_id)
        elif uncovered_bps is None:
            raise InvalidRevealError("either uncovered_bps or reveal_all is required")
        else:
            progress = await self._tracker.record_reveal(play_id, uncovered_bps)

        if not progress.completed:
            return RevealResponse.from_play(play, progress.coverage_bps, False)

        # Every caller that sees completion applies the guarded transition, so a
        # crash between the tracker and the DB heals on the next reveal call.
        try:
            revealed = await self._repo.mark_revealed(
                db, play_id, user_id, progress.coverage_bps
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if revealed is not None:
            logger.info("Play revealed play=%s user=%s", play_id, user_id)
            play = revealed
        else:
            play = await self._get_owned_play(db, user_id, play_id)
        return RevealResponse.from_play(play, progress.coverage_bps, True)

    # ------------------------------------------------------------------
    # complete
    # ------------------------------------------------------------------

    async def complete(
        self,
        db: AsyncSession,
        user_id: str,
        play_id: str,
        claimed_is_win: bool | None = None,
        claimed_tier_id: str | None = None,
    ) -> CompleteResponse:
        play = await self._get_owned_play(db, user_id, play_id)
        if not claim_matches(play, claimed_is_win, claimed_tier_id):
            logger.warning(
                "Claimed outcome mismatch play=%s user=%s claimed=(%s, %s) stored=(%s, %s)",
                play_id,
                user_id,
                claimed_is_win,
                claimed_tier_id,
                play.is_win,
                play.tier_id,
            )

        if play.is_settled:
            return CompleteResponse.from_play(play, SettleStatus.ALREADY_SETTLED.value)

        outcome = stored_outcome(play)
        try:
            result = await self._repo.settle(db, play_id, user_id, outcome)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if result.status == SettleStatus.UNKNOWN_PLAY or result.play is None:
            raise PlayNotFoundError(play_id)

        if result.ok:
            logger.info(
                "Play settled play=%s user=%s is_win=%s credited=%d",
                play_id,
                user_id,
                outcome.is_win,
                result.credited_cents,
            )
        return CompleteResponse.from_play(result.play, result.status.value)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    async def get_play(self, db: AsyncSession, user_id: str, play_id: str) -> PlayResponse:
        play = await self._get_owned_play(db, user_id, play_id)
        return PlayResponse.from_play(play)

    async def list_plays(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
    ) -> PlayListResponse:
        decoded = play_cursor_decode(cursor)
        cursor_ts, cursor_id = decoded if decoded else (None, None)
        plays = await self._repo.list_plays(db, user_id, cursor_ts, cursor_id, limit + 1)
        has_more = len(plays) > limit
        page = plays[:limit]

        next_cursor = None
        if has_more and page and page[-1].created_at is not None:
            next_cursor = play_cursor_encode(page[-1].created_at, page[-1].id)
        return PlayListResponse(
            items=[PlayResponse.from_play(p) for p in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
