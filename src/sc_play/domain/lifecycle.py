"""Play lifecycle rules shared by the client path and reconciliation.

The outcome of a play is decided once, at purchase, and stored on the play
row. Every settlement path rebuilds it from that row; nothing the client
reports ever feeds into what gets paid.
"""

from dataclasses import replace

from src.sc_catalog.domain.catalog import get_prize_table
from src.sc_catalog.domain.outcome import LOSS, Outcome
from src.sc_catalog.domain.prize_table import PrizeTier
from src.sc_common.errors import CategoryNotFoundError, InternalError
from src.sc_wallet.domain.models import Play


def stored_outcome(play: Play) -> Outcome:
    """Rebuild the Outcome recorded at purchase time.

    The prize value is the one stored on the play, so a catalog edit after
    purchase never changes what an existing play pays out.
    """
    if not play.has_outcome:
        raise InternalError(f"Play {play.id} has no recorded outcome")
    if not play.is_win:
        return LOSS

    try:
        tier = get_prize_table(play.category_id).tier(play.tier_id or "")
    except CategoryNotFoundError:
        tier = None
    if tier is None:
        # tier or whole category retired after purchase: keep the stored facts
        tier = PrizeTier(
            id=play.tier_id or "", display_name=play.tier_id or "", value_cents=0, weight=0
        )
    return Outcome(is_win=True, tier=replace(tier, value_cents=play.prize_cents))


def claim_matches(play: Play, claimed_is_win: bool | None, claimed_tier_id: str | None) -> bool:
    """True when the client's view of the result agrees with the stored one.

    Omitted claims are treated as agreeing.
    """
    if claimed_is_win is not None and claimed_is_win != play.is_win:
        return False
    if claimed_tier_id is not None and claimed_tier_id != play.tier_id:
        return False
    return True
