"""Outcome generator — decides win/lose and the prize tier for one play.

Two integer draws from an injectable random source:

  1. r1 in [0, 10000): the play wins iff r1 < rtp_bps. The long-run win
     fraction converges to the configured RTP regardless of prize values.
  2. On a win, r2 in [0, total_weight): walk the tiers in table order,
     subtracting each weight; the first tier that takes the remainder below
     zero is selected. Integer draws keep the selection exactly proportional
     to the weights, so realized frequencies carry no float drift.

The generator is pure: same random source state, same RTP, same table ->
same outcome. It is called once per play, at purchase time.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from src.sc_catalog.domain.prize_table import PrizeTable, PrizeTier
from src.sc_common.cents import BPS_SCALE, percent_to_bps


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...


@dataclass(frozen=True)
class Outcome:
    is_win: bool
    tier: PrizeTier | None = None

    def __post_init__(self) -> None:
        if self.is_win != (self.tier is not None):
            raise ValueError("A winning outcome needs a tier and a losing one must not have one")

    @property
    def prize_cents(self) -> int:
        return self.tier.value_cents if self.tier else 0

    @property
    def tier_id(self) -> str | None:
        return self.tier.id if self.tier else None


LOSS = Outcome(is_win=False)


def select_tier(table: PrizeTable, rng: RandomSource) -> PrizeTier:
    remainder = rng.randrange(table.total_weight)
    for tier in table.tiers:
        remainder -= tier.weight
        if remainder < 0:
            return tier
    # unreachable while total_weight == sum of weights
    raise AssertionError(f"Weighted draw fell off table {table.category_id}")


def decide(rtp_percent: Decimal | int | str, table: PrizeTable, rng: RandomSource) -> Outcome:
    """Decide one play. `rtp_percent` is clamped to [0, 100]."""
    rtp_bps = percent_to_bps(rtp_percent)
    if rng.randrange(BPS_SCALE) >= rtp_bps:
        return LOSS
    return Outcome(is_win=True, tier=select_tier(table, rng))


def expected_return_cents(rtp_percent: Decimal | int | str, table: PrizeTable) -> Decimal:
    """Theoretical average payout per play, in cents."""
    rtp_bps = percent_to_bps(rtp_percent)
    weighted_value = sum(t.value_cents * t.weight for t in table.tiers)
    return Decimal(rtp_bps) * Decimal(weighted_value) / Decimal(BPS_SCALE * table.total_weight)
