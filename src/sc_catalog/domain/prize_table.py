"""Prize tables — frozen value types, validated once at construction.

Weights are positive ints in "weight units" (hundredths of the decimal
weights used by the product team, so 0.01 -> 1 and 35 -> 3500). They are
relative: selection normalizes by the table's total weight.
"""

from dataclasses import dataclass, field

GRID_CELLS = 9
MATCH_COUNT = 3
# A losing grid may repeat a symbol at most twice, so 9 cells need 5 symbols.
MIN_TIERS = -(-GRID_CELLS // (MATCH_COUNT - 1))


class PrizeTableConfigError(ValueError):
    """Raised at load time for a table that cannot be sampled."""


@dataclass(frozen=True)
class PrizeTier:
    id: str
    display_name: str
    value_cents: int
    weight: int


@dataclass(frozen=True)
class PrizeTable:
    category_id: int
    name: str
    stake_cents: int
    tiers: tuple[PrizeTier, ...]
    total_weight: int = field(init=False)

    def __post_init__(self) -> None:
        if self.stake_cents <= 0:
            raise PrizeTableConfigError(
                f"Category {self.category_id}: stake must be positive, got {self.stake_cents}"
            )
        if len(self.tiers) < MIN_TIERS:
            raise PrizeTableConfigError(
                f"Category {self.category_id}: need at least {MIN_TIERS} tiers "
                f"to fill a {GRID_CELLS}-cell grid, got {len(self.tiers)}"
            )
        seen: set[str] = set()
        for tier in self.tiers:
            if tier.id in seen:
                raise PrizeTableConfigError(
                    f"Category {self.category_id}: duplicate tier id {tier.id!r}"
                )
            seen.add(tier.id)
            if tier.value_cents < 0:
                raise PrizeTableConfigError(
                    f"Category {self.category_id}: tier {tier.id!r} has negative value"
                )
            if tier.weight < 0:
                raise PrizeTableConfigError(
                    f"Category {self.category_id}: tier {tier.id!r} has negative weight"
                )
        total = sum(t.weight for t in self.tiers)
        if total <= 0:
            raise PrizeTableConfigError(
                f"Category {self.category_id}: all tier weights are zero"
            )
        object.__setattr__(self, "total_weight", total)

    def tier(self, tier_id: str) -> PrizeTier | None:
        for t in self.tiers:
            if t.id == tier_id:
                return t
        return None

    def probability_bps(self, tier: PrizeTier) -> int:
        """Share of winning draws that land on `tier`, in basis points (floored)."""
        return tier.weight * 10000 // self.total_weight
