"""3x3 symbol grid consistent with an already-decided outcome.

A winning grid shows the prize tier exactly three times; a losing grid shows
no tier three times. Filler symbols never form a second triple, so the grid
the player sees always agrees with the stored outcome.
"""

from typing import Protocol

from src.sc_catalog.domain.outcome import Outcome
from src.sc_catalog.domain.prize_table import GRID_CELLS, MATCH_COUNT, PrizeTable


class ShuffleSource(Protocol):
    def randrange(self, stop: int) -> int: ...


def _shuffle(cells: list[str], rng: ShuffleSource) -> None:
    # Fisher-Yates over the injected source so seeded tests stay reproducible
    for i in range(len(cells) - 1, 0, -1):
        j = rng.randrange(i + 1)
        cells[i], cells[j] = cells[j], cells[i]


def build_grid(outcome: Outcome, table: PrizeTable, rng: ShuffleSource) -> tuple[str, ...]:
    cells: list[str] = []
    excluded: str | None = None
    if outcome.is_win and outcome.tier is not None:
        excluded = outcome.tier.id
        cells.extend([excluded] * MATCH_COUNT)

    # every other symbol may appear at most MATCH_COUNT - 1 times
    pool = [t.id for t in table.tiers if t.id != excluded] * (MATCH_COUNT - 1)
    _shuffle(pool, rng)
    cells.extend(pool[: GRID_CELLS - len(cells)])
    _shuffle(cells, rng)
    return tuple(cells)


def winning_tier(grid: tuple[str, ...] | list[str]) -> str | None:
    """Tier id shown at least three times, or None for a losing grid."""
    counts: dict[str, int] = {}
    for symbol in grid:
        counts[symbol] = counts.get(symbol, 0) + 1
    for symbol, count in counts.items():
        if count >= MATCH_COUNT:
            return symbol
    return None
