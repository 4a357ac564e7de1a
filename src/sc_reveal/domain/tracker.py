"""Reveal tracker — decides WHEN a play's result becomes visible.

Coverage is accumulated in basis points of the grid surface. Completion fires
exactly once, the first time coverage goes past the threshold; afterwards
further reveal input for the play is ignored. `reveal_all` reaches the same
terminal state as organic scratching.

The tracker never looks at the outcome: that was fixed at purchase time.
"""

from dataclasses import dataclass
from typing import Protocol

from src.sc_common.cents import BPS_SCALE
from src.sc_common.errors import InvalidRevealError


@dataclass(frozen=True)
class RevealProgress:
    coverage_bps: int
    completed: bool
    just_completed: bool = False  # True only for the call that crossed the threshold


class RevealStoreProtocol(Protocol):
    async def get(self, play_id: str) -> tuple[int, bool]: ...

    async def add_coverage(self, play_id: str, delta_bps: int) -> int: ...

    async def set_coverage(self, play_id: str, coverage_bps: int) -> None: ...

    async def mark_complete(self, play_id: str) -> bool: ...


def is_complete(coverage_bps: int, threshold_bps: int) -> bool:
    return coverage_bps > threshold_bps


class RevealTracker:
    def __init__(self, store: RevealStoreProtocol, threshold_bps: int) -> None:
        self._store = store
        self._threshold_bps = threshold_bps

    async def progress(self, play_id: str) -> RevealProgress:
        coverage, completed = await self._store.get(play_id)
        return RevealProgress(min(coverage, BPS_SCALE), completed)

    async def record_reveal(self, play_id: str, uncovered_bps: int) -> RevealProgress:
        if not (0 <= uncovered_bps <= BPS_SCALE):
            raise InvalidRevealError(f"uncovered_bps must be 0-{BPS_SCALE}, got {uncovered_bps}")

        coverage, completed = await self._store.get(play_id)
        if completed:
            return RevealProgress(min(coverage, BPS_SCALE), True)

        coverage = min(await self._store.add_coverage(play_id, uncovered_bps), BPS_SCALE)
        if not is_complete(coverage, self._threshold_bps):
            return RevealProgress(coverage, False)

        first = await self._store.mark_complete(play_id)
        return RevealProgress(coverage, True, just_completed=first)

    async def reveal_all(self, play_id: str) -> RevealProgress:
        _, completed = await self._store.get(play_id)
        if completed:
            return RevealProgress(BPS_SCALE, True)
        await self._store.set_coverage(play_id, BPS_SCALE)
        first = await self._store.mark_complete(play_id)
        return RevealProgress(BPS_SCALE, True, just_completed=first)
