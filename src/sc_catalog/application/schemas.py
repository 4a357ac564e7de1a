"""Pydantic schemas for the public catalog endpoint."""

from decimal import Decimal

from pydantic import BaseModel

from src.sc_catalog.domain.outcome import expected_return_cents
from src.sc_catalog.domain.prize_table import PrizeTable
from src.sc_common.cents import bps_to_display, cents_to_display, percent_to_bps


class TierItem(BaseModel):
    id: str
    display_name: str
    value_cents: int
    value_display: str
    weight: int
    win_share_bps: int  # share of winning plays landing on this tier


class CategoryItem(BaseModel):
    category_id: int
    name: str
    stake_cents: int
    stake_display: str
    rtp_bps: int
    rtp_display: str
    expected_return_cents: str  # Decimal rendered as string, informational only
    tiers: list[TierItem]

    @classmethod
    def from_table(cls, table: PrizeTable, rtp_percent: Decimal) -> "CategoryItem":
        rtp_bps = percent_to_bps(rtp_percent)
        return cls(
            category_id=int(table.category_id),
            name=table.name,
            stake_cents=table.stake_cents,
            stake_display=cents_to_display(table.stake_cents),
            rtp_bps=rtp_bps,
            rtp_display=bps_to_display(rtp_bps),
            expected_return_cents=f"{expected_return_cents(rtp_percent, table):.2f}",
            tiers=[
                TierItem(
                    id=t.id,
                    display_name=t.display_name,
                    value_cents=t.value_cents,
                    value_display=cents_to_display(t.value_cents),
                    weight=t.weight,
                    win_share_bps=table.probability_bps(t),
                )
                for t in table.tiers
            ],
        )


class CatalogResponse(BaseModel):
    categories: list[CategoryItem]
