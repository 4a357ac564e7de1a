"""Integer arithmetic utilities for cents-based wagering.

All stakes, prizes and balances use int (centavos). No float in the ledger.
RTP and reveal coverage use int basis points (10000 bps = 100%).
"""

from decimal import Decimal, InvalidOperation

BPS_SCALE = 10000


def cents_to_display(cents: int) -> str:
    """Convert cents to BRL display string: 123456 -> 'R$ 1.234,56', -50 -> '-R$ 0,50'."""
    sign = "-" if cents < 0 else ""
    abs_cents = abs(cents)
    reais = f"{abs_cents // 100:,}".replace(",", ".")
    return f"{sign}R$ {reais},{abs_cents % 100:02d}"


def percent_to_bps(percent: Decimal | int | str) -> int:
    """Convert a percentage to basis points, clamped to [0, 10000] (infinities too).

    Decimal parsing keeps "33.33" exact (3333 bps); sub-bps digits are truncated.
    """
    try:
        value = Decimal(str(percent))
    except InvalidOperation as e:
        raise ValueError(f"Not a percentage: {percent!r}") from e
    if value.is_nan():
        raise ValueError(f"Not a percentage: {percent!r}")
    if value.is_infinite():
        return BPS_SCALE if value > 0 else 0
    bps = int(value * 100)
    return max(0, min(BPS_SCALE, bps))


def bps_to_display(bps: int) -> str:
    """2550 -> '25.50%'."""
    return f"{bps // 100}.{bps % 100:02d}%"
