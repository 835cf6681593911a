"""Integer arithmetic for stakes, payouts and odds.

All amounts are int cents and all odds are int hundredths (250 == 2.50).
No float, no Decimal on the money path.
"""

from config.settings import settings


def calculate_payout(stake_cents: int, odds: int) -> int:
    """Payout for a stake at the given odds, floored to the cent (house never overpays).

    Whole-unit stakes (multiples of 100 cents) are always exact.
    """
    return stake_cents * odds // 100


def cents_to_display(cents: int, symbol: str | None = None) -> str:
    """Convert cents to display string: 6500 -> '₦65.00', -1200 -> '-₦12.00'."""
    sym = settings.BETTING_CURRENCY_SYMBOL if symbol is None else symbol
    if cents < 0:
        abs_cents = -cents
        return f"-{sym}{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{sym}{cents // 100:,}.{cents % 100:02d}"


def odds_to_display(odds: int) -> str:
    """Convert odds hundredths to decimal odds string: 250 -> '2.50'."""
    return f"{odds // 100}.{odds % 100:02d}"
