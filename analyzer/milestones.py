"""
Milestone Locator
=================
Turns a token's price history into the timestamps the rest of the engine
measures against.

- early: when the market cap first cleared the low threshold ($200K default).
  Anyone who bought before this is an early buyer.
- late: when the market cap first cleared the high threshold ($500K default).
  Selling after this counts as holding through the run.
- two_million / five_million: same idea at $2M and $5M, kept on the runner
  for display.

The series is walked from newest to oldest and each sample that clears the
threshold overwrites the previous candidate, so the survivor is the
earliest crossing. Every sample that clears the high threshold also clears
the low one, which keeps early <= late.
"""

from analyzer.entities import Milestones, PricePoint


def find_crossing(prices: list[PricePoint], supply: float, threshold: float) -> int | None:
    """Timestamp of the earliest sample whose market cap is at or above threshold."""
    crossing = None
    for point in reversed(prices):
        if point.value * supply >= threshold:
            crossing = point.unix_time
    return crossing


def find_milestones(
    prices: list[PricePoint],
    supply: float,
    low_threshold: float = 200_000,
    high_threshold: float = 500_000,
    two_million: float = 2_000_000,
    five_million: float = 5_000_000,
) -> Milestones:
    """
    Locate all milestones in one price series.

    Args:
        prices: Price samples sorted oldest first
        supply: Circulating supply (already divided by decimals)

    Returns:
        Milestones with None for any threshold the token never reached
    """
    ordered = sorted(prices, key=lambda p: p.unix_time)
    return Milestones(
        early=find_crossing(ordered, supply, low_threshold),
        late=find_crossing(ordered, supply, high_threshold),
        two_million=find_crossing(ordered, supply, two_million),
        five_million=find_crossing(ordered, supply, five_million),
    )


def all_time_high(prices: list[PricePoint]) -> float:
    """Highest price in the series, 0 when empty."""
    return max((p.value for p in prices), default=0.0)
