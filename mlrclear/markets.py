"""
Market Flags

Market-specific cultural and regulatory flags for localized content.
Runs over the whole document for the context region and every extra
target market, de-duplicated, region first.
"""

from __future__ import annotations

from mlrclear.models import MarketFlags, ValidationContext

CULTURAL_RISK_TERMS: dict[str, tuple[str, ...]] = {
    "US": ("guarantee", "promise", "cure"),
    "EU": ("natural", "organic", "chemical-free"),
    "JP": ("individual", "personal", "unique"),
    "CN": ("comparison", "superior", "better than"),
}

EU_FDA_FLAG = "FDA approval reference not valid in EU - use EMA or CE marking"
JP_PMDA_FLAG = "Consider mentioning PMDA approval status for Japanese market"


def _markets(context: ValidationContext) -> list[str]:
    seen: list[str] = []
    for market in (context.region, *context.target_markets):
        market = (market or "").upper()
        if market and market not in seen:
            seen.append(market)
    return seen


def flag_market(content: str, market: str) -> MarketFlags:
    lowered = content.lower()
    cultural = tuple(
        f'Term "{term}" may be culturally sensitive in {market}'
        for term in CULTURAL_RISK_TERMS.get(market, ())
        if term in lowered
    )

    regulatory: list[str] = []
    if market == "EU" and "fda approved" in lowered:
        regulatory.append(EU_FDA_FLAG)
    if market == "JP" and "pmda" not in lowered:
        regulatory.append(JP_PMDA_FLAG)

    return MarketFlags(market=market, cultural_risks=cultural, regulatory_flags=tuple(regulatory))


def flag_markets(content: str, context: ValidationContext) -> list[MarketFlags]:
    """One MarketFlags per market; empty content yields none."""
    if not content or not content.strip():
        return []
    return [flag_market(content, m) for m in _markets(context)]
