from typing import Sequence

from hedgescan.config import EngineConfig
from hedgescan.models import AggregateStats, Opportunity


def aggregate_stats(opportunities: Sequence[Opportunity], total_markets: int, config: EngineConfig) -> AggregateStats:
    # total_markets counts configured markets, including ones with no opportunity.
    if not opportunities:
        return AggregateStats(total_markets=total_markets)
    spreads = [abs(item.spread_pct) for item in opportunities]
    return AggregateStats(
        total_markets=total_markets,
        opportunities=sum(1 for item in opportunities if item.profit_pct > 0),
        go_count=sum(1 for item in opportunities if item.profit_pct > config.go_threshold),
        hot_count=sum(1 for item in opportunities if item.profit_pct > config.hot_threshold),
        avg_spread=sum(spreads) / len(spreads),
        max_spread=max(spreads),
    )
