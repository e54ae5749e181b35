import json
from dataclasses import asdict
from typing import Dict, Iterable, Tuple

from hedgescan.models import AggregateStats, ExitRecord, Opportunity
from hedgescan.opportunities import direction_label


def opportunity_payload(opportunity: Opportunity) -> dict:
    return {
        "event_id": opportunity.event_id,
        "event_name": opportunity.event_name,
        "event_type": opportunity.event_type,
        "outcome": opportunity.outcome,
        "signal": opportunity.signal.value,
        "direction": direction_label(opportunity),
        "buy_venue_a_yes": opportunity.buy_venue_a_yes,
        "profit_pct": opportunity.profit_pct,
        "spread_pct": opportunity.spread_pct,
        "fee_rate": opportunity.fee_rate,
        "settlement_date": opportunity.settlement_date.isoformat() if opportunity.settlement_date else None,
        "days_to_settlement": opportunity.days_to_settlement,
        "apy": opportunity.apy,
        "leg_a_source": opportunity.leg_a_source.value,
        "leg_b_source": opportunity.leg_b_source.value,
        "min_depth": opportunity.min_depth,
        "strategy": asdict(opportunity.strategy),
    }


def exit_payload(record: ExitRecord) -> dict:
    payload = asdict(record)
    payload["total_entry_cost"] = record.total_entry_cost
    payload["net_exit_value"] = record.net_exit_value
    return payload


def format_scan(opportunities: Iterable[Opportunity], stats: AggregateStats) -> str:
    payload = {
        "opportunities": [opportunity_payload(item) for item in opportunities],
        "stats": asdict(stats),
    }
    return json.dumps(payload, indent=2, sort_keys=True)


def format_exits(records: Dict[Tuple[str, str], ExitRecord]) -> str:
    payload = [
        {"event_id": event_id, "outcome": outcome, **exit_payload(record)}
        for (event_id, outcome), record in records.items()
    ]
    return json.dumps(payload, indent=2, sort_keys=True)
