from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, Iterable, Optional

import yaml

from hedgescan.config import EngineConfig


@dataclass(frozen=True)
class OutcomeTokens:
    yes: Optional[str] = None
    no: Optional[str] = None


@dataclass(frozen=True)
class MarketConfig:
    market_id: str
    name: str
    event_type: str
    outcomes: list[str]
    settlement_date: Optional[date] = None
    outcome_settlement: Dict[str, date] = field(default_factory=dict)
    opinion_topic_id: Optional[str] = None
    opinion_type: str = "single"
    opinion_tokens: Dict[str, OutcomeTokens] = field(default_factory=dict)
    polymarket_slug: Optional[str] = None

    def settlement_for(self, outcome: str) -> Optional[date]:
        return self.outcome_settlement.get(outcome) or self.settlement_date


@dataclass(frozen=True)
class MarketsFile:
    markets: list[MarketConfig]
    settings: Dict[str, float] = field(default_factory=dict)

    def market_types(self) -> list[str]:
        types: list[str] = []
        for market in self.markets:
            if market.event_type not in types:
                types.append(market.event_type)
        return ["ALL", *types]

    def apply_settings(self, config: EngineConfig) -> EngineConfig:
        if not self.settings:
            return config
        return replace(config, **self.settings).validate()


SETTINGS_KEYS = {"go_threshold", "hot_threshold", "exit_threshold", "min_position_shares"}


def _optional_str(value):
    if value is None:
        return None
    return str(value)


def _parse_date(value, where: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValueError(f"Invalid settlement_date for {where}: {value}") from exc


def _token_field(details: dict, name: str, yaml_key: bool):
    # YAML 1.1 loads bare yes/no keys as booleans.
    value = details.get(name)
    if value is None:
        value = details.get(yaml_key)
    return _optional_str(value)


def _parse_tokens(raw: dict, market_id: str) -> Dict[str, OutcomeTokens]:
    tokens: Dict[str, OutcomeTokens] = {}
    for outcome, details in (raw or {}).items():
        if not isinstance(details, dict):
            raise ValueError(f"Invalid token_ids for {market_id}/{outcome}")
        tokens[str(outcome)] = OutcomeTokens(
            yes=_token_field(details, "yes", True),
            no=_token_field(details, "no", False),
        )
    return tokens


def _parse_market(raw: dict) -> MarketConfig:
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid market entry: {raw!r}")
    market_id = str(raw.get("id", ""))
    opinion = raw.get("opinion") or {}
    polymarket = raw.get("polymarket") or raw.get("poly") or {}
    outcome_settlement: Dict[str, date] = {}
    for outcome, settings in (raw.get("outcome_settings") or {}).items():
        settled = _parse_date((settings or {}).get("settlement_date"), f"{market_id}/{outcome}")
        if settled:
            outcome_settlement[str(outcome)] = settled
    return MarketConfig(
        market_id=market_id,
        name=str(raw.get("name") or market_id),
        event_type=str(raw.get("type") or "OTHER"),
        outcomes=[str(outcome) for outcome in raw.get("outcomes") or []],
        settlement_date=_parse_date(raw.get("settlement_date"), market_id),
        outcome_settlement=outcome_settlement,
        opinion_topic_id=_optional_str(opinion.get("topic_id")),
        opinion_type=str(opinion.get("type") or "single"),
        opinion_tokens=_parse_tokens(opinion.get("token_ids"), market_id),
        polymarket_slug=_optional_str(polymarket.get("slug")),
    )


def _parse_settings(raw) -> Dict[str, float]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("settings must be a mapping")
    unknown = set(raw) - SETTINGS_KEYS
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
    return {key: float(value) for key, value in raw.items()}


def load_markets(path: str) -> MarketsFile:
    with open(path, "r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle)

    if not isinstance(raw, dict) or "markets" not in raw:
        raise ValueError("markets file must have top-level 'markets'")

    markets = [_parse_market(item) for item in raw.get("markets") or []]
    _validate_markets(markets)
    return MarketsFile(markets=markets, settings=_parse_settings(raw.get("settings")))


def _validate_markets(markets: Iterable[MarketConfig]) -> None:
    seen: set[str] = set()
    for market in markets:
        if not market.market_id:
            raise ValueError("market id is required")
        if market.market_id in seen:
            raise ValueError(f"Duplicate market id {market.market_id}")
        seen.add(market.market_id)
        if not market.outcomes:
            raise ValueError(f"No outcomes for {market.market_id}")
        for outcome in market.opinion_tokens:
            if outcome not in market.outcomes:
                raise ValueError(f"Token ids for unknown outcome {outcome} in {market.market_id}")
        for outcome in market.outcome_settlement:
            if outcome not in market.outcomes:
                raise ValueError(f"Settlement override for unknown outcome {outcome} in {market.market_id}")
