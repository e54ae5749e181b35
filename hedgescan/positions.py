"""Normalize raw venue position records and match them to configured outcomes."""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from hedgescan.markets import MarketConfig
from hedgescan.models import NO, OPINION, POLYMARKET, YES, HedgePosition, Position


logger = logging.getLogger(__name__)

MIN_POSITION_SHARES = 10.0


@dataclass(frozen=True)
class TokenRef:
    event_id: str
    outcome: str
    side: str


TokenLoader = Callable[[str], Optional[TokenRef]]


class TokenCache:
    """Read-through token id lookup.

    Seeded from the static market config; ids it does not know are passed to the
    optional loader once and the answer (including a miss) is remembered.
    """

    def __init__(self, seed: Optional[Mapping[str, TokenRef]] = None, loader: Optional[TokenLoader] = None) -> None:
        self._refs: Dict[str, Optional[TokenRef]] = dict(seed or {})
        self._loader = loader

    @classmethod
    def from_markets(cls, markets: Iterable[MarketConfig], loader: Optional[TokenLoader] = None) -> "TokenCache":
        seed: Dict[str, TokenRef] = {}
        for market in markets:
            for outcome, tokens in market.opinion_tokens.items():
                if tokens.yes:
                    seed[tokens.yes] = TokenRef(market.market_id, outcome, YES)
                if tokens.no:
                    seed[tokens.no] = TokenRef(market.market_id, outcome, NO)
        return cls(seed, loader)

    def get(self, token_id: Optional[str]) -> Optional[TokenRef]:
        if not token_id:
            return None
        if token_id in self._refs:
            return self._refs[token_id]
        ref = self._loader(token_id) if self._loader else None
        self._refs[token_id] = ref
        return ref

    def __len__(self) -> int:
        return sum(1 for ref in self._refs.values() if ref is not None)


@dataclass
class Holding:
    event_id: str
    outcome: str
    venue_a: Dict[str, Position] = field(default_factory=dict)
    venue_b: Dict[str, Position] = field(default_factory=dict)

    def hedges(self) -> List[HedgePosition]:
        hedges = []
        for a_side, b_side in ((YES, NO), (NO, YES)):
            leg_a = self.venue_a.get(a_side)
            leg_b = self.venue_b.get(b_side)
            if leg_a and leg_b:
                hedges.append(HedgePosition(self.event_id, self.outcome, leg_a, leg_b))
        return hedges


def _first(raw: Mapping[str, object], *names: str) -> object:
    for name in names:
        value = raw.get(name)
        if value not in (None, ""):
            return value
    return None


def _number(value: object) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _optional_str(value: object) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def normalize_opinion_position(raw: Mapping[str, object]) -> Position:
    side = str(_first(raw, "outcome_side_enum", "outcomeSideEnum", "side") or "").upper()
    return Position(
        venue=OPINION,
        side=NO if side == NO else YES,
        shares=_number(_first(raw, "shares_owned", "sharesOwned", "shares")),
        avg_price=_number(_first(raw, "avgEntryPrice", "avg_entry_price", "avg_price", "avgPrice")),
        token_id=_optional_str(_first(raw, "token_id", "tokenId")),
        market_id=_optional_str(_first(raw, "market_id", "marketId")),
        title=str(_first(raw, "market_title", "marketTitle") or ""),
    )


def normalize_polymarket_position(raw: Mapping[str, object]) -> Position:
    outcome = str(raw.get("outcome") or "")
    return Position(
        venue=POLYMARKET,
        side=NO if outcome.lower() == "no" else YES,
        shares=_number(_first(raw, "size", "shares")),
        avg_price=_number(_first(raw, "avgPrice", "averagePrice")),
        token_id=_optional_str(_first(raw, "asset", "tokenId")),
        market_id=_optional_str(_first(raw, "conditionId", "market")),
        title=str(raw.get("title") or ""),
        market_slug=str(raw.get("slug") or ""),
        event_slug=str(raw.get("eventSlug") or ""),
    )


def _extract_number(text: str) -> Optional[str]:
    match = re.search(r"(\d+)", text)
    return match.group(1) if match else None


def match_outcome(title: str, outcomes: Iterable[str]) -> Optional[str]:
    """Find the outcome a position title refers to, e.g. ">$8m" in "over $8 million"."""
    lowered = title.lower()
    for outcome in outcomes:
        if outcome.lower() in lowered:
            return outcome
        number = _extract_number(outcome)
        if number and (f"${number}" in lowered or f"{number} million" in lowered):
            return outcome
    return None


def _match_polymarket_market(position: Position, markets: Iterable[MarketConfig]) -> Optional[MarketConfig]:
    for market in markets:
        slug = market.polymarket_slug
        if not slug:
            continue
        if position.event_slug == slug or slug in position.market_slug:
            return market
    return None


def match_positions(
    markets: List[MarketConfig],
    opinion_positions: Iterable[Position],
    polymarket_positions: Iterable[Position],
    min_shares: float = MIN_POSITION_SHARES,
    token_cache: Optional[TokenCache] = None,
) -> Dict[Tuple[str, str], Holding]:
    token_cache = token_cache or TokenCache.from_markets(markets)
    holdings: Dict[Tuple[str, str], Holding] = {}

    def holding_for(event_id: str, outcome: str) -> Holding:
        key = (event_id, outcome)
        if key not in holdings:
            holdings[key] = Holding(event_id=event_id, outcome=outcome)
        return holdings[key]

    for position in opinion_positions:
        if position.shares < min_shares:
            continue
        ref = token_cache.get(position.token_id)
        if ref is None:
            logger.debug("opinion position not matched token=%s", position.token_id)
            continue
        # The token decides the side; raw side fields are not always populated.
        holding_for(ref.event_id, ref.outcome).venue_a[ref.side] = replace(position, side=ref.side)

    for position in polymarket_positions:
        if position.shares < min_shares:
            continue
        market = _match_polymarket_market(position, markets)
        if market is None:
            logger.debug(
                "polymarket position not matched event_slug=%s slug=%s",
                position.event_slug,
                position.market_slug,
            )
            continue
        outcome = match_outcome(position.title, market.outcomes)
        if outcome is None:
            logger.debug("polymarket outcome not matched title=%r market=%s", position.title, market.market_id)
            continue
        holding_for(market.market_id, outcome).venue_b[position.side] = position

    return holdings


def parse_positions(raw: dict) -> Tuple[List[Position], List[Position]]:
    if not isinstance(raw, dict):
        raise ValueError("positions file must be a JSON object")
    opinion_raw = raw.get(OPINION) or []
    polymarket_raw = raw.get(POLYMARKET) or []
    if not isinstance(opinion_raw, list) or not isinstance(polymarket_raw, list):
        raise ValueError("positions must be lists under 'opinion' and 'polymarket'")
    return (
        [normalize_opinion_position(item) for item in opinion_raw],
        [normalize_polymarket_position(item) for item in polymarket_raw],
    )


def load_positions(path: str) -> Tuple[List[Position], List[Position]]:
    with open(path, "r", encoding="utf-8") as handle:
        raw = json.load(handle)
    return parse_positions(raw)
