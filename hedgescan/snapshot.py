from __future__ import annotations

import json
import logging
import math
from dataclasses import replace
from typing import Dict, Optional, Tuple

from hedgescan.models import NO, OPINION, POLYMARKET, YES, OutcomeQuote
from hedgescan.pricing.book import normalize_quote, parse_levels


logger = logging.getLogger(__name__)

QuoteKey = Tuple[str, str]

_FIELDS = {
    (OPINION, YES): "venue_a_yes",
    (OPINION, NO): "venue_a_no",
    (POLYMARKET, YES): "venue_b_yes",
    (POLYMARKET, NO): "venue_b_no",
}


def parse_snapshot(raw: dict) -> Dict[QuoteKey, OutcomeQuote]:
    if not isinstance(raw, dict) or not isinstance(raw.get("books"), list):
        raise ValueError("snapshot must have a top-level 'books' list")

    quotes: Dict[QuoteKey, OutcomeQuote] = {}
    for entry in raw["books"]:
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid book entry: {entry!r}")
        venue = str(entry.get("venue") or "").lower()
        side = str(entry.get("side") or YES).upper()
        field = _FIELDS.get((venue, side))
        if field is None:
            logger.warning("Ignoring book with venue=%s side=%s", venue, side)
            continue
        event_id = str(entry.get("event_id") or "")
        outcome = str(entry.get("outcome") or "")
        if not event_id or not outcome:
            raise ValueError(f"Book entry needs event_id and outcome: {entry!r}")
        quote = normalize_quote(
            parse_levels(entry.get("bids")),
            parse_levels(entry.get("asks")),
            _optional_number(entry.get("price")),
            _optional_number(entry.get("depth")),
        )
        key = (event_id, outcome)
        quotes[key] = replace(quotes.get(key, OutcomeQuote()), **{field: quote})
    return quotes


def load_snapshot(path: str) -> Dict[QuoteKey, OutcomeQuote]:
    with open(path, "r", encoding="utf-8") as handle:
        raw = json.load(handle)
    return parse_snapshot(raw)


def _optional_number(value: object) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable number %r", value)
        return None
    return number if math.isfinite(number) else None
