"""
Normalization of raw identifier and price rows into a price index.

The two raw datasets do not agree on how internal ids are written: the
identifier file uses grouped ids such as "40,359,100" while the price file
may use "40359100". Ids are compared after stripping the grouping commas.
"""

import logging
import math
from typing import Any, Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

# date "YYYY-MM-DD" -> symbol -> close price
PriceIndex = Dict[str, Dict[str, float]]


def normalize_id(raw_id: Any) -> str:
    """Strip grouping commas from an internal id ("40,359,100" -> "40359100")."""
    return str(raw_id).replace(",", "")


def parse_numeric(value: Any) -> Optional[float]:
    """
    Parse a price field leniently.

    Args:
        value: Raw field value (string, number or None)

    Returns:
        The parsed float, or None if the field is missing, blank or not a number
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return None if math.isnan(number) else number

    cleaned = str(value).replace(",", "").strip()
    if not cleaned:
        return None

    try:
        number = float(cleaned)
    except ValueError:
        return None

    return None if math.isnan(number) else number


def build_identifier_map(identifiers: Iterable[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Build a normalized id -> symbol lookup.

    Duplicate ids are not an error: a later row overwrites the earlier mapping.
    """
    id_to_symbol = {}
    for row in identifiers:
        raw_id = row.get("id_stock")
        symbol = row.get("symbol")
        if raw_id is None:
            continue
        # a blank symbol still replaces the earlier mapping; its prices are dropped later
        id_to_symbol[normalize_id(raw_id)] = symbol or ""
    return id_to_symbol


def normalize_stock_data(
    identifiers: Iterable[Mapping[str, Any]],
    prices: Iterable[Mapping[str, Any]]
) -> PriceIndex:
    """
    Turn raw identifier and price rows into a date -> symbol -> close index.

    Args:
        identifiers: Rows with 'id_stock', 'name' and 'symbol'
        prices: Rows with 'id_stock', 'high', 'low', 'close' and 'date'

    Returns:
        PriceIndex keyed by date, then symbol. Rows with an unknown id, a
        missing date or an unparseable close are skipped.
    """
    id_to_symbol = build_identifier_map(identifiers)

    prices_by_date: PriceIndex = {}
    kept = 0
    unmapped = 0
    malformed = 0

    for row in prices:
        raw_id = row.get("id_stock")
        symbol = id_to_symbol.get(normalize_id(raw_id)) if raw_id is not None else None
        if not symbol:
            unmapped += 1
            continue

        date = row.get("date")
        # high/low are ignored, only closing prices are valued
        close = parse_numeric(row.get("close"))
        if not date or close is None:
            malformed += 1
            continue

        prices_by_date.setdefault(str(date).strip(), {})[symbol] = close
        kept += 1

    logger.debug(
        f"Normalized {kept} price rows across {len(prices_by_date)} dates "
        f"({unmapped} unmapped, {malformed} malformed, {len(id_to_symbol)} known ids)"
    )
    return prices_by_date
