"""Card catalog for planning poker votes."""

from __future__ import annotations

from typing import Any, Union

Card = Union[int, str]

INFINITY = "infinity"
UNKNOWN = "?"
COFFEE = "coffee"

NUMERIC_CARDS: tuple[int, ...] = (0, 1, 2, 3, 5, 8, 13, 21, 34)
SPECIAL_CARDS: tuple[str, ...] = (INFINITY, UNKNOWN, COFFEE)
CARD_CATALOG: tuple[Card, ...] = NUMERIC_CARDS + SPECIAL_CARDS


def is_valid(card: Any) -> bool:
    """Return True when ``card`` is one of the catalog values.

    Booleans and floats never count as cards even though ``True == 1`` and
    ``5.0 == 5`` in Python.
    """
    if isinstance(card, bool):
        return False
    if isinstance(card, int):
        return card in NUMERIC_CARDS
    if isinstance(card, str):
        return card in SPECIAL_CARDS
    return False


def is_numeric(card: Any) -> bool:
    """Return True for cards that take part in the mean (non-zero integers)."""
    return is_valid(card) and isinstance(card, int) and card != 0
