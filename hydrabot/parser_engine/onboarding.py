from __future__ import annotations

import re
from typing import Optional

from .contract import parse_number, round_half_up

DEFAULT_BOTTLE_SIZE_ML = 750
MIN_BOTTLE_SIZE_ML = 100
MAX_BOTTLE_SIZE_ML = 3000

AFFIRMATIVE_RE = re.compile(r"^(?:yes|yeah|yep|yup|correct|ok|okay|sure|right)$", re.IGNORECASE)

_ML_RE = re.compile(r"(\d+)\s*ml", re.IGNORECASE)
_LITER_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:l|liter|litre)", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^(\d+)$")


def _in_range(size: Optional[int]) -> Optional[int]:
    if size is not None and MIN_BOTTLE_SIZE_ML <= size <= MAX_BOTTLE_SIZE_ML:
        return size
    return None


def _whole_ml(digits: str) -> Optional[int]:
    value = parse_number(digits)
    return None if value is None else int(value)


def parse_bottle_size_response(text: str) -> Optional[int]:
    """
    Interpret the user's answer to "is your bottle 750ml?".

    - "yes" / "ok" / ...       -> 750
    - "500ml", "1 liter", "1L" -> that size
    - "600"                    -> 600 (bare numbers are ml)

    Anything outside 100-3000 ml, or unrecognised, returns None.
    """
    lower = (text or "").strip().lower()
    if not lower:
        return None

    if AFFIRMATIVE_RE.match(lower):
        return DEFAULT_BOTTLE_SIZE_ML

    ml = _ML_RE.search(lower)
    if ml:
        return _in_range(_whole_ml(ml.group(1)))

    liters = _LITER_RE.search(lower)
    if liters:
        value = parse_number(liters.group(1))
        return _in_range(None if value is None else round_half_up(value * 1000))

    number = _NUMBER_RE.match(lower)
    if number:
        return _in_range(_whole_ml(number.group(1)))

    return None
