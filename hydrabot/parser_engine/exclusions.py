from __future__ import annotations

import re

# Drinks that are never logged as water, whatever the amount.
EXCLUDED_BEVERAGES = [
    "coffee", "tea", "latte", "cappuccino", "espresso",
    "soda", "coke", "cola", "juice", "beer", "wine", "alcohol",
]

_EXCLUDED_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(word) for word in EXCLUDED_BEVERAGES) + r")\b",
    re.IGNORECASE,
)


def contains_excluded_beverage(text: str) -> bool:
    """Word-bounded, case-insensitive check. Runs before any amount parsing."""
    if not text:
        return False
    return bool(_EXCLUDED_RE.search(text))
