"""
Deterministic water-amount extractor.

Rules are tried in the order of RULES; the first one that yields an amount in
(0, MAX_AMOUNT_ML] wins. No network, no exceptions: a miss is just
ExtractionOutcome(matched=False).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern

from hydrabot.utils.time import Clock

from .contract import ExtractionOutcome, is_valid_amount, parse_number, round_half_up

GLASS_ML = 250
CUP_ML = 200

MAX_BOTTLES = 10
MAX_GLASSES_OR_CUPS = 20


@dataclass(frozen=True)
class ExtractionRule:
    name: str
    pattern: Pattern[str]
    # (match, lowered text, bottle size) -> amount or None
    extract: Callable[[re.Match, str, int], Optional[int]]


def _counted(limit: int, unit_ml: int) -> Callable[[re.Match, str, int], Optional[int]]:
    def extract(match: re.Match, _text: str, _bottle: int) -> Optional[int]:
        count = parse_number(match.group(1)) if match.group(1) else 1
        if count is None or count < 1 or count > limit:
            return None
        return unit_ml * int(count)
    return extract


def _ml(match: re.Match, _text: str, _bottle: int) -> Optional[int]:
    value = parse_number(match.group(1))
    return None if value is None else int(value)


def _liters(match: re.Match, _text: str, _bottle: int) -> Optional[int]:
    value = parse_number(match.group(1))
    return None if value is None else round_half_up(value * 1000)


def _half_bottle(_match: re.Match, _text: str, bottle: int) -> Optional[int]:
    return round_half_up(bottle * 0.5)


def _quarter_bottle(_match: re.Match, _text: str, bottle: int) -> Optional[int]:
    return round_half_up(bottle * 0.25)


def _bottles(match: re.Match, _text: str, bottle: int) -> Optional[int]:
    count = parse_number(match.group(1))
    if count is None or count < 1 or count > MAX_BOTTLES:
        return None
    return bottle * int(count)


def _single_bottle(_match: re.Match, text: str, bottle: int) -> Optional[int]:
    # Crude guard: any "half"/"quarter" in the message blocks the bare-bottle rule.
    if "half" in text or "quarter" in text:
        return None
    return bottle


RULES: List[ExtractionRule] = [
    ExtractionRule("ml", re.compile(r"(?<![\d.])(\d+)\s*ml\b"), _ml),
    ExtractionRule(
        "liters",
        re.compile(r"(?<![\d.])(\d+(?:\.\d+)?)\s*(?:l|liter|liters|litre|litres)\b"),
        _liters,
    ),
    ExtractionRule("half_bottle", re.compile(r"(?:\bhalf|1/2)\s*(?:a\s*)?bottle"), _half_bottle),
    ExtractionRule("quarter_bottle", re.compile(r"(?:\bquarter|1/4)\s*(?:a\s*)?bottle"), _quarter_bottle),
    ExtractionRule("bottles", re.compile(r"(?<![\d/])(\d+)\s*bottles?\b"), _bottles),
    ExtractionRule("bottle", re.compile(r"(?:\b(?:one|a|1)\s*)?\bbottle\b"), _single_bottle),
    ExtractionRule(
        "glasses",
        re.compile(r"(?:(?<!\d)(\d+)\s*)?(?:a\s*)?(?<![a-z])glass(?:es)?\b"),
        _counted(MAX_GLASSES_OR_CUPS, GLASS_ML),
    ),
    ExtractionRule(
        "cups",
        re.compile(r"(?:(?<!\d)(\d+)\s*)?(?:a\s*)?(?<![a-z])cups?\b"),
        _counted(MAX_GLASSES_OR_CUPS, CUP_ML),
    ),
]


def apply_rule(rule: ExtractionRule, text: str, bottle_size_ml: int) -> Optional[int]:
    """Run a single rule against text. Returns a validated amount or None."""
    lower = text.lower()
    match = rule.pattern.search(lower)
    if not match:
        return None
    amount = rule.extract(match, lower, bottle_size_ml)
    if amount is None or not is_valid_amount(amount):
        return None
    return amount


def extract_amount(text: str, bottle_size_ml: int, clock: Optional[Clock] = None) -> ExtractionOutcome:
    """Try every rule in priority order and stop at the first valid amount."""
    if not text or not text.strip():
        return ExtractionOutcome.no_match()

    for rule in RULES:
        amount = apply_rule(rule, text, bottle_size_ml)
        if amount is not None:
            return ExtractionOutcome(
                matched=True,
                amount_ml=amount,
                log_timestamp=(clock or Clock.from_env()).now_string(),
                pattern=rule.name,
            )

    return ExtractionOutcome.no_match()
