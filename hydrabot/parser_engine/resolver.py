from __future__ import annotations

import logging
import re
from typing import List, Optional, Protocol

from hydrabot.gpt_fallback import GENERIC_CLARIFICATION, FallbackClient
from hydrabot.utils.time import Clock

from .contract import (
    MAX_UNDO_COUNT,
    Chitchat,
    Clarify,
    Edit,
    FallbackOutcome,
    Log,
    NoAction,
    ParseResult,
    Query,
    RawMessage,
    Undo,
    is_valid_amount,
    round_half_up,
)
from .extractor import extract_amount


# ---------------------------------------------------------------------------
# CLARIFICATION PROMPTS
# ---------------------------------------------------------------------------

GENERIC_PROMPT = GENERIC_CLARIFICATION
YESTERDAY_PROMPT = (
    "I can only log water from today (up to 12 hours ago). "
    "I can't add yesterday's water to today's total."
)
EDIT_AMOUNT_PROMPT = "How much should I reduce by? (e.g. 500ml)"
INVALID_AMOUNT_PROMPT = "That doesn't seem quite right. How much water was it in ml? 💧"
WHEN_PROMPT = "When did you drink that? I can only log water from today (up to 12 hours ago)."
WINDOW_PROMPT = "I can only log water from today (up to 12 hours ago). Could you be more specific?"


# ---------------------------------------------------------------------------
# CUES THAT DISQUALIFY THE REGEX STAGE
# ---------------------------------------------------------------------------

# Only the GPT stage can turn these into a non-"now" timestamp.
TIME_CUE_RE = re.compile(
    r"\b(?:ago|earlier|before|morning|afternoon|evening|hours?|hrs?|minutes?|mins?)\b",
    re.IGNORECASE,
)

PAST_DAY_CUE_RE = re.compile(r"\b(?:yesterday|last night)\b", re.IGNORECASE)

NEGATION_CUE_RE = re.compile(
    r"\b(?:didn['’]?t|did not|don['’]?t|do not|not|never|haven['’]?t|have not|hasn['’]?t|wasn['’]?t|won['’]?t)\b",
    re.IGNORECASE,
)

CORRECTION_CUE_RE = re.compile(
    r"\b(?:reduce|remove|subtract|minus|undo|delete|mistake|wrong|take off)\b",
    re.IGNORECASE,
)

_CUES = (
    ("time", TIME_CUE_RE),
    ("past_day", PAST_DAY_CUE_RE),
    ("negation", NEGATION_CUE_RE),
    ("correction", CORRECTION_CUE_RE),
)


def detect_cues(text: str) -> List[str]:
    """Names of every cue family present in text."""
    return [name for name, pattern in _CUES if pattern.search(text or "")]


def mentions_past_day(text: str) -> bool:
    return bool(PAST_DAY_CUE_RE.search(text or ""))


class Classifier(Protocol):
    def classify(self, text: str) -> FallbackOutcome: ...


# ---------------------------------------------------------------------------
# RESOLVER
# ---------------------------------------------------------------------------

class IntentResolver:
    """
    Two-stage intent resolution for one chat message.

    1. Regex extractor. If it finds an amount and the message has no
       time / past-day / negation / correction cue, log it now. GPT is
       never called on this path.
    2. Otherwise ask the GPT fallback and check its answer against the
       domain rules (amount range, same civil day, <= 12h back).

    resolve() never raises; every branch returns a ParseResult.
    """

    def __init__(self, fallback: Optional[Classifier] = None, clock: Optional[Clock] = None) -> None:
        self.fallback = fallback if fallback is not None else FallbackClient.from_env()
        self.clock = clock or Clock.from_env()

    def resolve(self, text: str, bottle_size_ml: int) -> ParseResult:
        text = text or ""
        cues = detect_cues(text)
        extraction = extract_amount(text, bottle_size_ml, clock=self.clock)

        if extraction.matched and not cues:
            logging.info("[PARSER] regex %s -> %sml", extraction.pattern, extraction.amount_ml)
            return Log(amount_ml=extraction.amount_ml, log_timestamp=extraction.log_timestamp)

        if extraction.matched:
            logging.info("[PARSER] regex matched but cues %s present; using GPT fallback", cues)
        else:
            logging.info("[PARSER] no regex match; using GPT fallback")

        outcome = self.fallback.classify(text)
        return self.interpret_fallback(text, outcome)

    def resolve_message(self, message: RawMessage) -> ParseResult:
        return self.resolve(message.text, message.bottle_size_ml)

    def interpret_fallback(self, text: str, outcome: FallbackOutcome) -> ParseResult:
        """Map a FallbackOutcome onto a ParseResult, enforcing the logging rules."""
        # The model sometimes logs "last night" as today; never allow it.
        if mentions_past_day(text) and (outcome.intent == "log" or outcome.amount_ml is not None):
            return Clarify(prompt_text=YESTERDAY_PROMPT)

        if outcome.intent == "no_action":
            return NoAction()
        if outcome.intent == "chitchat":
            return Chitchat(reply_text=outcome.clarification_needed or None)
        if outcome.intent == "query":
            return Query()

        if outcome.intent == "undo":
            count = outcome.undo_count
            if count is None or count < 1:
                return Undo(count=1)
            return Undo(count=min(int(count), MAX_UNDO_COUNT))

        if outcome.intent == "edit":
            if not is_valid_amount(outcome.adjust_by_ml) or round_half_up(outcome.adjust_by_ml) <= 0:
                return Clarify(prompt_text=EDIT_AMOUNT_PROMPT)
            return Edit(adjust_ml=round_half_up(outcome.adjust_by_ml))

        if outcome.intent == "clarify" or outcome.ambiguous or outcome.amount_ml is None:
            return Clarify(prompt_text=outcome.clarification_needed or GENERIC_PROMPT)

        # intent == "log"
        if not is_valid_amount(outcome.amount_ml) or round_half_up(outcome.amount_ml) <= 0:
            return Clarify(prompt_text=INVALID_AMOUNT_PROMPT)
        amount = round_half_up(outcome.amount_ml)

        if outcome.relative_time:
            offset_hours = self.clock.parse_relative_phrase(outcome.relative_time)
            if offset_hours is None:
                return Clarify(prompt_text=WHEN_PROMPT)
            log_timestamp = self.clock.validate_retroactive_offset(offset_hours)
            if log_timestamp is None:
                return Clarify(prompt_text=WINDOW_PROMPT)
            return Log(amount_ml=amount, log_timestamp=log_timestamp)

        return Log(amount_ml=amount, log_timestamp=self.clock.now_string())


def parse_water_input(text: str, bottle_size_ml: int) -> ParseResult:
    """Resolve one message with a resolver configured from the environment."""
    return IntentResolver().resolve(text, bottle_size_ml)
