from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, List, Literal, Optional, TypedDict, Union

# Allowed intents
INTENTS = ("log", "clarify", "no_action", "edit", "query", "undo", "chitchat")

IntentKind = Literal["log", "clarify", "no_action", "edit", "query", "undo", "chitchat"]

# Upper bound for any single amount (ml), both regex and GPT paths.
MAX_AMOUNT_ML = 10000

# Per-message cap on how many logs an undo may remove.
MAX_UNDO_COUNT = 10


def is_valid_amount(value: Any) -> bool:
    """True for a real number in (0, MAX_AMOUNT_ML]. Booleans are not amounts."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return 0 < value <= MAX_AMOUNT_ML


# Longest digit run any amount or count may have before it is ignored.
MAX_NUMBER_DIGITS = 6


def round_half_up(value: float) -> int:
    """Round to the nearest int with halves going up (62.5 -> 63)."""
    return int(math.floor(value + 0.5))


def parse_number(digits: str, max_digits: int = MAX_NUMBER_DIGITS) -> Optional[float]:
    """
    Parse a captured "123" or "1.5" without overflow.

    Returns None when either side of the point is longer than max_digits or
    the value is not finite.
    """
    whole, _, fraction = digits.partition(".")
    if not whole or len(whole) > max_digits or len(fraction) > max_digits:
        return None
    value = float(digits)
    if not math.isfinite(value):
        return None
    return value


# --------------------------------------------------------------------------- #
# Inputs / stage outcomes
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class RawMessage:
    text: str
    bottle_size_ml: int


@dataclass(frozen=True)
class ExtractionOutcome:
    """Result of the deterministic stage. Never carries an out-of-range amount."""
    matched: bool
    amount_ml: Optional[int] = None
    log_timestamp: Optional[str] = None
    pattern: Optional[str] = None

    @classmethod
    def no_match(cls) -> "ExtractionOutcome":
        return cls(matched=False)


@dataclass(frozen=True)
class FallbackOutcome:
    """
    Normalized GPT response.

    status tags how it was produced:
    - "ok":      parsed from a real model response
    - "offline": no OPENAI_API_KEY, no request made
    - "failed":  transport error or malformed output, safe default returned
    """
    intent: str = "clarify"
    amount_ml: Optional[float] = None
    relative_time: Optional[str] = None
    ambiguous: bool = True
    clarification_needed: Optional[str] = None
    adjust_by_ml: Optional[float] = None
    undo_count: Optional[float] = None
    status: str = "ok"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --------------------------------------------------------------------------- #
# ParseResult: the ONLY shape that leaves the resolver
# --------------------------------------------------------------------------- #

class ParseResultDict(TypedDict):
    intent: str
    data: Dict[str, Any]
    issues: List[str]


@dataclass(frozen=True)
class Log:
    kind: ClassVar[str] = "log"
    amount_ml: int
    log_timestamp: str


@dataclass(frozen=True)
class Edit:
    kind: ClassVar[str] = "edit"
    adjust_ml: int


@dataclass(frozen=True)
class Undo:
    kind: ClassVar[str] = "undo"
    count: int = 1


@dataclass(frozen=True)
class Query:
    kind: ClassVar[str] = "query"


@dataclass(frozen=True)
class NoAction:
    kind: ClassVar[str] = "no_action"


@dataclass(frozen=True)
class Chitchat:
    kind: ClassVar[str] = "chitchat"
    reply_text: Optional[str] = None


@dataclass(frozen=True)
class Clarify:
    kind: ClassVar[str] = "clarify"
    prompt_text: str


ParseResult = Union[Log, Edit, Undo, Query, NoAction, Chitchat, Clarify]


def result_to_dict(result: ParseResult, issues: Optional[List[str]] = None) -> ParseResultDict:
    """
    Return a plain dict for JSON responses.

    Chitchat drops reply_text when the model gave none, so the caller falls
    back to its own canned greeting.
    """
    data = asdict(result)
    if isinstance(result, Chitchat) and result.reply_text is None:
        data.pop("reply_text")
    return {
        "intent": result.kind,
        "data": data,
        "issues": list(issues or []),
    }

