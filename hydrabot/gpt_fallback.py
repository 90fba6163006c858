from __future__ import annotations

import json
import logging
import math
import os
import re
from typing import Any, Dict, Optional

from jsonschema import ValidationError, validate
from openai import OpenAI

from hydrabot.parser_engine.contract import INTENTS, FallbackOutcome
from hydrabot.parser_engine.validator import load_schema

DEFAULT_MODEL = "gpt-4o-mini"
REQUEST_TIMEOUT_SECONDS = 15.0
MAX_USER_MESSAGE_LENGTH = 500
TEMPERATURE = 0.1
MAX_TOKENS = 150

GENERIC_CLARIFICATION = "I didn't quite catch that. How much water was it? 💧"
OFFLINE_CLARIFICATION = (
    "I didn't quite catch that. How much water was it? "
    "(Set OPENAI_API_KEY for natural language.)"
)


SYSTEM_PROMPT = """
You are a water intake parser for a single-user hydration bot.
Classify the user's intent and extract data.

You MUST respond with pure JSON only. No markdown, no prose.

Return exactly this shape:
{
  "intent": "<log|clarify|no_action|edit|query|undo|chitchat>",
  "amount_ml": <number or null if unclear>,
  "relative_time": <string like "2 hours ago", or null if drinking now>,
  "ambiguous": <true if you cannot determine the exact amount>,
  "clarification_needed": <short friendly question if ambiguous, short warm reply for chitchat, else null>,
  "adjust_by_ml": <number only for intent "edit", else null>,
  "undo_count": <number only for intent "undo", default 1, else null>
}

Intent rules:
- log: user reports water drunk TODAY, now or "X hours ago" (e.g. "500ml", "drank 2 glasses",
  "500ml 2 hours ago"). Extract amount_ml and optional relative_time.
- clarify: vague amount ("some water", "I had water earlier", "a small glass"). Set ambiguous: true
  and a short clarification_needed question. Do NOT guess the amount.
- no_action: negation, the user did NOT drink ("I didn't drink 500ml"). amount_ml null.
- edit: user wants to reduce today's total ("reduce by 500ml", "remove 500ml"). Set adjust_by_ml
  to the positive number of ml to subtract.
- query: user asks for today's total or logs ("how much did I drink today?").
- undo: user wants to remove the last log(s) ("that was a mistake", "undo last 3"). Set undo_count
  (1 if not specified).
- chitchat: greetings, thanks, small talk. Put a short friendly reply in clarification_needed.

Amount rules:
- 1 liter = 1000 ml. "a glass" = 250 ml. "a cup" = 200 ml.
- "a bottle" = null (the user has a custom bottle size).
- "yesterday" or "last night" must NEVER become a loggable amount for today: use intent clarify
  and say you can only log today's water (up to 12 hours ago).
"""


def _parse_json_safely(content: str) -> Optional[Any]:
    """
    Parse model output that should be JSON.

    Tries the raw text, then a ```json fenced block, then the first {...}
    span. Returns None when nothing parses.
    """
    try:
        return json.loads(content)
    except ValueError:
        pass

    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", content)
    if fenced:
        try:
            return json.loads(fenced.group(1).strip())
        except ValueError:
            return None

    obj = re.search(r"\{[\s\S]*\}", content)
    if obj:
        try:
            return json.loads(obj.group(0))
        except ValueError:
            return None

    return None


def _number_or_none(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    # json.loads accepts 1e999, NaN and Infinity
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _string_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def safe_default(status: str = "failed", clarification: str = GENERIC_CLARIFICATION) -> FallbackOutcome:
    return FallbackOutcome(
        intent="clarify",
        ambiguous=True,
        clarification_needed=clarification,
        status=status,
    )


def normalize_payload(payload: Dict[str, Any]) -> FallbackOutcome:
    """
    Shape a decoded model response into a FallbackOutcome.

    Wrong-typed fields become None. An unknown intent becomes "clarify" when
    the model flagged ambiguity, otherwise "log".
    """
    ambiguous = bool(payload.get("ambiguous"))
    intent = payload.get("intent")
    if intent not in INTENTS:
        intent = "clarify" if ambiguous else "log"

    return FallbackOutcome(
        intent=intent,
        amount_ml=_number_or_none(payload.get("amount_ml")),
        relative_time=_string_or_none(payload.get("relative_time")),
        ambiguous=ambiguous,
        clarification_needed=_string_or_none(payload.get("clarification_needed")),
        adjust_by_ml=_number_or_none(payload.get("adjust_by_ml")),
        undo_count=_number_or_none(payload.get("undo_count")),
        status="ok",
    )


class FallbackClient:
    """
    GPT fallback for messages the regex stage cannot settle.

    classify() is total: it always returns a FallbackOutcome and never raises.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_env(cls) -> "FallbackClient":
        return cls(
            api_key=os.getenv("OPENAI_API_KEY"),
            base_url=os.getenv("OPENAI_BASE_URL") or None,
            model=os.getenv("OPENAI_MODEL") or DEFAULT_MODEL,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> Any:
        """
        Lazily build the OpenAI client so a missing key never breaks import.
        Single attempt: retries are disabled and the timeout is hard.
        """
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def _complete(self, text: str) -> Optional[str]:
        """One chat-completions call. Returns the first choice's content or None."""
        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": text[:MAX_USER_MESSAGE_LENGTH]},
                ],
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
            )
        except Exception as e:  # noqa: BLE001
            logging.error("[GPT FALLBACK ERROR] %s", e)
            return None

        choices = getattr(response, "choices", None) or []
        if not choices:
            logging.error("[GPT FALLBACK ERROR] response had no choices")
            return None
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None)

    def classify(self, text: str) -> FallbackOutcome:
        if not self.is_configured:
            logging.warning("[GPT FALLBACK] OPENAI_API_KEY not set; returning clarify.")
            return safe_default(status="offline", clarification=OFFLINE_CLARIFICATION)

        content = self._complete(text or "")
        if not content:
            logging.error("[GPT FALLBACK ERROR] empty content")
            return safe_default()

        parsed = _parse_json_safely(content)
        try:
            validate(instance=parsed, schema=load_schema("fallback_outcome"))
        except ValidationError as e:
            logging.error("[GPT FALLBACK ERROR] malformed JSON %r: %s", content, e.message)
            return safe_default()

        outcome = normalize_payload(parsed)
        logging.info("[GPT FALLBACK] %s", outcome.to_dict())
        return outcome
