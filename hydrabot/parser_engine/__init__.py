"""
hydrabot Parser Engine

This package turns a chat message into exactly one water intent:
- Deterministic regex extraction of amounts (ml / liters / bottles / glasses / cups)
- GPT fallback interpretation for everything else
- Shaping and JSON-schema validation of the single ParseResult contract

Nothing in this package should talk directly to Flask, Telegram, or storage.
The GPT call lives in hydrabot.gpt_fallback and is injected into the resolver.
"""

from .contract import (
    INTENTS,
    MAX_AMOUNT_ML,
    Chitchat,
    Clarify,
    Edit,
    Log,
    NoAction,
    ParseResult,
    Query,
    Undo,
)

__all__ = [
    "INTENTS",
    "MAX_AMOUNT_ML",
    "Chitchat",
    "Clarify",
    "Edit",
    "Log",
    "NoAction",
    "ParseResult",
    "Query",
    "Undo",
]
