import json
import os
from functools import lru_cache
from typing import Dict, Any, Tuple

from jsonschema import validate, ValidationError

# Path: hydrabot/parser_engine/schemas/
SCHEMA_DIR = os.path.join(
    os.path.dirname(__file__),
    "schemas"
)

# Mapping intent → schema filename
INTENT_SCHEMAS = {
    "log": "log.json",
    "edit": "edit.json",
    "undo": "undo.json",
    "query": "empty.json",
    "no_action": "empty.json",
    "chitchat": "chitchat.json",
    "clarify": "clarify.json",
    "fallback_outcome": "fallback_outcome.json",
}


@lru_cache(maxsize=None)
def load_schema(name: str) -> Dict[str, Any]:
    """
    Load JSON schema file for a given intent (or "fallback_outcome").
    """
    filename = INTENT_SCHEMAS[name]
    path = os.path.join(SCHEMA_DIR, filename)

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def validate_result(intent: str, data: Dict[str, Any]) -> Tuple[bool, str]:
    """
    Validate a ParseResult's data dict against the intent's JSON schema.

    Returns:
        (True, "") if valid
        (False, "<error message>") if invalid
    """
    if intent not in INTENT_SCHEMAS or intent == "fallback_outcome":
        return False, f"Unknown intent: {intent!r}"

    try:
        validate(instance=data, schema=load_schema(intent))
        return True, ""
    except ValidationError as e:
        return False, e.message
