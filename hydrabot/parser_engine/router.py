from __future__ import annotations

import logging
from typing import Optional

from .contract import ParseResultDict, RawMessage, result_to_dict
from .resolver import IntentResolver
from .validator import validate_result


def parse_text_message(
    text: str,
    bottle_size_ml: int,
    resolver: Optional[IntentResolver] = None,
) -> ParseResultDict:
    """
    High-level entrypoint for TEXT messages.

    Pipeline:
    1. Resolve the intent (regex first, GPT fallback if needed).
    2. Validate the 'data' payload against the intent schema.
    3. Attach any schema errors to 'issues'.
    4. Return a plain dict matching the ParseResult contract.
    """
    resolver = resolver or IntentResolver()
    result = resolver.resolve_message(RawMessage(text=text, bottle_size_ml=bottle_size_ml))

    output = result_to_dict(result)

    # Schema validation
    is_valid, err = validate_result(output["intent"], output["data"])
    if not is_valid and err:
        logging.error("[PARSER CONTRACT] %s failed validation: %s", output["intent"], err)
        output["issues"].append(f"Schema validation failed: {err}")

    return output
