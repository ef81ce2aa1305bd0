import json
from typing import Any, Dict, Optional

from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


def find_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` span in ``text``.

    Braces inside JSON string literals are ignored, so values such as
    ``"remarks": "see {note}"`` do not end the span early.
    """
    if not text:
        return None

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for idx in range(start, len(text)):
            char = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:idx + 1]

        # Unbalanced from this brace, try the next one
        start = text.find("{", start + 1)

    return None


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Parse the first JSON object embedded in an LLM response.

    Handles markdown fences and prose around the object.

    Args:
        text: Raw model output

    Returns:
        Parsed dict, or None if no parseable object is present
    """
    span = find_json_object(text)
    if span is None:
        LOGGER.warning("No JSON object found in LLM response", extra={"preview": (text or "")[:200]})
        return None

    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        LOGGER.warning(f"Failed to parse JSON object from LLM response: {e}")
        return None

    if not isinstance(parsed, dict):
        return None
    return parsed
