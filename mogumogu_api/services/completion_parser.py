"""
Structured-output parsing for JSON completions.
"""
import json
import re
from typing import Any, Dict, List

from mogumogu_api.core.errors import MalformedCompletion

_FENCE_OPEN = re.compile(r"^```(?:json|JSON)?[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```$")


def strip_code_fence(text: str) -> str:
    """Remove an optional surrounding ``` / ```json fence and trim."""
    cleaned = (text or "").strip()
    cleaned = _FENCE_OPEN.sub("", cleaned)
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def parse_json_payload(text: str) -> Any:
    """
    Parse completion text as JSON.

    Raises:
        MalformedCompletion: Empty or non-JSON text (raw text kept for logs)
    """
    cleaned = strip_code_fence(text)
    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedCompletion(raw_text=text or "") from e


def parse_recipe_list(text: str) -> List[Dict[str, Any]]:
    """
    Parse a recipe completion into a list.

    Accepts a bare array or an object with a ``recipes`` array.
    """
    parsed = parse_json_payload(text)
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("recipes"), list):
        return parsed["recipes"]
    raise MalformedCompletion(raw_text=text)


def parse_json_object(text: str) -> Dict[str, Any]:
    parsed = parse_json_payload(text)
    if not isinstance(parsed, dict):
        raise MalformedCompletion(raw_text=text)
    return parsed
