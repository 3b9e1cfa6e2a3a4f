"""
Response parsing helpers for structured LLM output.
"""
import json
import re
from typing import Any, Dict

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def extract_json(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from an LLM reply.

    Models often wrap JSON in a markdown code fence or add a sentence
    around it; both are tolerated.

    Raises:
        ValueError: If no JSON object can be recovered
    """
    cleaned = text.strip()
    fenced = _FENCE_RE.match(cleaned)
    if fenced:
        cleaned = fenced.group(1)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        # Fall back to the outermost {...} span
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("No JSON object in LLM response")
        data = json.loads(cleaned[start:end + 1])

    if not isinstance(data, dict):
        raise ValueError("LLM response JSON is not an object")
    return data
