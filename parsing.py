"""Turn loosely-shaped model output into JSON objects.

Models wrap JSON in code fences, add a sentence before or after it, or hand
back a Responses API envelope where the text is spread over several content
parts. The helpers here undo all of that without judging the content.
"""
import json
import re
from typing import Any, Optional

_OPEN_FENCE = re.compile(r"^```[\w-]*\s*")
_CLOSE_FENCE = re.compile(r"\s*```$")


class ParseError(ValueError):
    """Model text that could not be coerced into a JSON object."""

    def __init__(self, message: str, raw: Any = None):
        super().__init__(message)
        self.raw = raw


def _strip_fences(s: str) -> str:
    if s.startswith("```"):
        s = _OPEN_FENCE.sub("", s)
        s = _CLOSE_FENCE.sub("", s)
    else:
        s = s.replace("```", "")
    return s.strip()


def parse_json_loose(text: Any) -> dict:
    if not isinstance(text, str) or not text.strip():
        raise ParseError("Empty response", raw=text)
    s = _strip_fences(text.strip())
    try:
        parsed = json.loads(s)
        if isinstance(parsed, dict):
            return parsed
    except ValueError:
        pass
    start, end = s.find("{"), s.rfind("}")
    if start != -1 and end > start:
        try:
            parsed = json.loads(s[start:end + 1])
            if isinstance(parsed, dict):
                return parsed
        except ValueError:
            pass
    raise ParseError("Could not parse JSON", raw=text)


def _field(obj: Any, name: str) -> Any:
    # SDK objects expose attributes, raw HTTP envelopes are dicts
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def collect_output_text(response: Any) -> str:
    if response is None:
        return ""
    flat = _field(response, "output_text")
    if isinstance(flat, str) and flat.strip():
        return flat.strip()
    parts = []
    messages = _field(response, "output")
    for message in messages if isinstance(messages, (list, tuple)) else []:
        content = _field(message, "content")
        for part in content if isinstance(content, (list, tuple)) else []:
            text = _field(part, "text")
            if isinstance(text, str) and text.strip():
                parts.append(text.strip())
    return "\n".join(parts).strip()


def structured_output(response: Any) -> Optional[dict]:
    """Return the already-parsed object of a structured-output response, if any."""
    if response is None:
        return None
    parsed = _field(response, "output_parsed")
    if isinstance(parsed, dict):
        return parsed
    # pydantic-backed parse results
    if hasattr(parsed, "model_dump"):
        return parsed.model_dump()
    return None
