import json
from typing import Any, Dict, Optional

from pydantic import BaseModel

STREETS = ["preflop", "flop", "turn", "river"]
ACTIONS = ["fold", "call", "check", "bet", "raise"]


def _nullable(kind: str) -> Dict[str, Any]:
    return {"type": [kind, "null"]}


def _obj(properties: Dict[str, Any]) -> Dict[str, Any]:
    # Strict structured output wants every property required and nothing extra
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": properties,
        "required": list(properties),
    }


# ---------------- TableState schema (single source of truth) ----------------
TABLE_STATE_SCHEMA: Dict[str, Any] = _obj({
    "table": _obj({
        "game": _nullable("string"),
        "stakes": _obj({"sb": _nullable("number"), "bb": _nullable("number")}),
        "minRaise": _nullable("number"),
        "maxBet": _nullable("number"),
        "pot": _nullable("number"),
        "board": {"type": "array", "items": {"type": "string"}},
        "street": {"type": "string", "enum": STREETS},
    }),
    "hero": _obj({
        "seat": _nullable("integer"),
        "position": _nullable("string"),
        "stack": _nullable("number"),
        "hole": {"type": "array", "items": {"type": "string"}},
        "toAct": {"type": "boolean"},
        "committedThisStreet": _nullable("number"),
    }),
    "players": {
        "type": "array",
        "items": _obj({
            "seat": _nullable("integer"),
            "position": _nullable("string"),
            "stack": _nullable("number"),
            "committedThisStreet": _nullable("number"),
            "inHand": {"type": "boolean"},
        }),
    },
    "actionHistory": {
        "type": "array",
        "items": _obj({
            "actor": _nullable("string"),
            "action": {"type": "string"},
            "size": _nullable("number"),
            "street": {"type": "string", "enum": STREETS},
        }),
    },
})

TABLE_STATE_EXAMPLE: Dict[str, Any] = {
    "table": {
        "game": "No Limit Hold'em",
        "stakes": {"sb": 0.5, "bb": 1},
        "minRaise": 2,
        "maxBet": None,
        "pot": 12.5,
        "board": ["Qs", "7d", "2c"],
        "street": "flop",
    },
    "hero": {
        "seat": 4,
        "position": "CO",
        "stack": 112.4,
        "hole": ["Ah", "Kh"],
        "toAct": True,
        "committedThisStreet": 3,
    },
    "players": [
        {"seat": 1, "position": "SB", "stack": 48.2, "committedThisStreet": 1, "inHand": True},
        {"seat": 2, "position": "BB", "stack": 63.0, "committedThisStreet": 2, "inHand": True},
        {"seat": 4, "position": "CO", "stack": 112.4, "committedThisStreet": 3, "inHand": True},
    ],
    "actionHistory": [
        {"actor": "CO", "action": "raise", "size": 3, "street": "preflop"},
    ],
}


def response_format(name: str = "TableState") -> Dict[str, Any]:
    """The ``text.format`` block for a schema-constrained Responses API call."""
    return {
        "type": "json_schema",
        "name": name,
        "schema": TABLE_STATE_SCHEMA,
        "strict": True,
    }


def _outline(node: Dict[str, Any]) -> Any:
    if "enum" in node:
        return "|".join(node["enum"])
    kind = node.get("type")
    if kind == "object":
        return {key: _outline(sub) for key, sub in node.get("properties", {}).items()}
    if kind == "array":
        return [_outline(node.get("items", {}))]
    if isinstance(kind, list):
        return "|".join(kind)
    return kind or "any"


def schema_outline(schema: Optional[Dict[str, Any]] = None) -> str:
    """Human-readable skeleton of the schema, for prompts without enforcement.

    >>> json.loads(schema_outline())["table"]["street"]
    'preflop|flop|turn|river'
    """
    return json.dumps(_outline(schema or TABLE_STATE_SCHEMA), ensure_ascii=False)


# ---------------- Response models ----------------
class AnalyzeResponse(BaseModel):
    state: Dict[str, Any]
    recommendation: Optional[Dict[str, Any]] = None
    meta: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
    raw: Optional[Any] = None
    state: Optional[Any] = None
