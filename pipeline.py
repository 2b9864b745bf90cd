"""Screenshot -> TableState -> Recommendation.

Every model call is wrapped as a named stage that returns a ``StageResult``
tagged ``ok``, ``recoverable`` or ``fatal``. ``STAGE_POLICY`` says which tag a
failing stage gets; the orchestration in ``extract_table_state`` only reads
the tags:

    strict      recoverable  -> fall through to loose
    loose       fatal        -> ExtractionError / ExtractionParseError
    self_check  recoverable  -> keep the state we already have

A state missing table, hero or players after extraction is always fatal
(IncompleteExtractionError).
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import openai

from config import (
    OPENAI_TIMEOUT_SECONDS,
    SELF_CHECK_ENABLED,
    SELF_CHECK_MODEL,
    SELF_CHECK_SEND_IMAGE,
    STRATEGY_MODEL,
    STRICT_EXTRACTION,
    VISION_MODEL,
)
from correction import STREET_BY_BOARD, apply_corrections
from parsing import ParseError, collect_output_text, parse_json_loose, structured_output
from schema import ACTIONS, STREETS, TABLE_STATE_EXAMPLE, response_format, schema_outline


# ---------------- Errors ----------------
class PipelineError(Exception):
    status_code = 500
    error = "Server error"

    def __init__(self, details: Optional[str] = None, **extra: Any):
        super().__init__(details or self.error)
        self.details = details
        self.extra = extra

    def payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.details:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ExtractionError(PipelineError):
    error = "OpenAI extraction error"


class ExtractionParseError(ExtractionError):
    status_code = 422
    error = "Failed to parse JSON from vision output"


class IncompleteExtractionError(ExtractionError):
    status_code = 422
    error = "Incomplete extraction"


class StrategyError(PipelineError):
    error = "OpenAI strategy error"


class StrategyParseError(StrategyError):
    status_code = 422
    error = "Failed to parse strategy JSON"


# ---------------- Stage results ----------------
OK, RECOVERABLE, FATAL = "ok", "recoverable", "fatal"

STAGE_POLICY = {
    "strict": RECOVERABLE,
    "loose": FATAL,
    "self_check": RECOVERABLE,
}


@dataclass
class StageResult:
    stage: str
    status: str
    state: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    raw: Optional[str] = None
    provider_error: bool = False

    @property
    def ok(self) -> bool:
        return self.status == OK

    @classmethod
    def failed(cls, stage: str, reason: str, **kwargs: Any) -> "StageResult":
        return cls(stage=stage, status=STAGE_POLICY[stage], reason=reason, **kwargs)


# ---------------- Prompts ----------------
EXTRACTION_RULES = """- Convert all amounts to big blinds (BB) when the blinds are visible.
- Infer positions from the dealer button and blinds when possible; else use null.
- A folded seat shows no cards in front of it and no chips on this street; set "inHand" false.
- Use null for unreadable fields; never invent values.
- "committedThisStreet" is per CURRENT street only.
- "actionHistory" is chronological; sizes in BB if blinds are known.
- Do NOT wrap the JSON in code fences. No backticks. Output JSON only."""

STRICT_SYSTEM_PROMPT = f"""You read online poker client screenshots. Return ONLY JSON that matches the provided schema.
{EXTRACTION_RULES}"""

LOOSE_SYSTEM_PROMPT = f"""You extract machine-precise JSON from poker table screenshots.
Output ONLY one JSON object with exactly this shape (types shown as values):
{schema_outline()}

Example:
{json.dumps(TABLE_STATE_EXAMPLE)}

{EXTRACTION_RULES}"""

_BOARD_RULE = ", ".join(f"{n}={street}" for n, street in sorted(STREET_BY_BOARD.items()))

SELF_CHECK_PROMPT = f"""Validate and correct this poker TableState. Return corrected JSON only, matching the same schema.
- Street must match the board cards: {_BOARD_RULE}.
- "inHand" is true only for seats still contesting the pot.
- If positions conflict with the seat order and blinds, fix positions.
- Amounts must be numbers or null, never strings.
- Keep values you cannot verify; never invent values."""

STRATEGY_PROMPT = f"""You are a concise NLHE strategy engine. Return STRICT JSON:
{{"recommendation":{{"street":"{'|'.join(STREETS)}","options":[{{"action":"{'|'.join(ACTIONS)}","frequency":0-100,"size":null|"BB"|"X pot"}}],"notes":"<=280 chars; include pot odds/SPR; flag uncertainty"}}}}
Rules:
- Frequencies sum to ~100.
- If bet/raise, include explicit size: BB if blinds known; else 0.33x/0.5x/0.66x pot.
- Cite numbers from the state in notes.
- If key fields are null, give a safe default and flag uncertainty.
- Do NOT wrap the JSON in code fences. Output JSON only."""


# ---------------- Model calls ----------------
def _request(
    client,
    model: str,
    system_text: str,
    user_parts: List[Dict[str, Any]],
    text_format: Optional[Dict[str, Any]] = None,
    timeout: float = OPENAI_TIMEOUT_SECONDS,
):
    kwargs: Dict[str, Any] = {
        "model": model,
        "temperature": 0,
        "input": [
            {"role": "system", "content": [{"type": "input_text", "text": system_text}]},
            {"role": "user", "content": user_parts},
        ],
        "timeout": timeout,
    }
    if text_format is not None:
        kwargs["text"] = {"format": text_format}
    return client.responses.create(**kwargs)


def _image_parts(prompt: str, image_data_url: str) -> List[Dict[str, Any]]:
    return [
        {"type": "input_text", "text": prompt},
        {"type": "input_image", "image_url": image_data_url},
    ]


def _model_stage(stage: str, client, model: str, system_text: str, user_parts, text_format=None, timeout: float = OPENAI_TIMEOUT_SECONDS) -> StageResult:
    try:
        response = _request(client, model, system_text, user_parts, text_format=text_format, timeout=timeout)
    except openai.OpenAIError as e:
        print(f"DEBUG[{stage}]: request failed:", e)
        return StageResult.failed(stage, f"{stage}: {e}", provider_error=True)

    parsed = structured_output(response)
    if parsed is not None:
        return StageResult(stage=stage, status=OK, state=parsed)

    raw = collect_output_text(response)
    if not raw:
        return StageResult.failed(stage, f"{stage}: empty model output", raw=raw)
    try:
        state = parse_json_loose(raw)
    except ParseError as e:
        print(f"DEBUG[{stage}]: output not JSON ({len(raw)} chars)")
        return StageResult.failed(stage, f"{stage}: {e}", raw=raw)
    return StageResult(stage=stage, status=OK, state=state, raw=raw)


def has_table_shape(state: Any) -> bool:
    return (
        isinstance(state, dict)
        and isinstance(state.get("table"), dict)
        and isinstance(state.get("hero"), dict)
        and isinstance(state.get("players"), list)
    )


def _self_check(client, state: Dict[str, Any], image_data_url: Optional[str], model: str, timeout: float) -> StageResult:
    user_parts = [{"type": "input_text", "text": json.dumps(state)}]
    if image_data_url:
        user_parts.append({"type": "input_image", "image_url": image_data_url})
    result = _model_stage("self_check", client, model, SELF_CHECK_PROMPT, user_parts, text_format=response_format(), timeout=timeout)
    if result.ok and not has_table_shape(result.state):
        return StageResult.failed("self_check", "self_check: corrected state is missing table/hero/players", raw=result.raw)
    return result


# ---------------- Stage 1: table state ----------------
def extract_table_state(
    client,
    image_data_url: str,
    *,
    strict: bool = STRICT_EXTRACTION,
    self_check: bool = SELF_CHECK_ENABLED,
    send_image: bool = SELF_CHECK_SEND_IMAGE,
    vision_model: str = VISION_MODEL,
    self_check_model: str = SELF_CHECK_MODEL,
    timeout: float = OPENAI_TIMEOUT_SECONDS,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Extract, correct and optionally self-check a TableState.

    Returns ``(state, meta)``. Raises ``ExtractionError`` (or one of its
    subclasses) when no usable state can be produced; self-check problems
    are reported in ``meta`` only.
    """
    meta: Dict[str, Any] = {"extraction": None, "attempts": [], "self_check": "disabled", "corrections": []}
    attempts: List[StageResult] = []
    user_parts = _image_parts("Extract structured table state from this screenshot.", image_data_url)

    result: Optional[StageResult] = None
    if strict:
        result = _model_stage("strict", client, vision_model, STRICT_SYSTEM_PROMPT, user_parts, text_format=response_format(), timeout=timeout)
        attempts.append(result)
    if result is None or result.status == RECOVERABLE:
        result = _model_stage("loose", client, vision_model, LOOSE_SYSTEM_PROMPT, user_parts, timeout=timeout)
        attempts.append(result)
    meta["attempts"] = [{"stage": a.stage, "status": a.status, "reason": a.reason} for a in attempts]

    if not result.ok:
        details = "; ".join(a.reason for a in attempts if a.reason) or None
        if result.provider_error:
            raise ExtractionError(details)
        raw = next((a.raw for a in reversed(attempts) if a.raw), result.raw or "")
        raise ExtractionParseError(details, raw=raw)

    state = result.state
    meta["extraction"] = result.stage
    print(f"DEBUG[extract]: state extracted via {result.stage}")

    if not has_table_shape(state):
        raise IncompleteExtractionError(state=state)

    apply_corrections(state, meta["corrections"])

    if self_check:
        checked = _self_check(client, state, image_data_url if send_image else None, self_check_model, timeout)
        if checked.ok:
            state = apply_corrections(checked.state, meta["corrections"])
            meta["self_check"] = "applied"
            print("DEBUG[self_check]: corrected state applied")
        else:
            meta["self_check"] = f"skipped: {checked.reason}"
            print("DEBUG[self_check]: keeping prior state ->", checked.reason)

    return state, meta


# ---------------- Stage 2: recommendation ----------------
def recommend(client, state: Dict[str, Any], *, model: str = STRATEGY_MODEL, timeout: float = OPENAI_TIMEOUT_SECONDS) -> Dict[str, Any]:
    user_parts = [
        {"type": "input_text", "text": "Compute action frequencies and sizes for this table state:"},
        {"type": "input_text", "text": json.dumps(state)},
    ]
    try:
        response = _request(client, model, STRATEGY_PROMPT, user_parts, timeout=timeout)
    except openai.OpenAIError as e:
        print("DEBUG[strategy]: request failed:", e)
        raise StrategyError(str(e), state=state)

    raw = collect_output_text(response)
    if not raw:
        raise StrategyParseError("empty model output", raw=raw, state=state)
    try:
        parsed = parse_json_loose(raw)
    except ParseError as e:
        raise StrategyParseError(str(e), raw=raw, state=state)

    rec = parsed.get("recommendation")
    return rec if isinstance(rec, dict) else parsed
