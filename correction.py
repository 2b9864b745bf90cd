"""Rule-based fixups for extracted table states.

Each rule repairs one aspect of the state in place and runs behind its own
try/except, so one bad field never blocks the others. Failures land in the
optional ``issues`` list instead of propagating.
"""
import math
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

STREET_BY_BOARD = {0: "preflop", 3: "flop", 4: "turn", 5: "river"}

_NUMBER_NOISE = re.compile(r"[$€£,\s]|bb$", re.I)
_FALSEY = {"", "false", "no", "n", "0", "none", "null", "folded"}


class Unparseable(ValueError):
    pass


def _num(x, integer: bool = False):
    if x is None:
        return None
    if isinstance(x, bool):
        raise Unparseable(f"boolean {x!r} is not a number")
    if isinstance(x, (int, float)):
        if isinstance(x, float) and not math.isfinite(x):
            raise Unparseable(f"{x!r} is not a finite number")
        return int(x) if integer and float(x).is_integer() else x
    s = _NUMBER_NOISE.sub("", str(x).strip())
    if not s:
        return None
    try:
        value = float(s)
    except ValueError:
        raise Unparseable(f"{x!r} is not a number")
    if not math.isfinite(value):
        raise Unparseable(f"{x!r} is not a finite number")
    if integer and value.is_integer():
        return int(value)
    return value


def _bool(x) -> bool:
    if isinstance(x, str):
        return x.strip().lower() not in _FALSEY
    return bool(x)


def _coerce(obj: Dict[str, Any], key: str, label: str, issues: List[str], integer: bool = False) -> None:
    if key not in obj:
        return
    try:
        obj[key] = _num(obj[key], integer=integer)
    except Unparseable as e:
        obj[key] = None
        issues.append(f"{label}: {e}")


def _dict(parent: Any, key: str) -> Optional[Dict[str, Any]]:
    value = parent.get(key) if isinstance(parent, dict) else None
    return value if isinstance(value, dict) else None


# ---------------- Rules ----------------
def street_from_board(state: Dict[str, Any], issues: List[str]) -> None:
    table = _dict(state, "table")
    if table is None:
        return
    if not isinstance(table.get("board"), list):
        table["board"] = []
    street = STREET_BY_BOARD.get(len(table["board"]))
    if street is not None:
        table["street"] = street


def numeric_fields(state: Dict[str, Any], issues: List[str]) -> None:
    table = _dict(state, "table")
    if table is not None:
        for key in ("pot", "minRaise", "maxBet"):
            _coerce(table, key, f"table.{key}", issues)
        stakes = _dict(table, "stakes")
        if stakes is not None:
            for key in ("sb", "bb"):
                _coerce(stakes, key, f"table.stakes.{key}", issues)

    hero = _dict(state, "hero")
    if hero is not None:
        _coerce(hero, "seat", "hero.seat", issues, integer=True)
        _coerce(hero, "stack", "hero.stack", issues)
        _coerce(hero, "committedThisStreet", "hero.committedThisStreet", issues)

    players = state.get("players")
    if isinstance(players, list):
        for i, p in enumerate(players):
            if not isinstance(p, dict):
                continue
            _coerce(p, "seat", f"players[{i}].seat", issues, integer=True)
            _coerce(p, "stack", f"players[{i}].stack", issues)
            _coerce(p, "committedThisStreet", f"players[{i}].committedThisStreet", issues)

    history = state.get("actionHistory")
    if isinstance(history, list):
        for i, a in enumerate(history):
            if isinstance(a, dict):
                _coerce(a, "size", f"actionHistory[{i}].size", issues)


def hero_defaults(state: Dict[str, Any], issues: List[str]) -> None:
    hero = _dict(state, "hero")
    if hero is None:
        return
    if not isinstance(hero.get("hole"), list):
        hero["hole"] = []
    if "toAct" in hero:
        hero["toAct"] = _bool(hero["toAct"])


def player_defaults(state: Dict[str, Any], issues: List[str]) -> None:
    players = state.get("players")
    if not isinstance(players, list):
        return
    for p in players:
        if not isinstance(p, dict):
            continue
        p.setdefault("position", None)
        p["inHand"] = _bool(p.get("inHand"))


def history_defaults(state: Dict[str, Any], issues: List[str]) -> None:
    if not isinstance(state.get("actionHistory"), list):
        state["actionHistory"] = []


RULES: Tuple[Tuple[str, Callable[[Dict[str, Any], List[str]], None]], ...] = (
    ("street_from_board", street_from_board),
    ("numeric_fields", numeric_fields),
    ("hero_defaults", hero_defaults),
    ("player_defaults", player_defaults),
    ("history_defaults", history_defaults),
)


def apply_corrections(state: Any, issues: Optional[List[str]] = None) -> Any:
    """Apply every rule to ``state`` in place and return it.

    Never raises. Rules that blow up are recorded as ``"<rule>: <error>"`` in
    ``issues`` (when given) and skipped.
    """
    if issues is None:
        issues = []
    if not isinstance(state, dict):
        return state
    for name, rule in RULES:
        try:
            rule(state, issues)
        except Exception as e:
            issues.append(f"{name}: {e}")
    return state
