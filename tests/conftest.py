import copy
import io

import pytest
from PIL import Image

import config

STATE = {
    "table": {
        "game": "No Limit Hold'em",
        "stakes": {"sb": "0.5", "bb": "1"},
        "minRaise": "2",
        "maxBet": None,
        "pot": "12.5",
        "board": ["Qs", "7d", "2c"],
        "street": "river",
    },
    "hero": {
        "seat": "4",
        "position": "CO",
        "stack": "112.4",
        "hole": ["Ah", "Kh"],
        "toAct": True,
        "committedThisStreet": 3,
    },
    "players": [
        {"seat": 1, "position": "SB", "stack": "48.2", "committedThisStreet": 1, "inHand": True},
        {"seat": 2, "stack": 63.0, "committedThisStreet": None, "inHand": "false"},
    ],
    "actionHistory": [],
}

RECOMMENDATION = {
    "street": "flop",
    "options": [
        {"action": "bet", "frequency": 60, "size": "0.33x pot"},
        {"action": "check", "frequency": 40, "size": None},
    ],
    "notes": "Range advantage on Q-high board; SPR ~9.",
}


class FakeResponses:
    """Stands in for ``client.responses``; replays scripted replies in order."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self.script:
            raise AssertionError("unexpected model call")
        reply = self.script.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClient:
    def __init__(self, *script):
        self.responses = FakeResponses(script)

    @property
    def calls(self):
        return self.responses.calls


def text_reply(text):
    return {"output_text": text}


def parsed_reply(obj):
    return {"output_parsed": obj, "output_text": ""}


def parts_reply(*texts):
    return {"output": [{"type": "message", "content": [{"type": "output_text", "text": t} for t in texts]}]}


@pytest.fixture
def state():
    return copy.deepcopy(STATE)


@pytest.fixture
def recommendation():
    return copy.deepcopy(RECOMMENDATION)


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (40, 20), (0, 128, 0)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture(autouse=True)
def pipeline_flags(monkeypatch):
    monkeypatch.setattr(config, "STRICT_EXTRACTION", True)
    monkeypatch.setattr(config, "SELF_CHECK_ENABLED", True)
    monkeypatch.setattr(config, "SELF_CHECK_SEND_IMAGE", False)
