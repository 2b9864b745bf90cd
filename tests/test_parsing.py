from types import SimpleNamespace

import pytest

from parsing import ParseError, collect_output_text, parse_json_loose, structured_output


@pytest.mark.parametrize(
    "text",
    [
        '{"a": 1}',
        '```json\n{"a":1}\n```',
        '```\n{"a":1}\n```',
        'noise {"a":1} trailing',
        'Here you go: ```{"a": 1}``` hope that helps',
        '  \n{"a": 1}\n  ',
    ],
)
def test_parse_json_loose_recovers_object(text):
    assert parse_json_loose(text) == {"a": 1}


def test_parse_json_loose_keeps_nested_braces():
    text = 'Result:\n{"table": {"board": []}, "hero": {"hole": ["Ah", "Kd"]}}\nDone.'
    assert parse_json_loose(text) == {"table": {"board": []}, "hero": {"hole": ["Ah", "Kd"]}}


@pytest.mark.parametrize("text", ["not json at all", "", "   ", None, "[1, 2, 3]", "{broken: }"])
def test_parse_json_loose_failure_carries_raw(text):
    with pytest.raises(ParseError) as exc:
        parse_json_loose(text)
    assert exc.value.raw == text


def test_collect_output_text_prefers_flat_field():
    assert collect_output_text({"output_text": "  hi  "}) == "hi"


def test_collect_output_text_joins_parts():
    envelope = {"output": [{"content": [{"text": "a"}, {"text": "b"}]}]}
    assert collect_output_text(envelope) == "a\nb"


def test_collect_output_text_skips_blank_and_non_text_parts():
    envelope = {
        "output_text": "   ",
        "output": [
            {"type": "reasoning", "content": None},
            {"content": [{"type": "refusal"}, {"text": "  x "}, {"text": ""}]},
            {"content": [{"text": "y"}]},
        ],
    }
    assert collect_output_text(envelope) == "x\ny"


def test_collect_output_text_reads_sdk_objects():
    response = SimpleNamespace(
        output_text="",
        output=[SimpleNamespace(content=[SimpleNamespace(text="{\"a\": 1}")])],
    )
    assert collect_output_text(response) == '{"a": 1}'


@pytest.mark.parametrize("envelope", [{}, None, {"output": []}, {"output": [{"content": []}]}])
def test_collect_output_text_empty(envelope):
    assert collect_output_text(envelope) == ""


def test_structured_output():
    assert structured_output({"output_parsed": {"a": 1}}) == {"a": 1}
    assert structured_output({"output_parsed": None, "output_text": "{}"}) is None
    assert structured_output(SimpleNamespace(output_text="{}")) is None
    assert structured_output(None) is None


@pytest.mark.parametrize(
    "envelope",
    [{"output": 5}, {"output": "text"}, {"output": [{"content": 7}]}, {"output": [{"content": {"text": "x"}}]}],
)
def test_collect_output_text_tolerates_odd_shapes(envelope):
    assert collect_output_text(envelope) == ""
