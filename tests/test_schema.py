import json

from schema import STREETS, TABLE_STATE_EXAMPLE, TABLE_STATE_SCHEMA, response_format, schema_outline


def _objects(node):
    if node.get("type") == "object":
        yield node
        for sub in node["properties"].values():
            yield from _objects(sub)
    elif node.get("type") == "array":
        yield from _objects(node["items"])


def test_every_object_is_closed_and_fully_required():
    for node in _objects(TABLE_STATE_SCHEMA):
        assert node["additionalProperties"] is False
        assert sorted(node["required"]) == sorted(node["properties"])


def test_response_format_wraps_schema():
    fmt = response_format()
    assert fmt["type"] == "json_schema"
    assert fmt["name"] == "TableState"
    assert fmt["strict"] is True
    assert fmt["schema"] is TABLE_STATE_SCHEMA


def test_outline_mirrors_schema():
    outline = json.loads(schema_outline())
    assert set(outline) == {"table", "hero", "players", "actionHistory"}
    assert outline["table"]["street"] == "|".join(STREETS)
    assert outline["table"]["pot"] == "number|null"
    assert outline["table"]["board"] == ["string"]
    assert outline["hero"]["seat"] == "integer|null"
    assert outline["players"][0]["inHand"] == "boolean"


def test_example_uses_schema_keys():
    props = TABLE_STATE_SCHEMA["properties"]
    assert set(TABLE_STATE_EXAMPLE) == set(props)
    assert set(TABLE_STATE_EXAMPLE["table"]) == set(props["table"]["properties"])
    assert set(TABLE_STATE_EXAMPLE["hero"]) == set(props["hero"]["properties"])
    for player in TABLE_STATE_EXAMPLE["players"]:
        assert set(player) == set(props["players"]["items"]["properties"])
