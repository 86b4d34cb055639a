"""Tests for converting parameters and request bodies to tool arguments."""

from openapi_to_mcpserver.arguments import build_args, convert_parameters, convert_request_body


def _json_body(schema, content_type="application/json"):
    return {"content": {content_type: {"schema": schema}}}


def test_path_parameter():
    """Test that a path parameter becomes a required path argument."""
    args = convert_parameters(
        [
            {
                "name": "petId",
                "in": "path",
                "required": True,
                "description": "ID of pet",
                "schema": {"type": "string"},
            }
        ]
    )

    assert len(args) == 1
    arg = args[0]
    assert arg.name == "petId"
    assert arg.position == "path"
    assert arg.required is True
    assert arg.type == "string"
    assert arg.description == "ID of pet"


def test_parameter_positions_are_kept_verbatim():
    parameters = [
        {"name": location + "_param", "in": location, "schema": {"type": "string"}}
        for location in ("path", "query", "header", "cookie")
    ]

    args = convert_parameters(parameters)

    assert [arg.position for arg in args] == ["path", "query", "header", "cookie"]
    assert all(arg.required is False for arg in args)


def test_parameter_enum_and_array_items():
    args = convert_parameters(
        [
            {
                "name": "units",
                "in": "query",
                "schema": {"type": "string", "enum": ["metric", "imperial"]},
            },
            {
                "name": "ids",
                "in": "query",
                "schema": {"type": "array", "items": {"type": "integer"}},
            },
        ]
    )

    assert args[0].enum == ["metric", "imperial"]
    assert args[1].type == "array"
    assert args[1].items == {"type": "integer"}


def test_object_parameter_is_described_one_level_deep():
    args = convert_parameters(
        [
            {
                "name": "filter",
                "in": "query",
                "schema": {
                    "type": "object",
                    "properties": {
                        "range": {
                            "type": "object",
                            "description": "Range",
                            "properties": {"from": {"type": "integer"}},
                        },
                        "owner": {"type": "string"},
                        "sort": {"type": "string", "enum": ["asc", "desc"], "default": "asc"},
                    },
                },
            }
        ]
    )

    # Only type and description are kept for each property
    assert args[0].properties == {
        "owner": {"type": "string"},
        "sort": {"type": "string"},
        "range": {"type": "object", "description": "Range"},
    }


def test_parameter_without_schema():
    args = convert_parameters([{"name": "trace", "in": "header"}])

    assert args[0].type == ""
    assert args[0].position == "header"


def test_unresolved_parameters_are_skipped():
    args = convert_parameters([{"$$circular_ref": "#/components/parameters/P"}, {"in": "query"}])

    assert args == []


def test_request_body_properties():
    """Test that each top-level body property becomes a body argument."""
    body = _json_body(
        {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": {"type": "string", "description": "The user's name"},
                "age": {"type": "integer", "title": "Age in years"},
                "role": {"type": "string", "enum": ["admin", "user"], "default": "user"},
                "active": {"type": "boolean", "default": False},
            },
        }
    )

    args = {arg.name: arg for arg in convert_request_body(body)}

    assert set(args) == {"name", "age", "role", "active"}
    assert all(arg.position == "body" for arg in args.values())
    assert args["name"].required is True
    assert args["age"].required is False
    assert args["age"].description == "Age in years"
    assert args["role"].enum == ["admin", "user"]
    assert args["role"].default == "user"
    assert args["active"].default is False


def test_request_body_nested_object_and_array():
    body = _json_body(
        {
            "type": "object",
            "properties": {
                "address": {
                    "type": "object",
                    "properties": {
                        "geo": {
                            "type": "object",
                            "properties": {"lat": {"type": "number"}},
                        },
                        "city": {"type": "string", "description": "City"},
                    },
                },
                "tags": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "description": "A tag",
                        "properties": {"label": {"type": "string"}},
                    },
                },
            },
        }
    )

    args = {arg.name: arg for arg in convert_request_body(body)}

    assert args["address"].properties == {
        "city": {"type": "string", "description": "City"},
        "geo": {"type": "object", "properties": {"lat": {"type": "number"}}},
    }
    assert args["tags"].items == {
        "type": "object",
        "description": "A tag",
        "properties": {"label": {"type": "string"}},
    }


def test_request_body_single_all_of_property():
    """Test that an untyped single-member allOf property becomes an object."""
    body = _json_body(
        {
            "type": "object",
            "properties": {
                "point": {
                    "type": "",
                    "allOf": [
                        {
                            "type": "object",
                            "properties": {"x": {"type": "string"}, "y": {"type": "integer"}},
                        }
                    ],
                }
            },
        }
    )

    (arg,) = convert_request_body(body)

    assert arg.type == "object"
    assert arg.properties == {"x": {"type": "string"}, "y": {"type": "integer"}}


def test_request_body_multi_member_all_of_property_stays_untyped():
    body = _json_body(
        {
            "type": "object",
            "properties": {
                "point": {"allOf": [{"type": "object"}, {"type": "object"}]},
            },
        }
    )

    (arg,) = convert_request_body(body)

    assert arg.type == ""
    assert arg.properties == {}


def test_form_body_is_converted():
    body = _json_body(
        {"type": "object", "properties": {"field": {"type": "string"}}},
        content_type="application/x-www-form-urlencoded",
    )

    assert [arg.name for arg in convert_request_body(body)] == ["field"]


def test_unsupported_or_non_object_bodies_produce_no_args():
    assert convert_request_body(_json_body({"type": "string"}, "text/plain")) == []
    assert convert_request_body(_json_body({"type": "array", "items": {"type": "string"}})) == []
    assert convert_request_body(_json_body({"type": "object"})) == []
    assert convert_request_body({"content": {"application/json": {}}}) == []
    assert convert_request_body(None) == []


def test_empty_operation_has_no_args():
    assert build_args(None, None) == []
    assert build_args([], {}) == []


def test_build_args_sorted_without_deduplication():
    """Test name ordering and that duplicate names are all kept, parameters first."""
    parameters = [
        {"name": "zone", "in": "query", "schema": {"type": "string"}},
        {"name": "name", "in": "query", "schema": {"type": "string"}},
    ]
    body = _json_body(
        {
            "type": "object",
            "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
        }
    )

    args = build_args(parameters, body)

    assert [(arg.name, arg.position) for arg in args] == [
        ("age", "body"),
        ("name", "query"),
        ("name", "body"),
        ("zone", "query"),
    ]
