import pytest

from doc2raml.context import CompilerContext
from doc2raml.errors import FieldParseError, MalformedMapError
from doc2raml.parser.fields import (
    parse_description,
    parse_example,
    parse_method,
    parse_parameter,
    parse_resource,
    parse_response,
)
from doc2raml.schema.registry import TypeKind


@pytest.fixture
def context():
    c = CompilerContext()
    with c.configure():
        c.define_primitive("uuid", "string")
        c.define_primitive("level", "int")
    return c


class TestMethodAndResource:
    def test_method_is_uppercased(self):
        assert parse_method("get") == "GET"

    def test_unknown_method(self):
        with pytest.raises(FieldParseError):
            parse_method("FETCH")

    def test_resource(self):
        assert parse_resource("/books/{id}") == ("/books/{id}", None)

    def test_resource_with_method(self):
        assert parse_resource("delete /books/{id}") == ("/books/{id}", "DELETE")

    def test_relative_resource_is_rejected(self):
        with pytest.raises(FieldParseError):
            parse_resource("books")


class TestDescription:
    def test_title_is_extracted(self):
        assert parse_description(["Get a book", "", "Fetch one book."]) == ("Fetch one book.", "Get a book")

    def test_lines_are_joined(self):
        assert parse_description(["One", "two", "", "Three"]) == ("One two\n\nThree", None)

    def test_backslash_breaks_the_line(self):
        text, _ = parse_description(["First line\\", "second"])
        assert text == "First line\nsecond"

    def test_empty(self):
        assert parse_description([]) == ("", None)


class TestParameter:
    def test_inline_definition(self, context):
        p = parse_parameter(["{uuid} id - The identifier of the book"], context)
        assert p.name == "id"
        assert p.type.name == "uuid"
        assert p.description == "The identifier of the book"
        assert p.required is True

    def test_tab_separated_definition(self, context):
        p = parse_parameter(["{string}", "id", "The id"], context)
        assert (p.name, p.type.name, p.description) == ("id", "string", "The id")

    def test_optional_with_default(self, context):
        p = parse_parameter(["{int} [page=1] - Page number"], context, keyword="query")
        assert p.name == "page"
        assert p.required is False
        assert p.default == "1"

    def test_optional_without_default(self, context):
        p = parse_parameter(["{string} [q]"], context, keyword="query")
        assert (p.name, p.required, p.default) == ("q", False, None)

    def test_combinable_enum(self, context):
        p = parse_parameter(["{int:0,1} flags - Flags"], context, keyword="query")
        assert p.enum == [0, 1]
        assert p.examples == ["0", "1", "0,1"]

    def test_exclusive_enum(self, context):
        p = parse_parameter(["{int:0|1|2} level"], context, keyword="query")
        assert p.enum == [0, 1, 2]
        assert p.examples == []

    def test_parenthesized_enum(self, context):
        p = parse_parameter(["{string(asc|desc)} order"], context, keyword="query")
        assert p.type.name == "string"
        assert p.enum == ["asc", "desc"]

    def test_enum_on_primitive_uses_its_base(self, context):
        p = parse_parameter(["{level:1|2} depth"], context, keyword="query")
        assert p.type.name == "level"
        assert p.enum == [1, 2]

    def test_boolean_enum(self, context):
        p = parse_parameter(["{bool:true|false} full"], context, keyword="query")
        assert p.enum == [True, False]

    def test_invalid_enum_values_are_dropped(self, context):
        p = parse_parameter(["{int:1|x} level"], context, keyword="query")
        assert p.enum == [1]

    def test_body_takes_the_type_name(self, context):
        p = parse_parameter(["{Book} The book you want to create"], context, is_body=True)
        assert p.name == "Book"
        assert p.description == "The book you want to create"
        assert p.type.kind == TypeKind.OBJECT

    def test_named_body(self, context):
        p = parse_parameter(["{Book} book - The book"], context, is_body=True)
        assert (p.name, p.description) == ("book", "The book")

    def test_missing_name(self, context):
        with pytest.raises(FieldParseError):
            parse_parameter(["{string}"], context, keyword="route")

    def test_missing_type(self, context):
        with pytest.raises(FieldParseError):
            parse_parameter(["id - The id"], context)

    def test_unbalanced_braces(self, context):
        with pytest.raises(FieldParseError):
            parse_parameter(["{string id"], context)

    def test_too_many_fields(self, context):
        with pytest.raises(FieldParseError):
            parse_parameter(["{string}", "id", "The id", "extra"], context)

    def test_resolution_errors_propagate(self, context):
        with pytest.raises(MalformedMapError):
            parse_parameter(["{map[string} id"], context)


class TestResponse:
    def test_type_only(self, context):
        r = parse_response(["{Book}"], context)
        assert (r.type.name, r.code, r.description) == ("Book", 200, "")

    def test_description(self, context):
        r = parse_response(["{Book} - The book that you wanted"], context)
        assert r.description == "The book that you wanted"

    def test_code_and_description(self, context):
        r = parse_response(["{Book} 201 - The created book"], context)
        assert (r.code, r.description) == (201, "The created book")

    def test_tab_separated(self, context):
        r = parse_response(["{[]Book}", "206", "Partial list"], context)
        assert (r.type.name, r.code, r.description) == ("Book[]", 206, "Partial list")

    def test_invalid_code(self, context):
        with pytest.raises(FieldParseError):
            parse_response(["{Book}", "ok", "The book"], context)


class TestExample:
    def test_uri_and_response(self):
        e = parse_example(["Get the first book", "/books/1", "200: {", '"id": 1', "}"])
        assert e.description == "Get the first book"
        assert e.uri == "/books/1"
        assert e.code == 200
        assert e.response == '{\n  "id": 1\n}'
        assert e.body == ""

    def test_request_body(self):
        e = parse_example(["Create a book", "{", '"title": "Dune"', "}", '201: {"id": 2}'])
        assert e.body == '{\n  "title": "Dune"\n}'
        assert e.code == 201
        assert e.response == '{"id": 2}'

    def test_nested_indentation(self):
        e = parse_example(["200: {", '"author": {', '"name": "Frank"', "},", '"title": "Dune"', "}"])
        assert e.response.splitlines() == [
            "{",
            '  "author": {',
            '    "name": "Frank"',
            "  },",
            '  "title": "Dune"',
            "}",
        ]

    def test_description_only(self):
        e = parse_example(["Nothing", "special"])
        assert e.description == "Nothing special"
        assert e.code is None

    def test_empty(self):
        with pytest.raises(FieldParseError):
            parse_example([])
