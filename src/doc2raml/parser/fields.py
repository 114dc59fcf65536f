"""Keyword-specific parsers for the field groups of a tag.

Parameters and responses share the type token grammar::

    @route    {uuid} id - The identifier of the book
    @query    {int:0|1|2} [level=0] - Detail level
    @body     {Book} The book you want to create
    @response {Book} 201 - The created book

Fields can also be given tab separated (``{string}<TAB>id<TAB>The id``), in
which case they are read positionally.
"""

import logging
import re

from doc2raml.errors import FieldParseError
from doc2raml.parser.base import Example, Parameter, Response
from doc2raml.parser.tags import (
    KEYWORD_BODY,
    KEYWORD_EXAMPLE,
    KEYWORD_METHOD,
    KEYWORD_RESOURCE,
    KEYWORD_RESPONSE,
    KEYWORD_ROUTE,
)
from doc2raml.schema.registry import TypeDescriptor, TypeKind

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS")

RESOURCE_RE = re.compile(rf"^(?P<method>{'|'.join(ALLOWED_METHODS)})\s+(?P<resource>\S.*)$", re.IGNORECASE)
LINE_BREAK_RE = re.compile(r"\s*\\$")
NAME_RE = re.compile(r"^(?P<optional>\[)?(?P<name>[\w.\-]+)(?:=(?P<default>[^\]]*))?(?(optional)\])$")
PAREN_ENUM_RE = re.compile(r"^(?P<type>[^()]+)\((?P<values>.+)\)$")
CODE_RE = re.compile(r"^\d{3}$")
RESPONSE_REST_RE = re.compile(r"^(?:(?P<code>\d{3})(?:\s+|$))?(?:-\s*)?(?P<description>.*)$", re.DOTALL)

EXAMPLE_RESPONSE_RE = re.compile(r"^(?P<code>\d+):(?:\s+(?P<rest>.*))?$")
EXAMPLE_CLOSING_RE = re.compile(r"^[}\]],?$")
INDENT = "  "


def parse_method(value: str) -> str:
    method = value.strip().upper()
    if method not in ALLOWED_METHODS:
        raise FieldParseError(KEYWORD_METHOD, f"unknown method `{value}`")
    return method


def parse_resource(value: str) -> tuple[str, str | None]:
    """Parse ``/books/{id}`` or ``GET /books/{id}``.

    Returns the resource and the method it eventually carries.
    """
    value = value.strip()
    if not value:
        raise FieldParseError(KEYWORD_RESOURCE, "empty resource")
    method = None
    m = RESOURCE_RE.match(value)
    if m:
        method = m.group("method").upper()
        value = m.group("resource").strip()
    if not value.startswith("/"):
        raise FieldParseError(KEYWORD_RESOURCE, f"resources should be relative and start by a /: `{value}`")
    return value, method


def parse_description(lines: list[str]) -> tuple[str, str | None]:
    """Join description lines into text.

    A first line separated from the rest by a blank line is the title. Blank
    lines separate paragraphs and a trailing backslash forces a line break.
    """
    lines = [line.strip() for line in lines]
    title = None
    if len(lines) >= 3 and lines[0] and not lines[1] and lines[2]:
        title = lines[0]
        lines = lines[2:]

    parts = []
    for line in lines:
        if not line:
            parts.append("\n\n")
        else:
            parts.append(LINE_BREAK_RE.sub("\n", line))
    text = " ".join(parts)
    text = re.sub(r"[ \t]*\n[ \t]*", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip(), title


def parse_parameter(fields: list[str], context, is_body: bool = False, keyword: str | None = None) -> Parameter:
    """Parse the fields of a ``@route``, ``@query`` or ``@body`` tag."""
    keyword = keyword or (KEYWORD_BODY if is_body else KEYWORD_ROUTE)
    type_token, rest, fields = _type_and_rest(fields, keyword)

    if rest is None:
        name_token, description = _positional_name(fields, is_body, keyword)
    else:
        name_token, description = _inline_name(rest, is_body)
        if name_token is None and not is_body:
            raise FieldParseError(keyword, "missing parameter name")

    expression, enum_values, combinable = _split_enum(type_token)
    descriptor = context.resolve(expression)

    required = True
    default = None
    if name_token is None:
        name = descriptor.name
    else:
        m = NAME_RE.match(name_token)
        if not m:
            raise FieldParseError(keyword, f"invalid parameter name `{name_token}`")
        name = m.group("name")
        required = not m.group("optional")
        default = m.group("default")

    p = Parameter(name=name, type=descriptor, description=description, required=required, default=default)

    if enum_values:
        p.enum = _convert_enum(enum_values, descriptor, context, keyword)
        if combinable and len(enum_values) >= 2:
            # combinable values cannot be expressed with a RAML enum, so we
            # only document the first two values and their combination
            first, second = enum_values[:2]
            p.examples = [first, second, f"{first},{second}"]
    return p


def parse_response(fields: list[str], context) -> Response:
    """Parse the fields of a ``@response`` tag."""
    type_token, rest, fields = _type_and_rest(fields, KEYWORD_RESPONSE)

    code = "200"
    description = ""
    if rest is not None:
        m = RESPONSE_REST_RE.match(rest)
        code = m.group("code") or code
        description = m.group("description").strip()
    elif len(fields) == 2:
        if CODE_RE.match(fields[1]):
            code = fields[1]
        else:
            description = _strip_dash(fields[1])
    elif len(fields) == 3:
        if not CODE_RE.match(fields[1]):
            raise FieldParseError(KEYWORD_RESPONSE, f"invalid http code `{fields[1]}`")
        code = fields[1]
        description = _strip_dash(fields[2])
    elif len(fields) > 3:
        raise FieldParseError(KEYWORD_RESPONSE, "wrong definition for the response")

    return Response(type=context.resolve(type_token), description=description, code=int(code))


def parse_example(lines: list[str]) -> Example:
    """Parse the lines of an ``@example`` tag.

    The lines walk through four states: a free description, an eventual
    request uri, an eventual request body and the response introduced by
    ``<code>: ``. Bodies are re-indented, never validated.
    """
    if not lines:
        raise FieldParseError(KEYWORD_EXAMPLE, "missing definition for the example")

    e = Example()
    state = "description"
    depth = 0

    for line in (raw.strip() for raw in lines):
        if not line:
            continue

        m = EXAMPLE_RESPONSE_RE.match(line)
        if m:
            code = int(m.group("code"))
            if code <= 0:
                raise FieldParseError(KEYWORD_EXAMPLE, f"invalid http code {m.group('code')} in response")
            state = "response"
            e.code = code
            e.response = m.group("rest") or ""
            depth = _opening_depth(e.response)
            continue
        if state in ("description", "uri"):
            if line.startswith("/"):
                state = "uri"
                e.uri = line
                continue
            if line.startswith(("{", "[")):
                state = "body"
                e.body = line
                depth = _opening_depth(line)
                continue

        if state == "description":
            e.description = f"{e.description} {line}".strip()
        elif state == "body":
            e.body, depth = _append_json_line(e.body, line, depth)
        elif state == "response":
            e.response, depth = _append_json_line(e.response, line, depth)
        else:
            logger.debug("ignoring example line after the uri: %s", line)
    return e


def _append_json_line(text: str, line: str, depth: int) -> tuple[str, int]:
    if EXAMPLE_CLOSING_RE.match(line):
        depth = max(depth - 1, 0)
    indented = INDENT * depth + line
    text = f"{text}\n{indented}" if text else indented
    return text, depth + _opening_depth(line)


def _opening_depth(line: str) -> int:
    return 1 if line.endswith(("{", "[")) else 0


def _type_and_rest(fields: list[str], keyword: str) -> tuple[str, str | None, list[str]]:
    """Extract the type token of the first field.

    ``rest`` is the text following the type token in an inline definition,
    or None when the returned fields are positional.
    """
    if not fields or not fields[0].strip():
        raise FieldParseError(keyword, "missing definition")
    first = fields[0].strip()
    if not first.startswith("{"):
        if len(fields) == 1:
            raise FieldParseError(keyword, f"missing {{type}} in `{first}`")
        return first, None, list(fields)

    end = _closing_brace(first)
    if end is None:
        raise FieldParseError(keyword, f"unbalanced braces in `{first}`")
    type_token = first[1:end].strip()
    remainder = first[end + 1:].strip()
    if len(fields) == 1:
        return type_token, remainder, list(fields)
    if remainder:
        # "{type} name<TAB>description": put the name back in position
        return type_token, None, [first[:end + 1], remainder, *fields[1:]]
    return type_token, None, list(fields)


def _closing_brace(text: str) -> int | None:
    depth = 0
    for i, ch in enumerate(text):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def _positional_name(fields: list[str], is_body: bool, keyword: str) -> tuple[str | None, str]:
    if len(fields) > 3:
        raise FieldParseError(keyword, "wrong definition, expected {type}, name and description")
    if is_body:
        if len(fields) == 3:
            return fields[1], _strip_dash(fields[2])
        return None, _strip_dash(fields[1]) if len(fields) == 2 else ""
    if len(fields) == 1:
        raise FieldParseError(keyword, "missing parameter name")
    return fields[1], _strip_dash(fields[2]) if len(fields) == 3 else ""


def _inline_name(rest: str, is_body: bool) -> tuple[str | None, str]:
    rest = rest.strip()
    if not rest:
        return None, ""
    if rest.startswith("-"):
        return None, _strip_dash(rest)
    parts = rest.split(None, 1)
    first = parts[0]
    remainder = parts[1].strip() if len(parts) > 1 else ""
    if is_body and (not NAME_RE.match(first) or (remainder and not remainder.startswith("-"))):
        return None, rest
    return first, _strip_dash(remainder)


def _strip_dash(text: str) -> str:
    text = text.strip()
    if text.startswith("- ") or text == "-":
        text = text[1:]
    return text.strip()


def _split_enum(type_token: str) -> tuple[str, list[str], bool]:
    """Split ``int:0,1`` or ``int(0|1)`` into the type and its allowed values."""
    m = PAREN_ENUM_RE.match(type_token)
    if m:
        expression, spec = m.group("type"), m.group("values")
    elif ":" in type_token:
        expression, spec = type_token.split(":", 1)
    else:
        return type_token, [], False

    combinable = "|" not in spec and "," in spec
    separator = "," if combinable else "|"
    values = [v.strip() for v in spec.split(separator) if v.strip()]
    return expression.strip(), values, combinable


def _convert_enum(values: list[str], descriptor: TypeDescriptor, context, keyword: str) -> list:
    base = descriptor.name
    if descriptor.kind == TypeKind.SCALAR:
        primitive = context.types.primitive(base)
        if primitive is not None:
            base = primitive.base

    converted = []
    for value in values:
        try:
            converted.append(_convert_value(value, base))
        except ValueError:
            logger.warning("@%s: enum value `%s` is not a valid %s, skipped", keyword, value, base)
    return converted


def _convert_value(value: str, base: str):
    if base == "integer":
        return int(value)
    if base == "number":
        return float(value)
    if base == "boolean":
        lowered = value.lower()
        if lowered not in ("true", "false"):
            raise ValueError(value)
        return lowered == "true"
    return value
