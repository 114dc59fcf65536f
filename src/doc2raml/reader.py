"""Read annotation blocks from handlers, route definitions and source files."""

import ast
import dataclasses
import inspect
import logging
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from doc2raml.parser.base import FieldGroups, Fields, FieldValue, Text
from doc2raml.parser.tags import KEYWORD_HANDLER, TAG_RE

logger = logging.getLogger(__name__)

COMMENT_LINE_RE = re.compile(r"^\s*(#|//|/\*|\*)")
DECORATOR_RE = re.compile(r"^\s*@[\w.]+\s*(\(.*)?$")
FUNCTION_RE = re.compile(r"^\s*(async\s+def|def|func|function)\s")
MARKER_RE = re.compile(r"^\s*(?:#+|//+|/\*\*?|\*/?)?\s*")


class AnnotationBlock(BaseModel):
    """The comment text attached to one declaration."""

    source: str
    line: int  # line of the declaration
    name: str = ""
    text: str


def to_field_value(value: Any) -> FieldValue | None:
    """Convert a route-definition value to its FieldValue variant.

    ``True`` is a flag tag without fields; ``False`` and ``None`` mean the
    tag is absent.
    """
    if isinstance(value, (Text, Fields, FieldGroups)):
        return value
    if value is None or value is False:
        return None
    if value is True:
        return Fields(values=[])
    if isinstance(value, str):
        return Text(value=value)
    if isinstance(value, (list, tuple)):
        if all(isinstance(v, str) for v in value):
            return Fields(values=list(value))
        if all(isinstance(v, (list, tuple)) and all(isinstance(s, str) for s in v) for v in value):
            return FieldGroups(groups=[list(v) for v in value])
    raise TypeError(f"unsupported tag value {value!r}")


def to_field_values(overrides: Mapping[str, Any]) -> dict[str, FieldValue]:
    values = {}
    for keyword, value in overrides.items():
        converted = to_field_value(value)
        if converted is not None:
            values[keyword] = converted
    return values


def read_handler(handler: Any) -> str:
    """Return the annotation block of a handler: its docstring or its comments."""
    comment = inspect.getdoc(handler) or _strip_comment_markers(inspect.getcomments(handler) or "")
    if not comment:
        logger.warning("no comments for the function: %s", getattr(handler, "__qualname__", handler))
    return comment


def read_route_definition(definition: Any) -> tuple[str, dict[str, Any]]:
    """Split a route definition into its annotation block and tag overrides.

    The definition is a handler, a mapping, a dataclass or a pydantic model.
    Dataclass fields and pydantic fields use their ``raml`` metadata (or
    ``json_schema_extra``) as the tag name, defaulting to the field name.
    """
    if inspect.isroutine(definition):
        return read_handler(definition), {}

    if isinstance(definition, Mapping):
        values = dict(definition)
    elif dataclasses.is_dataclass(definition) and not isinstance(definition, type):
        values = {
            f.metadata.get("raml", f.name): getattr(definition, f.name)
            for f in dataclasses.fields(definition)
        }
    elif isinstance(definition, BaseModel):
        values = {}
        for attr, info in type(definition).model_fields.items():
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            values[extra.get("raml", attr)] = getattr(definition, attr)
    else:
        raise TypeError(f"cannot read a route from {definition!r}")

    handler = values.pop(KEYWORD_HANDLER, None)
    comment = read_handler(handler) if handler is not None else ""
    return comment, values


def extract_blocks(text: str, source: str = "<string>") -> list[AnnotationBlock]:
    """Find the annotation blocks of a source file.

    Comment lines immediately preceding a function declaration (decorators
    may sit in between) form a block. For Python sources, docstrings are read
    too and take precedence over the comments of the same function. Only
    blocks containing at least one tag are returned.
    """
    blocks = {b.line: b for b in _comment_blocks(text, source)}
    if source.endswith(".py"):
        for b in _docstring_blocks(text, source):
            if _has_tag(b.text):
                blocks[b.line] = b
    return [b for _, b in sorted(blocks.items()) if _has_tag(b.text)]


def _comment_blocks(text: str, source: str) -> list[AnnotationBlock]:
    blocks = []
    buffer: list[str] = []
    for number, line in enumerate(text.splitlines(), start=1):
        if COMMENT_LINE_RE.match(line):
            buffer.append(line)
        elif buffer and DECORATOR_RE.match(line):
            continue
        elif FUNCTION_RE.match(line) and buffer:
            blocks.append(AnnotationBlock(source=source, line=number, name=_function_name(line), text="\n".join(buffer)))
            buffer = []
        else:
            # not a comment preceding a function
            buffer = []
    return blocks


def _docstring_blocks(text: str, source: str) -> list[AnnotationBlock]:
    try:
        tree = ast.parse(text, filename=source)
    except SyntaxError as e:
        logger.warning("cannot read docstrings of %s: %s", source, e)
        return []
    blocks = []
    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            doc = ast.get_docstring(node)
            if doc:
                blocks.append(AnnotationBlock(source=source, line=node.lineno, name=node.name, text=doc))
    return blocks


def _function_name(line: str) -> str:
    m = re.search(r"(?:def|func|function)\s+(\w+)", line)
    return m.group(1) if m else ""


def _has_tag(text: str) -> bool:
    return any(TAG_RE.match(MARKER_RE.sub("", line, count=1)) for line in text.splitlines())


def _strip_comment_markers(comments: str) -> str:
    lines = []
    for line in comments.splitlines():
        # keep the indentation after the marker, it continues tags
        lines.append(re.sub(r"^\s*#", "", line, count=1).rstrip())
    return "\n".join(lines).strip("\n")
