"""Derive struct layouts from Python classes.

Dataclasses, pydantic models and plain annotated classes are walked once at
registration time and turned into ``(name, type expression, optional)``
triples that the resolver handles like any annotation type token. A field can
be renamed or retyped through ``raml_name`` / ``raml_type`` keys, given in
the dataclass field metadata or in pydantic's ``json_schema_extra``;
``raml_name="-"`` hides the field.
"""

import dataclasses
import datetime
import decimal
import enum
import logging
import types
import typing
import uuid
from collections.abc import Iterable, Mapping
from typing import Any, ForwardRef, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from doc2raml.schema.registry import FieldSpec, StructLayout, TypeRegistry

logger = logging.getLogger(__name__)

HIDDEN = "-"

_CLASS_EXPRESSIONS = {
    bool: "bool",
    int: "int",
    float: "float",
    str: "string",
    bytes: "file",
    decimal.Decimal: "decimal",
    datetime.datetime: "datetime",
    datetime.date: "date",
    datetime.time: "time",
    uuid.UUID: "string",
    type(None): "nil",
}

_SEQUENCE_ORIGINS = {list, set, frozenset, tuple}
_MAPPING_ORIGINS = {dict}


def describe(sample: Any, registry: TypeRegistry | None = None) -> StructLayout:
    """Build the layout of ``sample``: a class, an instance, or a field mapping.

    A mapping gives field names to type expressions directly; a trailing
    ``?`` on a name marks the field optional.
    """
    if isinstance(sample, Mapping):
        return _describe_mapping(sample)

    cls = sample if isinstance(sample, type) else type(sample)
    if issubclass(cls, BaseModel):
        return _describe_model(cls, registry)
    if dataclasses.is_dataclass(cls):
        return _describe_dataclass(cls, registry)
    if getattr(cls, "__annotations__", None):
        return _describe_annotated(cls, registry)
    raise TypeError(f"cannot introspect {cls!r}: no annotated fields")


def expression_for(annotation: Any, registry: TypeRegistry | None = None) -> str:
    """Turn a Python annotation into a type expression string."""
    if annotation is Any or annotation is object:
        return "any"
    if isinstance(annotation, str):
        return annotation
    if isinstance(annotation, ForwardRef):
        return annotation.__forward_arg__

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is typing.Annotated:
        return expression_for(args[0], registry)
    if origin is Union or origin is types.UnionType:
        members = [a for a in args if a is not type(None)]
        if len(members) == 1:
            return "*" + expression_for(members[0], registry)
        return " | ".join(expression_for(m, registry) for m in members)
    if origin is typing.Literal:
        return expression_for(type(args[0]), registry) if args else "any"
    if origin in _SEQUENCE_ORIGINS or _is_abstract(origin, Iterable, Mapping):
        item = args[0] if args else Any
        return "[]" + expression_for(item, registry)
    if origin in _MAPPING_ORIGINS or _is_abstract(origin, Mapping):
        key, value = args if len(args) == 2 else (str, Any)
        return f"map[{expression_for(key, registry)}]{expression_for(value, registry)}"

    if isinstance(annotation, type):
        return _class_expression(annotation, registry)
    logger.warning("unsupported annotation %r, using any", annotation)
    return "any"


def _is_abstract(origin, base, exclude=None) -> bool:
    if not isinstance(origin, type) or origin is str:
        return False
    if exclude is not None and issubclass(origin, exclude):
        return False
    return issubclass(origin, base)


def _class_expression(cls: type, registry: TypeRegistry | None) -> str:
    if registry is not None:
        name = registry.name_for_class(cls)
        if name:
            return name
    if cls in _CLASS_EXPRESSIONS:
        return _CLASS_EXPRESSIONS[cls]
    if issubclass(cls, enum.Enum):
        return "int" if issubclass(cls, int) else "string"
    if cls in (list, tuple, set, frozenset):
        return "[]any"
    if cls is dict:
        return "map[string]any"
    return cls.__name__


def _describe_mapping(sample: Mapping) -> StructLayout:
    fields = []
    for name, expression in sample.items():
        optional = name.endswith("?")
        fields.append(FieldSpec(name=name.rstrip("?"), expression=str(expression), optional=optional))
    return StructLayout(source="", fields=fields)


def _describe_model(cls: type[BaseModel], registry) -> StructLayout:
    fields = []
    for attr, info in cls.model_fields.items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        name = extra.get("raml_name") or info.serialization_alias or info.alias or attr
        if info.exclude or name == HIDDEN:
            continue
        expression = extra.get("raml_type") or expression_for(info.annotation, registry)
        fields.append(FieldSpec(name=name, expression=expression, optional=not info.is_required()))
    return StructLayout(source=_qualified(cls), fields=fields)


def _describe_dataclass(cls: type, registry) -> StructLayout:
    hints = _hints(cls)
    fields = []
    for f in dataclasses.fields(cls):
        name = f.metadata.get("raml_name", f.name)
        if name == HIDDEN or f.name.startswith("_"):
            continue
        expression = f.metadata.get("raml_type") or expression_for(hints.get(f.name, f.type), registry)
        optional = f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
        fields.append(FieldSpec(name=name, expression=expression, optional=optional))
    return StructLayout(source=_qualified(cls), fields=fields)


def _describe_annotated(cls: type, registry) -> StructLayout:
    hints = _hints(cls)
    fields = []
    for attr, annotation in hints.items():
        if attr.startswith("_") or get_origin(annotation) is typing.ClassVar:
            continue
        fields.append(FieldSpec(
            name=attr,
            expression=expression_for(annotation, registry),
            optional=hasattr(cls, attr),
        ))
    return StructLayout(source=_qualified(cls), fields=fields)


def _hints(cls: type) -> dict[str, Any]:
    try:
        return get_type_hints(cls)
    except NameError as e:
        # unresolved forward references stay as plain strings
        logger.debug("falling back to raw annotations for %s: %s", cls.__name__, e)
        merged = {}
        for klass in reversed(cls.__mro__):
            merged.update(getattr(klass, "__annotations__", {}))
        return merged


def _qualified(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"
