"""Resolve type expressions into normalized type descriptors.

Examples:
    interface{}          => any     any
    string               => scalar  string
    *time.Time           => scalar  datetime
    int16                => scalar  integer
    uuid (primitive)     => scalar  uuid                 [uuid]
    MyObject             => object  MyObject             [MyObject]
    []MyObject           => array   MyObject[]           [MyObject]
    map[string]MyObject  => object  map_string_MyObject  [map_string_MyObject, MyObject]
    Cat | Dog            => object  Cat | Dog            [Cat, Dog]
"""

import logging
import re

from doc2raml.errors import AliasCycleError, InvalidTypeExpressionError, MalformedMapError
from doc2raml.schema.registry import MapType, TypeDescriptor, TypeKind, TypeRegistry

logger = logging.getLogger(__name__)

UNION_SEPARATOR = " | "

ANY_MARKERS = {"any", "Any", "interface{}", "object"}
NIL_MARKERS = {"", "nil", "None", "null"}

SCALARS = {
    "bool": "boolean",
    "boolean": "boolean",
    "int": "integer",
    "int8": "integer",
    "int16": "integer",
    "int32": "integer",
    "int64": "integer",
    "uint": "integer",
    "uint8": "integer",
    "uint16": "integer",
    "uint32": "integer",
    "uint64": "integer",
    "integer": "integer",
    "float": "number",
    "float32": "number",
    "float64": "number",
    "decimal": "number",
    "number": "number",
    "str": "string",
    "string": "string",
    "datetime": "datetime",
    "datetime.datetime": "datetime",
    "time.Time": "datetime",
    "date": "date-only",
    "datetime.date": "date-only",
    "date-only": "date-only",
    "time": "time-only",
    "datetime.time": "time-only",
    "time-only": "time-only",
    "file": "file",
    "bytes": "file",
    "multipart.FileHeader": "file",
}

MAP_PREFIX = "map["
MAP_RE = re.compile(r"^map\[([^\[\]]+)\](.+)$")
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][\w.]*$")


class TypeResolver:
    """Resolves type expressions against a registry.

    The only write performed on the registry is the registration of the map
    types synthesized from ``map[K]V`` expressions.
    """

    def __init__(self, registry: TypeRegistry):
        self.registry = registry

    def resolve(self, expression: str) -> TypeDescriptor:
        return self._resolve(expression.strip(), ())

    def _resolve(self, name: str, aliases_seen: tuple[str, ...]) -> TypeDescriptor:
        if UNION_SEPARATOR in name:
            return self._resolve_union(name, aliases_seen)

        if name in NIL_MARKERS:
            return TypeDescriptor(kind=TypeKind.NIL, name="nil")
        if name in ANY_MARKERS:
            return TypeDescriptor(kind=TypeKind.ANY, name="any")

        # Reserved primitives
        if self.registry.primitive(name) is not None:
            return TypeDescriptor(kind=TypeKind.SCALAR, name=name, dependents=[name])

        # Aliases
        target = self.registry.alias_target(name)
        if target is not None:
            if name in aliases_seen or target.strip() == name:
                raise AliasCycleError(name)
            return self._resolve(target.strip(), aliases_seen + (name,))

        # Pointer
        if len(name) > 1 and name.startswith("*"):
            return self._resolve(name[1:].strip(), aliases_seen)

        # Array, as a Go-like prefix or as the canonical suffix
        if len(name) > 2 and (name.startswith("[]") or name.endswith("[]")):
            inner = name[2:] if name.startswith("[]") else name[:-2]
            item = self._resolve(inner.strip(), aliases_seen)
            return TypeDescriptor(kind=TypeKind.ARRAY, name=item.name + "[]", dependents=item.dependents)

        if name.startswith(MAP_PREFIX):
            return self._resolve_map(name, aliases_seen)

        if name in SCALARS:
            return TypeDescriptor(kind=TypeKind.SCALAR, name=SCALARS[name])

        if IDENTIFIER_RE.match(name):
            return TypeDescriptor(kind=TypeKind.OBJECT, name=name, dependents=[name])

        raise InvalidTypeExpressionError(name)

    def _resolve_union(self, name: str, aliases_seen) -> TypeDescriptor:
        members = [self._resolve(part.strip(), aliases_seen) for part in name.split(UNION_SEPARATOR)]
        kinds = {m.kind for m in members}
        kind = kinds.pop() if len(kinds) == 1 else TypeKind.ANY
        return TypeDescriptor(
            kind=kind,
            name=UNION_SEPARATOR.join(m.name for m in members),
            dependents=_merge(*(m.dependents for m in members)),
        )

    def _resolve_map(self, name: str, aliases_seen) -> TypeDescriptor:
        match = MAP_RE.match(name)
        if not match or not match.group(1).strip() or not match.group(2).strip():
            raise MalformedMapError(name)
        key = self._resolve(match.group(1).strip(), aliases_seen)
        value = self._resolve(match.group(2).strip(), aliases_seen)

        map_name = map_type_name(key.name, value.name)
        # raises TypeConflictError when another map sanitizes to the same name
        if self.registry.add(MapType(name=map_name, key=key, value=value)):
            logger.debug("creation of type map %s", map_name)

        return TypeDescriptor(
            kind=TypeKind.OBJECT,
            name=map_name,
            dependents=_merge([map_name], key.dependents, value.dependents),
        )


def map_type_name(key: str, value: str) -> str:
    return f"map_{_sanitize(key)}_{_sanitize(value)}"


def _sanitize(name: str) -> str:
    name = name.replace("[]", "Array").replace(UNION_SEPARATOR, "Or")
    return re.sub(r"\W", "", name)


def _merge(*lists: list[str]) -> list[str]:
    merged: list[str] = []
    for names in lists:
        for name in names:
            if name not in merged:
                merged.append(name)
    return merged
