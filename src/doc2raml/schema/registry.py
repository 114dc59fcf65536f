"""Type descriptors, type definitions and the registry that holds them.

A type expression such as ``[]Book`` resolves to a :class:`TypeDescriptor`
(kind ``array``, name ``Book[]``) whose dependents name the definitions the
document must declare separately. Those definitions live in a
:class:`TypeRegistry` owned by the compiler context.
"""

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field

from doc2raml.errors import TypeConflictError


class TypeKind(str, Enum):
    SCALAR = "scalar"
    OBJECT = "object"
    ARRAY = "array"
    MAP = "map"
    ANY = "any"
    NIL = "nil"


class TypeDescriptor(BaseModel):
    """Resolved form of a type expression."""

    kind: TypeKind
    name: str
    dependents: list[str] = []


class PrimitiveType(BaseModel):
    """A named RAML built-in type narrowed with facets, e.g. ``uuid``."""

    kind: Literal["primitive"] = "primitive"
    name: str
    base: str  # string / number / integer / boolean / date-only / datetime / file
    description: str = ""
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None


class MapType(BaseModel):
    """A key -> value object, synthesized from ``map[K]V`` expressions."""

    kind: Literal["map"] = "map"
    name: str
    key: TypeDescriptor
    value: TypeDescriptor


class StructField(BaseModel):
    name: str
    type: TypeDescriptor
    optional: bool = False


class StructType(BaseModel):
    """An object type derived from the field layout of a class."""

    kind: Literal["struct"] = "struct"
    name: str
    source: str = ""  # qualified name of the introspected class, if any
    fields: list[StructField] = []


TypeDefinition = Union[PrimitiveType, MapType, StructType]


class TypeRegistry:
    """Named type definitions plus aliases pointing at type expressions."""

    def __init__(self):
        self._definitions: dict[str, TypeDefinition] = {}
        self._aliases: dict[str, str] = {}
        self._classes: dict[type, str] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._definitions or name in self._aliases

    def __len__(self) -> int:
        return len(self._definitions)

    def get(self, name: str) -> TypeDefinition | None:
        return self._definitions.get(name)

    def definitions(self) -> dict[str, TypeDefinition]:
        return dict(self._definitions)

    def primitive(self, name: str) -> PrimitiveType | None:
        definition = self._definitions.get(name)
        if isinstance(definition, PrimitiveType):
            return definition
        return None

    def alias_target(self, name: str) -> str | None:
        return self._aliases.get(name)

    def aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    def add(self, definition: TypeDefinition) -> bool:
        """Register a definition. Returns False if it was already there."""
        name = definition.name
        if name in self._aliases:
            raise TypeConflictError(name)
        existing = self._definitions.get(name)
        if existing is not None:
            if existing != definition:
                raise TypeConflictError(name)
            return False
        self._definitions[name] = definition
        return True

    def add_alias(self, alias: str, target: str) -> bool:
        if alias in self._definitions:
            raise TypeConflictError(alias)
        existing = self._aliases.get(alias)
        if existing is not None:
            if existing != target:
                raise TypeConflictError(alias)
            return False
        self._aliases[alias] = target
        return True

    def bind_class(self, cls: type, name: str) -> None:
        self._classes[cls] = name

    def name_for_class(self, cls: type) -> str | None:
        return self._classes.get(cls)


class FieldSpec(BaseModel):
    """One field found by introspection, before its type is resolved."""

    name: str
    expression: str
    optional: bool = False


class StructLayout(BaseModel):
    source: str = ""
    fields: list[FieldSpec] = Field(default_factory=list)
