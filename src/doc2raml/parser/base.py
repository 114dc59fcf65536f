"""Unified data models for parsed route annotations.

Tag values (from comments or from route definitions) and the routes built
from them are expressed with these models for downstream processing.
"""

from typing import Any, Union

from pydantic import BaseModel

from doc2raml.schema.registry import TypeDescriptor


class Text(BaseModel):
    """A single string value, e.g. ``resource="GET /books"``."""

    value: str


class Fields(BaseModel):
    """One field group: the fields of a single tag occurrence."""

    values: list[str]


class FieldGroups(BaseModel):
    """Several field groups, e.g. ``routes=[["{uuid}", "id", "..."], ...]``."""

    groups: list[list[str]]


FieldValue = Union[Text, Fields, FieldGroups]


class Parameter(BaseModel):
    """A uri, query or body parameter."""

    name: str
    type: TypeDescriptor
    description: str = ""
    required: bool = True
    enum: list[Any] | None = None
    examples: list[str] = []
    default: str | None = None


class Response(BaseModel):
    type: TypeDescriptor
    description: str = ""
    code: int = 200


class Example(BaseModel):
    description: str = ""
    uri: str = ""
    body: str = ""
    code: int | None = None
    response: str = ""


class TagStub(BaseModel):
    """A trait, security or annotation tag, recorded but not interpreted."""

    name: str
    fields: list[str] = []


class Route(BaseModel):
    """A single route with all its documented metadata."""

    name: str = ""  # title of the description
    method: str = ""  # GET / POST / PUT / DELETE / PATCH / HEAD / OPTIONS
    resource: str = ""  # /books/{id}
    description: str = ""
    uri_parameters: dict[str, Parameter] = {}
    query_parameters: dict[str, Parameter] = {}
    body_parameters: dict[str, Parameter] = {}
    response: Response | None = None
    examples: dict[str, Example] = {}
    traits: dict[str, TagStub] = {}
    securities: dict[str, TagStub] = {}
    annotations: dict[str, TagStub] = {}
    dependent_types: list[str] = []  # committed to the document when the route is accepted

    @property
    def signature(self) -> str:
        return f"{self.method} {self.resource}"
