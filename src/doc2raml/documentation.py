"""Documentation: the routes and types collected for one RAML document.

A route can be added from an annotated handler::

    def get_book(request):
        \"\"\"Get a book

        @resource GET /books/{id}
        @route {uuid} id - The identifier of the book
        @response {Book} - The book that you wanted
        \"\"\"

    doc = Documentation(context, title="Book collection")
    doc.add_handler(get_book)

or from a route definition whose keys are tags::

    doc.add_handler({"resource": "POST /books", "handler": create_book, "auth": True})
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from doc2raml.context import CompilerContext
from doc2raml.errors import RouteViabilityError
from doc2raml.parser.base import Route
from doc2raml.reader import read_route_definition, to_field_values
from doc2raml.route import RouteAssembler, check_uri_parameters, check_viability
from doc2raml.schema.registry import MapType, StructType, TypeDefinition
from doc2raml.tree import ResourceNode, build_tree

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Your API"
DEFAULT_VERSION = "v1"
DEFAULT_URL = "http://localhost/{version}"
DEFAULT_MEDIA_TYPE = "application/json"


class DocumentSettings(BaseModel):
    title: str = DEFAULT_TITLE
    description: str = ""
    version: str = DEFAULT_VERSION
    base_uri: str = DEFAULT_URL
    media_type: str = DEFAULT_MEDIA_TYPE


@dataclass
class Document:
    """The normalized document handed to a renderer."""

    settings: DocumentSettings
    resources: list[ResourceNode] = field(default_factory=list)
    types: dict[str, TypeDefinition] = field(default_factory=dict)
    missing_types: list[str] = field(default_factory=list)


class Documentation:
    """Collects routes and the types they depend on."""

    def __init__(self, context: CompilerContext | None = None, settings: DocumentSettings | None = None, **kwargs):
        self.context = context or CompilerContext()
        self.settings = settings or DocumentSettings(**kwargs)
        self.assembler = RouteAssembler(self.context)
        self.routes: dict[str, Route] = {}
        self.types: dict[str, TypeDefinition] = {}
        self.missing_types: list[str] = []

    def add_handler(self, definition: Any) -> Route:
        """Add a route from a handler function or a route definition."""
        comment, overrides = read_route_definition(definition)
        return self.add_route(comment, overrides, source=_describe(definition))

    def add_route(self, comment: str = "", overrides: Mapping[str, Any] | None = None, source: str = "") -> Route:
        """Add a route from an annotation block and optional tag overrides.

        Raises RouteViabilityError if the route has no method or resource.
        A route with the signature of a previous one replaces it.
        """
        route, errors = self.assembler.assemble(comment, to_field_values(overrides or {}), source)

        try:
            check_viability(route, errors)
        except RouteViabilityError as e:
            logger.warning("unusable route: %s (%s)", e, source or "unnamed route")
            raise

        for problem in check_uri_parameters(route):
            logger.warning("incoherent route %s: %s", route.resource, problem)

        replaced = route.signature in self.routes
        if replaced:
            logger.warning("route %s is defined twice, the last definition wins", route.signature)
        self.routes[route.signature] = route

        if replaced:
            self._collect_types()
        else:
            for name in route.dependent_types:
                self.add_type(name)
        return route

    def _collect_types(self) -> None:
        """Rebuild the collected types from the routes currently held."""
        self.types = {}
        self.missing_types = []
        for route in self.routes.values():
            for name in route.dependent_types:
                self.add_type(name)

    def add_type(self, name: str) -> bool:
        """Collect the definition of ``name`` and, recursively, the types it uses.

        Returns False if the type was already collected or is unknown.
        """
        if name in self.types:
            return False
        definition = self.context.types.get(name)
        if definition is None:
            if name not in self.missing_types:
                logger.warning("type `%s` is used but never defined", name)
                self.missing_types.append(name)
            return False

        self.types[name] = definition
        for dependent in _dependents(definition):
            self.add_type(dependent)
        return True

    def build(self) -> Document:
        """Nest the resources and return the document ready to be rendered."""
        return Document(
            settings=self.settings,
            resources=build_tree(self.routes.values()),
            types=dict(self.types),
            missing_types=list(self.missing_types),
        )


def _dependents(definition: TypeDefinition) -> list[str]:
    if isinstance(definition, MapType):
        return definition.key.dependents + definition.value.dependents
    if isinstance(definition, StructType):
        return [name for f in definition.fields for name in f.type.dependents]
    return []


def _describe(definition: Any) -> str:
    name = getattr(definition, "__qualname__", None)
    if name:
        return f"{definition.__module__}.{name}"
    return type(definition).__name__
