"""Route assembly: apply parsed tags to a Route and check it can be documented."""

import logging
import re
from collections.abc import Mapping

from doc2raml.context import CompilerContext, KeywordCategory
from doc2raml.errors import (
    FieldParseError,
    RouteViabilityError,
    TagError,
    TypeConflictError,
    TypeResolutionError,
    UnknownTagError,
)
from doc2raml.parser.base import Example, FieldGroups, Fields, FieldValue, Route, TagStub, Text
from doc2raml.parser.fields import (
    parse_description,
    parse_example,
    parse_method,
    parse_parameter,
    parse_resource,
    parse_response,
)
from doc2raml.parser.tags import (
    KEYWORD_BODY,
    KEYWORD_DESCRIPTION,
    KEYWORD_EXAMPLE,
    KEYWORD_HANDLER,
    KEYWORD_METHOD,
    KEYWORD_QUERY,
    KEYWORD_RESOURCE,
    KEYWORD_RESPONSE,
    KEYWORD_ROUTE,
    PLURAL_KEYWORDS,
    parse_comment,
)
from doc2raml.schema.registry import TypeDescriptor

logger = logging.getLogger(__name__)

URI_VARIABLE_RE = re.compile(r"\{([^{}]+)\}")


class RouteAssembler:
    """Builds routes from annotation blocks and route-definition overrides."""

    def __init__(self, context: CompilerContext):
        self.context = context

    def assemble(
        self,
        comment: str = "",
        overrides: Mapping[str, FieldValue] | None = None,
        source: str = "",
    ) -> tuple[Route, list[TagError]]:
        """Apply the overrides, then every tag of the comment, to a new route.

        Tags that fail are logged and returned; they do not stop the others.
        """
        route = Route()
        errors: list[TagError] = []

        for keyword, value in (overrides or {}).items():
            self._apply(route, keyword, value, errors, source)

        for keyword, groups in parse_comment(comment).items():
            for fields in groups:
                self._apply(route, keyword, Fields(values=fields), errors, source)

        return route, errors

    def _apply(self, route: Route, keyword: str, value: FieldValue, errors: list, source: str) -> None:
        try:
            self.add_tag(route, keyword, value)
        except TagError as e:
            logger.warning("%s (%s)", e, source or route.signature.strip() or "unnamed route")
            errors.append(e)

    def add_tag(self, route: Route, keyword: str, value: FieldValue) -> None:
        """Apply one tag to ``route``. Raises a TagError if it can't be used."""
        if keyword in PLURAL_KEYWORDS:
            for group in _groups(value):
                self.add_tag(route, PLURAL_KEYWORDS[keyword], Fields(values=group))
            return

        try:
            self._dispatch(route, keyword, value)
        except (TypeResolutionError, TypeConflictError) as e:
            raise TagError(keyword, str(e)) from e

    def _dispatch(self, route: Route, keyword: str, value: FieldValue) -> None:
        if keyword == KEYWORD_HANDLER:
            return

        if keyword == KEYWORD_METHOD:
            route.method = parse_method(_text(value, keyword))

        elif keyword == KEYWORD_RESOURCE:
            route.resource, method = parse_resource(_text(value, keyword))
            if method:
                route.method = method

        elif keyword == KEYWORD_DESCRIPTION:
            description, title = parse_description(_lines(value, keyword))
            if title:
                route.name = title
            if description:
                route.description = description

        elif keyword in (KEYWORD_ROUTE, KEYWORD_QUERY, KEYWORD_BODY):
            target = {
                KEYWORD_ROUTE: route.uri_parameters,
                KEYWORD_QUERY: route.query_parameters,
                KEYWORD_BODY: route.body_parameters,
            }[keyword]
            for group in _groups(value):
                p = parse_parameter(group, self.context, is_body=keyword == KEYWORD_BODY, keyword=keyword)
                target[p.name] = p
                _collect_types(route, p.type)

        elif keyword == KEYWORD_RESPONSE:
            response = parse_response(_lines(value, keyword), self.context)
            route.response = response
            _collect_types(route, response.type)

        elif keyword == KEYWORD_EXAMPLE:
            for group in _groups(value):
                example: Example = parse_example(group)
                route.examples[f"Example{len(route.examples) + 1}"] = example

        else:
            self._add_registered_tag(route, keyword, value)

    def _add_registered_tag(self, route: Route, keyword: str, value: FieldValue) -> None:
        category = self.context.keyword_category(keyword)
        if category is None:
            raise UnknownTagError(keyword)
        stub = TagStub(name=keyword, fields=[f for group in _groups(value) for f in group])
        # traits, securities and annotations are only recorded for now
        if category == KeywordCategory.TRAIT:
            route.traits[keyword] = stub
        elif category == KeywordCategory.SECURITY:
            route.securities[keyword] = stub
        else:
            route.annotations[keyword] = stub


def check_viability(route: Route, errors: list[TagError] | None = None) -> None:
    """Raise RouteViabilityError when the route can't be part of a document."""
    if not route.method:
        raise RouteViabilityError("no method found", route)
    if not route.resource:
        raise RouteViabilityError("no resource found", route)
    for e in errors or []:
        if e.keyword == KEYWORD_RESPONSE and isinstance(e.__cause__, (TypeResolutionError, TypeConflictError)):
            raise RouteViabilityError(f"unresolvable response type: {e.__cause__}", route)


def check_uri_parameters(route: Route) -> list[str]:
    """List the mismatches between the resource template and its uri parameters."""
    variables = URI_VARIABLE_RE.findall(route.resource)
    problems = []
    for name in variables:
        if name not in route.uri_parameters:
            problems.append(f"uri parameter `{name}` is not documented")
    for name in route.uri_parameters:
        if name not in variables:
            problems.append(f"uri parameter `{name}` does not appear in the resource")
    return problems


def _collect_types(route: Route, descriptor: TypeDescriptor) -> None:
    for name in descriptor.dependents:
        if name not in route.dependent_types:
            route.dependent_types.append(name)


def _text(value: FieldValue, keyword: str) -> str:
    if isinstance(value, Text):
        return value.value
    if isinstance(value, Fields):
        return " ".join(value.values)
    raise FieldParseError(keyword, "wrong kind: a single value is expected")


def _lines(value: FieldValue, keyword: str) -> list[str]:
    if isinstance(value, Text):
        return value.value.splitlines()
    if isinstance(value, Fields):
        return list(value.values)
    raise FieldParseError(keyword, "wrong kind: a single field group is expected")


def _groups(value: FieldValue) -> list[list[str]]:
    if isinstance(value, Text):
        return [[value.value]]
    if isinstance(value, Fields):
        return [list(value.values)]
    return [list(g) for g in value.groups]
