"""Exceptions raised while compiling annotations into a RAML document."""


class Doc2RamlError(Exception):
    """Base class for every doc2raml error."""


class ConfigurationError(Doc2RamlError):
    """Invalid registration, or registration after the context was sealed."""


class TagError(Doc2RamlError):
    """A single tag of an annotation block could not be applied to a route."""

    def __init__(self, keyword: str, message: str):
        super().__init__(f"@{keyword}: {message}")
        self.keyword = keyword


class UnknownTagError(TagError):
    def __init__(self, keyword: str):
        super().__init__(keyword, "unknown tag")


class FieldParseError(TagError):
    """The fields of a tag do not follow the expected grammar."""


class TypeResolutionError(Doc2RamlError):
    """A type expression could not be resolved."""

    def __init__(self, expression: str, message: str):
        super().__init__(f"{message} (in `{expression}`)")
        self.expression = expression


class AliasCycleError(TypeResolutionError):
    def __init__(self, expression: str):
        super().__init__(expression, f"alias loop for `{expression}`")


class UnresolvableAliasError(TypeResolutionError):
    def __init__(self, expression: str, target: str):
        super().__init__(expression, f"alias target `{target}` is not a known type")
        self.target = target


class MalformedMapError(TypeResolutionError):
    def __init__(self, expression: str):
        super().__init__(expression, "malformed map pattern, expected map[Key]Value")


class InvalidTypeExpressionError(TypeResolutionError):
    def __init__(self, expression: str):
        super().__init__(expression, "invalid type expression")


class TypeConflictError(Doc2RamlError):
    """A type name is already registered with a different definition."""

    def __init__(self, name: str):
        super().__init__(f"type `{name}` is already defined differently")
        self.name = name


class RouteViabilityError(Doc2RamlError):
    """The route misses what it needs to be part of the document."""

    def __init__(self, message: str, route=None):
        super().__init__(message)
        self.route = route
