"""Compiler context: the keyword and type registries of one documentation build.

Registration happens in a configure phase, before any annotation is parsed::

    context = CompilerContext()
    with context.configure() as config:
        config.define_keyword("auth", KeywordCategory.SECURITY)
        config.define_type("Book", Book)
        config.define_primitive("uuid", "string", pattern="[a-f0-9-]{36}")
        config.define_alias("BookId", "uuid")

The context is sealed when the configure block exits, or on the first type
resolution; any later registration raises :class:`ConfigurationError`.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any

from doc2raml.errors import AliasCycleError, ConfigurationError, UnresolvableAliasError
from doc2raml.schema.introspect import describe
from doc2raml.schema.registry import PrimitiveType, StructField, StructType, TypeDescriptor, TypeRegistry
from doc2raml.schema.resolver import SCALARS, TypeResolver

logger = logging.getLogger(__name__)


class KeywordCategory(str, Enum):
    TRAIT = "trait"
    SECURITY = "security"
    ANNOTATION = "annotation"


class CompilerContext:
    def __init__(self):
        self.types = TypeRegistry()
        self.resolver = TypeResolver(self.types)
        self._keywords: dict[str, KeywordCategory] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        self._sealed = True

    @contextmanager
    def configure(self):
        """Open the configure phase; the context is sealed when it ends."""
        if self._sealed:
            raise ConfigurationError("context is already configured")
        yield self
        self.seal()

    def _check_open(self, what: str) -> None:
        if self._sealed:
            raise ConfigurationError(f"cannot define {what}: the context is sealed")

    # -- keywords -------------------------------------------------------------

    def define_keyword(self, name: str, category: KeywordCategory | str) -> None:
        """Reserve ``@name`` as a trait, security or annotation tag."""
        self._check_open(f"keyword `{name}`")
        category = KeywordCategory(category)
        existing = self._keywords.get(name)
        if existing is not None and existing != category:
            raise ConfigurationError(
                f"keyword `{name}` is already a {existing.value}, not a {category.value}"
            )
        self._keywords[name] = category

    def keyword_category(self, name: str) -> KeywordCategory | None:
        return self._keywords.get(name)

    # -- types ----------------------------------------------------------------

    def define_type(self, name: str, sample: Any) -> StructType:
        """Register a struct type from a class, an instance or a field mapping.

        Field types are resolved here: aliases they use must be defined first.
        """
        self._check_open(f"type `{name}`")
        cls = None
        if not isinstance(sample, dict):
            cls = sample if isinstance(sample, type) else type(sample)
            # bind first so self-references resolve to the registered name
            self.types.bind_class(cls, name)
        layout = describe(sample, self.types)

        fields = [
            StructField(name=f.name, type=self.resolver.resolve(f.expression), optional=f.optional)
            for f in layout.fields
        ]
        definition = StructType(name=name, source=layout.source, fields=fields)
        self.types.add(definition)
        if cls is not None and cls.__name__ != name:
            self.types.add_alias(cls.__name__, name)
        return definition

    def define_primitive(self, name: str, base: str, **facets) -> PrimitiveType:
        """Register ``name`` as a built-in RAML type narrowed by facets.

        ``length`` sets both ``min_length`` and ``max_length``.
        """
        self._check_open(f"primitive `{name}`")
        length = facets.pop("length", None)
        if length is not None:
            facets.setdefault("min_length", length)
            facets.setdefault("max_length", length)
        definition = PrimitiveType(name=name, base=SCALARS.get(base, base), **facets)
        self.types.add(definition)
        return definition

    def define_alias(self, alias: str, target: str) -> None:
        self._check_open(f"alias `{alias}`")
        target = target.strip()
        if alias == target:
            raise AliasCycleError(alias)
        descriptor = self.resolver.resolve(target)
        if any(name not in self.types for name in descriptor.dependents):
            raise UnresolvableAliasError(alias, target)
        self.types.add_alias(alias, target)

    # -- resolution -----------------------------------------------------------

    def resolve(self, expression: str) -> TypeDescriptor:
        if not self._sealed:
            logger.debug("sealing the compiler context on first resolution")
            self.seal()
        return self.resolver.resolve(expression)
