"""YAML configuration of a documentation build.

Example::

    document:
      title: Book collection
      version: v2
    keywords:
      auth: security
      paginated: trait
    primitives:
      uuid:
        base: string
        pattern: "^[a-f0-9-]{36}$"
    types:
      Book: myapp.models:Book
      Author:
        name: string
        books?: "[]Book"
    aliases:
      BookId: uuid
"""

import importlib
import logging
from pathlib import Path

import yaml
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from doc2raml.context import CompilerContext, KeywordCategory
from doc2raml.documentation import DocumentSettings
from doc2raml.errors import ConfigurationError, UnresolvableAliasError

logger = logging.getLogger(__name__)


class PrimitiveConfig(BaseModel):
    base: str = "string"
    description: str = ""
    pattern: str | None = None
    min_length: int | None = Field(default=None, validation_alias=AliasChoices("min_length", "minLength"))
    max_length: int | None = Field(default=None, validation_alias=AliasChoices("max_length", "maxLength"))
    length: int | None = None


class CompilerConfig(BaseModel):
    document: DocumentSettings = Field(default_factory=DocumentSettings)
    keywords: dict[str, KeywordCategory] = {}
    primitives: dict[str, PrimitiveConfig] = {}
    types: dict[str, str | dict[str, str]] = {}  # "module:Class" or field name -> type expression
    aliases: dict[str, str] = {}


def load_config(path: Path) -> CompilerConfig:
    """Read and validate a YAML configuration file."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping at the top level")
    try:
        return CompilerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration in {path}: {e}") from e


def apply_config(config: CompilerConfig, context: CompilerContext) -> CompilerContext:
    """Register the keywords, primitives, types and aliases of ``config``.

    Struct fields are resolved when their type is defined, so aliases are
    registered before the types. An alias whose target is one of the
    configured types is registered once the types are in place.
    """
    with context.configure():
        for name, category in config.keywords.items():
            context.define_keyword(name, category)

        for name, primitive in config.primitives.items():
            facets = primitive.model_dump(exclude={"base"}, exclude_none=True)
            context.define_primitive(name, primitive.base, **facets)

        pending = _define_aliases(context, config.aliases)

        for name, sample in config.types.items():
            if isinstance(sample, str):
                sample = import_object(sample)
            context.define_type(name, sample)
            logger.debug("type %s defined from configuration", name)

        for alias, target in pending.items():
            context.define_alias(alias, target)
    return context


def _define_aliases(context: CompilerContext, aliases: dict[str, str]) -> dict[str, str]:
    """Define every alias whose target is already known, return the others."""
    pending = dict(aliases)
    progress = True
    while pending and progress:
        progress = False
        for alias, target in list(pending.items()):
            try:
                context.define_alias(alias, target)
            except UnresolvableAliasError:
                continue
            del pending[alias]
            progress = True
    return pending


def import_object(path: str):
    """Import ``package.module:Name``."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(f"invalid import path `{path}`, expected module:Name")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"cannot import `{module_name}`: {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ConfigurationError(f"`{module_name}` has no attribute `{attr}`") from None
