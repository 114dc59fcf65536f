"""Render a built document as RAML 1.0."""

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from doc2raml.documentation import Document, DocumentSettings
from doc2raml.parser.base import Example, Parameter, Route
from doc2raml.parser.fields import ALLOWED_METHODS
from doc2raml.schema.registry import MapType, PrimitiveType, StructType, TypeDefinition, TypeKind
from doc2raml.tree import ResourceNode

logger = logging.getLogger(__name__)

RAML_VERSION = "#%RAML 1.0"
DEFAULT_DIRECTORY = "raml"

NUMERIC_KEY_PATTERN = "/^[0-9]+$/"
ANY_KEY_PATTERN = "/^.*$/"


class _RamlDumper(yaml.SafeDumper):
    pass


def _represent_str(dumper: yaml.SafeDumper, data: str):
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_RamlDumper.add_representer(str, _represent_str)


def render(document: Document) -> str:
    body = yaml.dump(to_raml(document), Dumper=_RamlDumper, sort_keys=False, allow_unicode=True, width=1000)
    return f"{RAML_VERSION}\n---\n{body}"


def save(document: Document, directory: str | Path | None = None) -> Path:
    """Write the document to ``<directory>/<title>_<version>.raml``."""
    directory = Path(directory or DEFAULT_DIRECTORY)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / output_filename(document.settings)
    path.write_text(render(document), encoding="utf-8")
    logger.info("RAML document written to %s", path)
    return path


def output_filename(settings: DocumentSettings) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", settings.title.lower()).strip("_") or "api"
    return f"{slug}_{settings.version}.raml"


def to_raml(document: Document) -> dict[str, Any]:
    """Build the RAML tree of ``document`` as plain dicts and lists."""
    settings = document.settings
    raml: dict[str, Any] = {"title": settings.title}
    if settings.description:
        raml["description"] = settings.description
    raml["version"] = settings.version
    raml["baseUri"] = settings.base_uri
    raml["mediaType"] = settings.media_type

    if document.types:
        raml["types"] = {name: _type(document.types[name]) for name in sorted(document.types)}

    for node in document.resources:
        raml[node.relative_uri] = _resource(node, settings.media_type)
    return raml


def _type(definition: TypeDefinition) -> dict[str, Any]:
    if isinstance(definition, PrimitiveType):
        out: dict[str, Any] = {"type": definition.base}
        if definition.description:
            out["description"] = definition.description
        if definition.pattern:
            out["pattern"] = definition.pattern
        if definition.min_length is not None:
            out["minLength"] = definition.min_length
        if definition.max_length is not None:
            out["maxLength"] = definition.max_length
        return out

    if isinstance(definition, MapType):
        numeric = definition.key.kind == TypeKind.SCALAR and definition.key.name in ("integer", "number")
        pattern = NUMERIC_KEY_PATTERN if numeric else ANY_KEY_PATTERN
        return {
            "type": "object",
            "properties": {pattern: definition.value.name},
            "additionalProperties": True,
        }

    if isinstance(definition, StructType):
        properties = {}
        for f in definition.fields:
            properties[f.name + ("?" if f.optional else "")] = f.type.name
        return {"type": "object", "properties": properties}

    raise TypeError(f"unknown type definition {definition!r}")


def _resource(node: ResourceNode, media_type: str) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if node.uri_parameters:
        out["uriParameters"] = {name: _parameter(p) for name, p in node.uri_parameters.items()}
    for method in ALLOWED_METHODS:
        route = node.methods.get(method)
        if route is not None:
            out[method.lower()] = _method(route, media_type)
    for key in sorted(node.children):
        out[key] = _resource(node.children[key], media_type)
    return out


def _method(route: Route, media_type: str) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if route.name:
        out["displayName"] = route.name
    if route.description:
        out["description"] = route.description
    if route.query_parameters:
        out["queryParameters"] = {name: _parameter(p) for name, p in route.query_parameters.items()}

    request_examples = {k: e for k, e in route.examples.items() if e.body}
    if route.body_parameters or request_examples:
        out["body"] = {media_type: _body(route.body_parameters, request_examples)}

    responses = _responses(route, media_type)
    if responses:
        out["responses"] = responses
    return out


def _body(parameters: dict[str, Parameter], examples: dict[str, Example]) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if len(parameters) == 1:
        p = next(iter(parameters.values()))
        body["type"] = p.type.name
        if p.description:
            body["description"] = p.description
    elif parameters:
        body["type"] = "object"
        body["properties"] = {
            name + ("" if p.required else "?"): _parameter(p) for name, p in parameters.items()
        }
    if examples:
        body["examples"] = {name: _example(e, e.body) for name, e in examples.items()}
    return body


def _responses(route: Route, media_type: str) -> dict[int, Any]:
    responses: dict[int, Any] = {}
    if route.response is not None:
        r = route.response
        out: dict[str, Any] = {}
        if r.description:
            out["description"] = r.description
        if r.type.kind != TypeKind.NIL:
            out["body"] = {media_type: {"type": r.type.name}}
        responses[r.code] = out

    for name, e in route.examples.items():
        if e.code is None:
            continue
        out = responses.setdefault(e.code, {})
        if not e.response:
            continue
        media = out.setdefault("body", {}).setdefault(media_type, {})
        media.setdefault("examples", {})[name] = _example(e, e.response)
    return responses


def _example(e: Example, value: str) -> dict[str, Any]:
    description = e.description
    if e.uri:
        description = f"{description}\n`{e.uri}`" if description else f"`{e.uri}`"
    out: dict[str, Any] = {}
    if description:
        out["description"] = description
    out["value"] = value
    out["strict"] = False
    return out


def _parameter(p: Parameter) -> dict[str, Any]:
    out: dict[str, Any] = {"type": p.type.name}
    if p.description:
        out["description"] = p.description
    if not p.required:
        out["required"] = False
    if p.enum:
        out["enum"] = list(p.enum)
    if p.default is not None:
        out["default"] = p.default
    if len(p.examples) == 1:
        out["example"] = p.examples[0]
    elif p.examples:
        out["examples"] = {f"example{i}": value for i, value in enumerate(p.examples, start=1)}
    return out
