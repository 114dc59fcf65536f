"""Fold a flat set of routes into nested resources.

Routes are grouped by resource path, then each path is attached to the
longest known path that prefixes it::

    /books            /books
    /books/{id}   =>    /{id}
    /authors          /authors
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from doc2raml.parser.base import Parameter, Route

URI_VARIABLE_RE = re.compile(r"\{([^{}]+)\}")


@dataclass(eq=False)
class ResourceNode:
    uri: str
    relative_uri: str = ""  # key under the parent, the full uri for roots
    methods: dict[str, Route] = field(default_factory=dict)
    uri_parameters: dict[str, Parameter] = field(default_factory=dict)
    parent: "ResourceNode | None" = field(default=None, repr=False)
    children: dict[str, "ResourceNode"] = field(default_factory=dict)

    def walk(self) -> Iterator["ResourceNode"]:
        """Yield this node and all its descendants, depth first."""
        yield self
        for child in self.children.values():
            yield from child.walk()


def uri_weight(uri: str) -> tuple[int, str]:
    """Sort key: number of segments, then alphabetical order."""
    return uri.count("/"), uri


def build_tree(routes: Iterable[Route]) -> list[ResourceNode]:
    """Nest the resources of ``routes`` and return the root resources."""
    index: dict[str, ResourceNode] = {}
    for route in routes:
        node = index.get(route.resource)
        if node is None:
            node = index[route.resource] = ResourceNode(uri=route.resource, relative_uri=route.resource)
        node.methods[route.method] = route
        node.uri_parameters.update(route.uri_parameters)

    ordered = sorted(index, key=uri_weight)
    for uri in ordered:
        node = index[uri]
        segments = uri.split("/")
        for i in range(len(segments) - 1, 1, -1):
            base = "/".join(segments[:i])
            parent = index.get(base)
            if parent is None:
                continue
            suffix = "/" + "/".join(segments[i:])
            parent.children[suffix] = node
            node.parent = parent
            node.relative_uri = suffix
            _filter_uri_parameters(node, suffix)
            break

    roots = []
    for uri in ordered:
        node = index[uri]
        if node.parent is None:
            _filter_uri_parameters(node, uri)
            roots.append(node)
    return roots


def _filter_uri_parameters(node: ResourceNode, uri: str) -> None:
    """Keep only the parameters whose variable appears in ``uri``."""
    variables = URI_VARIABLE_RE.findall(uri)
    node.uri_parameters = {name: p for name, p in node.uri_parameters.items() if name in variables}
