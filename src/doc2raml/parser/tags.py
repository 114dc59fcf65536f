"""Annotation block tokenizer.

Splits a comment or docstring into ``@keyword`` field groups::

    Get a book
    @route {uuid} id - The identifier of the book
    @response {Book}

gives ``{"description": [["Get a book"]], "route": [["{uuid} id - The
identifier of the book"]], "response": [["{Book}"]]}``.
"""

import re

# Reserved keywords
KEYWORD_HANDLER = "handler"  # locates the annotated handler, otherwise ignored
KEYWORD_METHOD = "method"
KEYWORD_RESOURCE = "resource"  # can also contain the method, e.g. GET /books
KEYWORD_DESCRIPTION = "description"
KEYWORD_ROUTE = "route"  # uri parameter
KEYWORD_QUERY = "query"
KEYWORD_BODY = "body"
KEYWORD_RESPONSE = "response"
KEYWORD_EXAMPLE = "example"

# Plural forms, only used by route definitions to pass several groups at once
PLURAL_KEYWORDS = {
    "routes": KEYWORD_ROUTE,
    "queries": KEYWORD_QUERY,
    "examples": KEYWORD_EXAMPLE,
}

RESERVED_KEYWORDS = {
    KEYWORD_HANDLER,
    KEYWORD_METHOD,
    KEYWORD_RESOURCE,
    KEYWORD_DESCRIPTION,
    KEYWORD_ROUTE,
    KEYWORD_QUERY,
    KEYWORD_BODY,
    KEYWORD_RESPONSE,
    KEYWORD_EXAMPLE,
    *PLURAL_KEYWORDS,
}

COMMENT_RE = re.compile(r"^(?P<indent>[ \t]*)(?P<marker>//+|#+|\*(?!/))?(?P<content>.*)$")
DELIMITER_RE = re.compile(r"^\s*(/\*\*?|\*/|\"\"\"|''')\s*$")
TAG_RE = re.compile(r"^@(?P<keyword>\w+)(?:[ \t]+(?P<fields>.*))?$")
FIELD_SEPARATOR_RE = re.compile(r"\t+")


def parse_comment(text: str) -> dict[str, list[list[str]]]:
    """Parse an annotation block into ``keyword -> [field group, ...]``.

    Keywords keep the order of their first appearance, and the implicit
    ``description`` keyword always comes first.
    """
    result: dict[str, list[list[str]]] = {}
    keyword = KEYWORD_DESCRIPTION
    fields: list[str] = []

    for line in text.splitlines():
        if DELIMITER_RE.match(line):
            continue
        m = COMMENT_RE.match(line)
        content = m.group("content").strip()

        tag = TAG_RE.match(content)
        if tag:
            result.setdefault(keyword, []).append(fields)
            keyword = tag.group("keyword")
            fields = split_fields(tag.group("fields") or "")
        elif m.group("marker") or m.group("indent") or keyword == KEYWORD_DESCRIPTION:
            fields.append(content)

    result.setdefault(keyword, []).append(fields)
    return result


def split_fields(line: str) -> list[str]:
    """Split the remainder of a tag line on runs of tabs."""
    return [f.strip() for f in FIELD_SEPARATOR_RE.split(line) if f.strip()]
