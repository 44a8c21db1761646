"""
Extractors for API reference pages.

Two layouts are supported:
- Structured references (Swagger UI): operations live in ``.opblock``
  blocks grouped by ``.opblock-tag-section``; models in ``.model-container``.
- Interactive references (Scalar): operations are marked up with
  ``data-testid`` attributes and carry inline request examples.
"""

import logging

from bs4 import BeautifulSoup, Tag

from docweave.models import (
    ApiEndpoint,
    CodeExample,
    ContentFormat,
    CrawledContent,
    HTTPMethod,
    Parameter,
    ParameterLocation,
    Schema,
)

from .base import (
    RenderedPage,
    body_text,
    find_endpoint_mentions,
    first_text,
    page_title,
    parse_html,
    text_of,
)

logger = logging.getLogger(__name__)

MIN_CODE_LENGTH = 10

# Language names accepted from class or data-language tokens, checked in order
_LANGUAGE_HINTS: list[tuple[str, frozenset[str]]] = [
    ("javascript", frozenset({"javascript", "js", "jsx", "typescript", "ts", "node", "nodejs"})),
    ("python", frozenset({"python", "python3", "py"})),
    ("curl", frozenset({"curl", "shell", "bash", "sh", "console"})),
]


def extract_structured_reference(page: RenderedPage) -> CrawledContent:
    """
    Extract operations and models from a Swagger UI style page.

    Args:
        page: Rendered page

    Returns:
        CrawledContent with endpoints and schemas
    """
    soup = parse_html(page.html)

    endpoints: list[ApiEndpoint] = []
    for block in soup.select(".opblock"):
        endpoint = _parse_opblock(block)
        if endpoint is not None:
            endpoints.append(endpoint)

    schemas: list[Schema] = []
    for container in soup.select(".model-container"):
        schema = _parse_model_container(container)
        if schema is not None:
            schemas.append(schema)

    title = first_text(soup, [".info .title", "h2.title"]) or page_title(soup, "API Documentation")
    logger.debug(f"Structured reference {page.url}: {len(endpoints)} endpoints, {len(schemas)} schemas")

    return CrawledContent(
        url=page.url,
        title=title,
        content=body_text(soup),
        format=ContentFormat.STRUCTURED_API_REFERENCE,
        metadata={
            "operation_count": len(endpoints),
            "model_count": len(schemas),
            "selector_found": page.selector_found,
        },
        endpoints=endpoints,
        schemas=schemas,
    )


def extract_interactive_reference(page: RenderedPage) -> CrawledContent:
    """
    Extract operations, auth notes and code examples from a Scalar style page.

    When no operation blocks are found, endpoints are recovered from inline
    ``METHOD /path`` mentions instead.

    Args:
        page: Rendered page

    Returns:
        CrawledContent with endpoints and code examples
    """
    soup = parse_html(page.html)
    text = body_text(soup)

    endpoints: list[ApiEndpoint] = []
    seen: set[tuple[str, str]] = set()
    for block in soup.select('[data-testid*="operation"]'):
        method = _parse_method(first_text(block, ['[data-testid*="method"]']))
        path = first_text(block, ['[data-testid*="path"]'])
        if method is None or not path or (method.value, path) in seen:
            continue
        seen.add((method.value, path))
        endpoints.append(
            ApiEndpoint(
                path=path,
                method=method,
                summary=first_text(block, ['[data-testid*="summary"]']) or None,
                description=first_text(block, ['[data-testid*="description"]']) or None,
            )
        )

    if not endpoints:
        for mention in find_endpoint_mentions(text):
            method_text, path = mention.split(" ", 1)
            endpoints.append(ApiEndpoint(path=path, method=HTTPMethod(method_text)))

    auth_notes = [
        text_of(element)
        for element in soup.select('[data-testid*="auth"]')
        if text_of(element)
    ]

    return CrawledContent(
        url=page.url,
        title=first_text(soup, ["h1"]) or page_title(soup, "API Reference"),
        content=text,
        format=ContentFormat.INTERACTIVE_REFERENCE,
        metadata={
            "operation_count": len(endpoints),
            "authentication": auth_notes,
            "selector_found": page.selector_found,
        },
        endpoints=endpoints,
        code_examples=_extract_code_examples(soup),
    )


def infer_language(element: Tag) -> str:
    """
    Infer a code block's language from class and ``data-language`` hints.

    The element, its parent and the code text itself are consulted, in that order.

    Returns:
        One of javascript, python, curl or unknown
    """
    hints: list[str] = []
    for candidate in (element, element.parent):
        if isinstance(candidate, Tag):
            hints.extend(candidate.get("class") or [])
            if candidate.get("data-language"):
                hints.extend(candidate["data-language"].split())
    # language-js and lang-js both name "js"; tokens are matched whole
    names = {hint.lower().removeprefix("language-").removeprefix("lang-") for hint in hints}

    for language, markers in _LANGUAGE_HINTS:
        if names & markers:
            return language

    if element.get_text().lstrip().startswith("curl "):
        return "curl"
    return "unknown"


def _extract_code_examples(soup: BeautifulSoup) -> list[CodeExample]:
    examples: list[CodeExample] = []
    seen: set[str] = set()
    for element in soup.select("pre code, .code-block"):
        code = element.get_text().strip()
        if len(code) <= MIN_CODE_LENGTH or code in seen:
            continue
        seen.add(code)
        examples.append(
            CodeExample(
                language=infer_language(element),
                code=code,
                context=f"Example {len(examples) + 1}",
            )
        )
    return examples


def _parse_method(value: str) -> HTTPMethod | None:
    try:
        return HTTPMethod(value.strip().upper())
    except ValueError:
        return None


def _parse_opblock(block: Tag) -> ApiEndpoint | None:
    method = _parse_method(first_text(block, [".opblock-summary-method"]))
    path_element = block.select_one(".opblock-summary-path")
    path = ""
    if path_element is not None:
        path = path_element.get("data-path") or text_of(path_element)
    path = path.replace("\u200b", "").strip()

    if method is None or not path:
        logger.debug("Skipping operation block without method or path")
        return None

    tags: list[str] = []
    section = block.find_parent(class_="opblock-tag-section")
    if section is not None:
        tag_header = section.select_one(".opblock-tag")
        tag_name = (tag_header.get("data-tag") if tag_header else None) or text_of(
            section.select_one(".opblock-tag a, .opblock-tag span")
        )
        if tag_name:
            tags.append(tag_name)

    return ApiEndpoint(
        path=path,
        method=method,
        summary=first_text(block, [".opblock-summary-description"]) or None,
        description=first_text(block, [".opblock-description-wrapper .markdown", ".opblock-description"])
        or None,
        parameters=[_parse_parameter(row) for row in block.select("tr[data-param-name]")],
        tags=tags,
        operation_id=block.get("id"),
    )


def _parse_parameter(row: Tag) -> Parameter:
    location_text = (row.get("data-param-in") or "query").lower()
    try:
        location = ParameterLocation(location_text)
    except ValueError:
        location = ParameterLocation.BODY if location_text == "formdata" else ParameterLocation.QUERY

    return Parameter(
        name=row["data-param-name"],
        location=location,
        type=first_text(row, [".parameter__type"]) or "string",
        description=first_text(row, [".parameters-col_description .markdown", ".parameters-col_description"])
        or None,
        required=row.select_one(".parameter__name.required") is not None,
    )


def _parse_model_container(container: Tag) -> Schema | None:
    name = first_text(container, [".model-title__text", ".model-title"])
    if not name:
        name = (container.get("data-name") or "").strip()
    if not name:
        return None

    properties: dict[str, dict[str, str]] = {}
    required: list[str] = []
    for row in container.select("tr.property-row"):
        cells = row.find_all("td")
        if not cells:
            continue
        prop_name = text_of(cells[0]).rstrip("*").strip()
        if not prop_name:
            continue
        properties[prop_name] = {"type": text_of(cells[1]) if len(cells) > 1 else "unknown"}
        if "required" in (row.get("class") or []) or row.select_one(".star"):
            required.append(prop_name)

    return Schema(
        name=name,
        properties=properties,
        required=required,
        description=first_text(container, [".model-description", ".markdown"]) or None,
    )
