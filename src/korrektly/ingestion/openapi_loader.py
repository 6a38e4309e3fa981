"""OpenAPI loading and chunking utilities.

Every ``path`` x HTTP method pair of a dereferenced specification becomes one
searchable chunk pointing at its API reference page.
"""

from __future__ import annotations

import html
import json
import logging
from typing import Any
from urllib.parse import urlsplit

import httpx
import inflection
import yaml

from korrektly.models import ChunkRecord, MetadataValue
from korrektly.utils.text import clean_text, generate_tracking_id

LOGGER = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "patch", "delete", "options", "head")
OPENAPI_ROUTE_TAG = "openapi-route"
RESERVED_SEGMENT = "api-reference"
DEFAULT_API_REF_PATH = "api"


class OpenApiError(Exception):
    """Raised for specification documents that cannot be used."""


def load_spec(spec_url: str, *, http_client: httpx.Client | None = None) -> dict[str, Any]:
    """Fetch and decode a specification; ``.json`` URLs are JSON, the rest YAML."""
    owns_client = http_client is None
    client = http_client or httpx.Client(follow_redirects=True, timeout=30.0)
    try:
        response = client.get(spec_url)
        response.raise_for_status()
        text = response.text
    finally:
        if owns_client:
            client.close()

    if urlsplit(spec_url).path.endswith(".json"):
        document = json.loads(text)
    else:
        document = yaml.safe_load(text)
    if not isinstance(document, dict):
        raise OpenApiError(f"Specification at {spec_url} is not a mapping")
    return document


def _unescape_pointer(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _resolve_pointer(document: dict[str, Any], ref: str) -> Any:
    target: Any = document
    tokens = ref[2:].split("/") if ref != "#" else []
    for token in tokens:
        token = _unescape_pointer(token)
        if isinstance(target, list):
            target = target[int(token)]
        elif isinstance(target, dict) and token in target:
            target = target[token]
        else:
            raise OpenApiError(f"Unresolvable reference {ref!r}")
    return target


def dereference(document: dict[str, Any]) -> dict[str, Any]:
    """Inline every internal ``#/...`` reference of ``document``.

    Resolved targets are shared between their referrers. A reference that
    points back into one of its own ancestors is kept as the ``$ref`` object;
    references to other documents are left untouched.
    """
    resolved: dict[str, Any] = {}

    def walk(node: Any, active: tuple) -> Any:
        if isinstance(node, dict):
            ref = node.get("$ref")
            if isinstance(ref, str) and ref.startswith("#"):
                if ref in active:
                    return node
                if ref not in resolved:
                    resolved[ref] = walk(_resolve_pointer(document, ref), active + (ref,))
                return resolved[ref]
            return {key: walk(value, active) for key, value in node.items()}
        if isinstance(node, list):
            return [walk(item, active) for item in node]
        return node

    return walk(document, ())


def pluralize(phrase: str) -> str:
    """Pluralise the last hyphen-separated word; words already plural are kept."""
    if not phrase:
        return phrase
    head, _, last = phrase.rpartition("-")
    if not last:
        return phrase
    last = inflection.pluralize(last)
    return f"{head}-{last}" if head else last


def endpoint_label(summary: str, path: str) -> str:
    """Human-readable endpoint name built from the summary.

    ``"List deployment"`` becomes ``"deployments/list"``; operations without
    a summary fall back to their raw path.
    """
    words = summary.lower().split(" ") if summary else []
    if not words or not words[0]:
        return path
    namespace, rest = words[0], words[1:]
    return f"{pluralize('-'.join(rest))}/{namespace}"


def page_link(tracking_id: str, site_url: str | None, api_ref_path: str) -> str:
    if site_url:
        return f"{site_url.rstrip('/')}/{api_ref_path}/{tracking_id}"
    return f"/{api_ref_path}/{tracking_id}"


def api_hierarchy(api_ref_path: str, tracking_id: str) -> list[str]:
    parts = [part for part in api_ref_path.split("/") if part and part != RESERVED_SEGMENT]
    return parts + [tracking_id]


def build_operation_chunk(
    path: str,
    method: str,
    operation: dict[str, Any],
    *,
    site_url: str | None = None,
    api_ref_path: str = DEFAULT_API_REF_PATH,
) -> ChunkRecord:
    """Turn one operation object into its chunk record."""
    tracking_id = str(operation.get("operationId") or generate_tracking_id(method, path))
    summary = str(operation.get("summary") or "")
    description = str(operation.get("description") or "")
    tags = [str(tag) for tag in operation.get("tags") or []]

    endpoint = endpoint_label(summary, path)
    url = page_link(tracking_id, site_url, api_ref_path)
    method_upper = method.upper()
    title = summary or path

    metadata: dict[str, MetadataValue] = {
        "operation_id": tracking_id,
        "method": method_upper,
        "path": path,
        "endpoint": endpoint,
        "url": url,
        "hierarchy": api_hierarchy(api_ref_path, tracking_id),
    }
    if summary:
        metadata["summary"] = summary
    if description:
        metadata["description"] = description
    if tags:
        metadata["tags"] = ", ".join(tags)

    chunk_html = (
        f'<h2><span class="openapi-method">{method_upper}</span> '
        f"{html.escape(title)} <code>/{html.escape(endpoint)}</code></h2>"
    )
    if description:
        chunk_html += f"\n<p>{html.escape(clean_text(description))}</p>"

    heading = f"{method_upper} {title} {endpoint}"
    content = " ".join(part for part in (heading, description) if part)

    return ChunkRecord(
        chunk_html=chunk_html,
        tracking_id=tracking_id,
        source_url=url,
        tag_set=[OPENAPI_ROUTE_TAG, tracking_id, method.lower(), *tags],
        metadata=metadata,
        semantic_content=content,
        fulltext_content=content,
        refresh_on_duplicate=True,
        group_tracking_ids=[path],
    )


def iter_operations(spec: dict[str, Any]):
    """Yield ``(path, method, operation)`` for every recognised HTTP method."""
    for path, path_item in (spec.get("paths") or {}).items():
        if not isinstance(path_item, dict):
            continue
        for method, operation in path_item.items():
            if isinstance(method, str) and method.lower() in HTTP_METHODS and isinstance(operation, dict):
                yield path, method, operation


def build_openapi_chunks(
    spec_url: str,
    *,
    site_url: str | None = None,
    api_ref_path: str = DEFAULT_API_REF_PATH,
    http_client: httpx.Client | None = None,
) -> list[ChunkRecord]:
    """Produce one chunk per API operation described at ``spec_url``.

    Errors are logged and whatever was built before the failure is returned.
    """
    chunks: list[ChunkRecord] = []
    try:
        LOGGER.info("Fetching OpenAPI spec from %s", spec_url)
        spec = dereference(load_spec(spec_url, http_client=http_client))
        paths = spec.get("paths")
        if not paths:
            LOGGER.warning("No paths found in OpenAPI spec")
            return chunks

        LOGGER.info("Processing %d API paths", len(paths))
        for path, method, operation in iter_operations(spec):
            chunks.append(
                build_operation_chunk(
                    path, method, operation, site_url=site_url, api_ref_path=api_ref_path
                )
            )
        LOGGER.info("Generated %d chunks from OpenAPI spec", len(chunks))
    except Exception as exc:
        LOGGER.error("Error processing OpenAPI spec from %s: %s", spec_url, exc)
    return chunks
