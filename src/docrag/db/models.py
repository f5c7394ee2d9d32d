"""Domain models: crawled page records and the chunks derived from them."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from docrag.errors import PageError

CHUNK_TYPES: tuple[str, ...] = ("properties", "method", "documentation")


@dataclass(frozen=True)
class Chunk:
    """A bounded, independently retrievable unit of page content.

    ``slot`` is the logical identifier the id was hashed from; it is not
    persisted and only used to tell re-ingestion apart from a hash collision.
    """

    id: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    slot: str = field(default="", compare=False)

    @property
    def chunk_type(self) -> str:
        return self.metadata.get("chunk_type", "")

    @property
    def source_url(self) -> str:
        return self.metadata.get("source_url", "")

    @property
    def metadata_json(self) -> str:
        return json.dumps(self.metadata, sort_keys=True)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "content": self.content, "metadata": dict(self.metadata)}


@dataclass
class Property:
    name: str
    type: str = ""
    description: str = ""


@dataclass
class Parameter:
    name: str
    type: str = ""
    description: str = ""


@dataclass
class Method:
    signature: str
    description: str = ""
    parameters: list[Parameter] = field(default_factory=list)
    return_type: str | None = None
    code_example: str | None = None

    @property
    def name(self) -> str:
        return self.signature.split("(")[0]


@dataclass
class Page:
    """One crawled documentation page.

    Attributes:
        title: Page title (rendered as the ``# <title>`` context header).
        url: Canonical source URL; part of every chunk id.
        component_type: Class/interface/enum label, or None for plain docs.
        properties: Zero or more documented properties.
        methods: Zero or more documented methods.
        markdown: Free-text body, split at H1–H3 headings.
    """

    title: str
    url: str
    component_type: str | None = None
    properties: list[Property] = field(default_factory=list)
    methods: list[Method] = field(default_factory=list)
    markdown: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Page:
        """Build a Page from a crawler record.

        Accepts the crawler's ``property_name`` / ``param_name`` keys as
        aliases for ``name``.

        Raises:
            PageError: If *data* is not a mapping, ``title`` or ``url`` is
                missing, or ``properties`` / ``methods`` is not a list.
        """
        if not isinstance(data, Mapping):
            raise PageError(f"Page record must be a mapping, got {type(data).__name__}")

        title = data.get("title")
        url = data.get("url")
        if not title or not isinstance(title, str):
            raise PageError(f"Page record is missing 'title' (url={url!r})")
        if not url or not isinstance(url, str):
            raise PageError(f"Page record '{title}' is missing 'url'")

        properties = [_property_from_dict(p, url) for p in _list_field(data, "properties", url)]
        methods = [_method_from_dict(m, url) for m in _list_field(data, "methods", url)]

        markdown = data.get("markdown")
        if markdown is not None and not isinstance(markdown, str):
            raise PageError(f"Page '{url}': 'markdown' must be a string")

        return cls(
            title=title,
            url=url,
            component_type=data.get("component_type") or None,
            properties=properties,
            methods=methods,
            markdown=markdown or None,
        )


# ------------------------------------------------------------------
# Record → model helpers
# ------------------------------------------------------------------


def _list_field(data: Mapping[str, Any], key: str, url: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise PageError(f"Page '{url}': '{key}' must be a list, got {type(value).__name__}")
    return value


def _property_from_dict(raw: Any, url: str) -> Property:
    if not isinstance(raw, Mapping):
        raise PageError(f"Page '{url}': property entries must be mappings")
    name = raw.get("name") or raw.get("property_name")
    if not name:
        raise PageError(f"Page '{url}': property without a name")
    return Property(
        name=str(name),
        type=str(raw.get("type") or ""),
        description=str(raw.get("description") or ""),
    )


def _method_from_dict(raw: Any, url: str) -> Method:
    if not isinstance(raw, Mapping):
        raise PageError(f"Page '{url}': method entries must be mappings")
    signature = raw.get("signature")
    if not signature:
        raise PageError(f"Page '{url}': method without a signature")
    params_raw = raw.get("parameters") or []
    if not isinstance(params_raw, list):
        raise PageError(f"Page '{url}': parameters of '{signature}' must be a list")
    parameters = []
    for p in params_raw:
        if not isinstance(p, Mapping):
            raise PageError(f"Page '{url}': parameter entries of '{signature}' must be mappings")
        parameters.append(
            Parameter(
                name=str(p.get("name") or p.get("param_name") or ""),
                type=str(p.get("type") or ""),
                description=str(p.get("description") or ""),
            )
        )
    return Method(
        signature=str(signature),
        description=str(raw.get("description") or ""),
        parameters=parameters,
        return_type=raw.get("return_type") or None,
        code_example=raw.get("code_example") or None,
    )
