"""Tests for PageChunker: properties, methods, markdown and batch processing."""

from __future__ import annotations

import logging

import pytest

from docrag.db.models import Method, Page, Parameter
from docrag.errors import ChunkIdCollisionError, PageError
from docrag.ingest.base import BaseChunker
from docrag.ingest.page import PageChunker

_URL = "https://developers.google.com/apps-script/reference/base/array"


def _array_page(**overrides) -> dict:
    page = {
        "title": "Array",
        "url": _URL,
        "properties": [{"name": "length", "type": "number", "description": "Array length"}],
    }
    page.update(overrides)
    return page


def _sheet_page() -> dict:
    return {
        "title": "Sheet",
        "url": "https://developers.google.com/apps-script/reference/spreadsheet/sheet",
        "component_type": "Class",
        "properties": [
            {"property_name": "NAME", "type": "String", "description": "Sheet name"},
            {"name": "INDEX", "type": "Integer", "description": "Position"},
        ],
        "methods": [
            {
                "signature": "getRange(row, column)",
                "description": "Returns the range with the top left cell at the given coordinates.",
                "parameters": [
                    {"param_name": "row", "type": "Integer", "description": "The row index."},
                    {"name": "column", "type": "Integer", "description": "The column index."},
                ],
                "return_type": "Range",
                "code_example": "var range = sheet.getRange(1, 1);",
            },
            {"signature": "clear()"},
        ],
        "markdown": "# Sheet\nAccess and modify spreadsheet sheets.\n## Usage\nCall methods.",
    }


# ------------------------------------------------------------------
# Properties
# ------------------------------------------------------------------


def test_single_property_page_yields_one_properties_chunk():
    chunks = PageChunker().process_page(_array_page())
    assert len(chunks) == 1
    assert chunks[0].chunk_type == "properties"
    assert "### length" in chunks[0].content


def test_properties_chunk_layout():
    chunk = PageChunker().process_page(_array_page())[0]
    assert chunk.content == (
        "# Array\n"
        "Component Type: Documentation\n"
        f"URL: {_URL}\n"
        "\n"
        "## Properties\n"
        "\n"
        "### length\n"
        "- **Type:** number\n"
        "- **Description:** Array length"
    )
    assert chunk.id == BaseChunker.chunk_id(_URL, "properties")
    assert chunk.metadata == {
        "source_url": _URL,
        "chunk_type": "properties",
        "property_count": 1,
        "property_names": ["length"],
    }


def test_all_properties_collapse_into_one_chunk():
    chunks = PageChunker().process_page(_sheet_page())
    props = [c for c in chunks if c.chunk_type == "properties"]
    assert len(props) == 1
    assert "### NAME" in props[0].content
    assert "### INDEX" in props[0].content
    assert props[0].metadata["property_names"] == ["NAME", "INDEX"]


# ------------------------------------------------------------------
# Methods
# ------------------------------------------------------------------


def test_one_chunk_per_method():
    chunks = PageChunker().process_page(_sheet_page())
    methods = [c for c in chunks if c.chunk_type == "method"]
    assert [c.metadata["method_signature"] for c in methods] == ["getRange(row, column)", "clear()"]


def test_method_chunk_contains_full_method():
    chunk = [c for c in PageChunker().process_page(_sheet_page()) if c.chunk_type == "method"][0]
    assert "## Method: getRange(row, column)" in chunk.content
    assert "Returns the range with the top left cell" in chunk.content
    assert "### Parameters:" in chunk.content
    assert "- **row** (Integer): The row index." in chunk.content
    assert "- **column** (Integer): The column index." in chunk.content
    assert "### Returns:\nRange" in chunk.content
    assert "```javascript\nvar range = sheet.getRange(1, 1);\n```" in chunk.content


def test_method_without_details():
    chunk = [c for c in PageChunker().process_page(_sheet_page()) if c.chunk_type == "method"][1]
    assert "No description available" in chunk.content
    assert "### Parameters:" not in chunk.content
    assert "### Returns:" not in chunk.content
    assert "### Example:" not in chunk.content
    assert chunk.metadata["has_parameters"] is False
    assert chunk.metadata["has_example"] is False
    assert chunk.metadata["return_type"] is None


def test_method_metadata():
    chunk = [c for c in PageChunker().process_page(_sheet_page()) if c.chunk_type == "method"][0]
    assert chunk.metadata["component_type"] == "Class"
    assert chunk.metadata["method_name"] == "getRange"
    assert chunk.metadata["has_parameters"] is True
    assert chunk.metadata["has_example"] is True
    assert chunk.metadata["return_type"] == "Range"


def test_method_never_split_regardless_of_chunk_size():
    long_example = "\n".join(f"Logger.log({i});" for i in range(2000))
    method = Method(
        signature="log(data)",
        description="Writes to the log. " * 200,
        parameters=[Parameter(name="data", type="Object", description="Data to log.")],
        return_type="Logger",
        code_example=long_example,
    )
    page = Page(title="Logger", url="https://example.com/logger", methods=[method])
    chunks = PageChunker(chunk_size=5, overlap=1).process_page(page)
    assert len(chunks) == 1
    assert long_example in chunks[0].content
    assert "Writes to the log." in chunks[0].content


def test_method_id_uses_signature():
    chunk = [c for c in PageChunker().process_page(_sheet_page()) if c.chunk_type == "method"][0]
    assert chunk.id == BaseChunker.chunk_id(_sheet_page()["url"], "getRange(row, column)")


def test_code_language_configurable():
    chunks = PageChunker(code_language="js").process_page(_sheet_page())
    assert "```js\n" in chunks[1].content


# ------------------------------------------------------------------
# Page assembly
# ------------------------------------------------------------------


def test_chunk_order_properties_methods_markdown():
    types = [c.chunk_type for c in PageChunker().process_page(_sheet_page())]
    assert types == ["properties", "method", "method", "documentation", "documentation"]


def test_every_chunk_has_page_context_header():
    for chunk in PageChunker().process_page(_sheet_page()):
        assert chunk.content.startswith(
            "# Sheet\nComponent Type: Class\n"
            "URL: https://developers.google.com/apps-script/reference/spreadsheet/sheet\n\n"
        )


def test_missing_optional_fields_produce_no_chunks():
    assert PageChunker().process_page({"title": "Empty", "url": "https://example.com/e"}) == []


def test_accepts_page_dataclass():
    page = Page(title="Doc", url="https://example.com/doc", markdown="# Intro\nHello")
    chunks = PageChunker().process_page(page)
    assert len(chunks) == 1
    assert chunks[0].chunk_type == "documentation"


def test_same_page_twice_yields_identical_ids():
    first = PageChunker().process_page(_sheet_page())
    second = PageChunker().process_page(_sheet_page())
    assert [c.id for c in first] == [c.id for c in second]


def test_ids_unique_within_page():
    ids = [c.id for c in PageChunker().process_page(_sheet_page())]
    assert len(ids) == len(set(ids))


@pytest.mark.parametrize(
    "record",
    [
        {"url": _URL},
        {"title": "No URL"},
        {"title": "Bad", "url": _URL, "properties": "length"},
        {"title": "Bad", "url": _URL, "methods": [{"description": "no signature"}]},
        "not a mapping",
    ],
)
def test_malformed_page_raises(record):
    with pytest.raises(PageError):
        PageChunker().process_page(record)


# ------------------------------------------------------------------
# process_pages
# ------------------------------------------------------------------


def test_process_pages_flattens_and_counts():
    chunks, stats = PageChunker().process_pages([_array_page(), _sheet_page()])
    assert len(chunks) == 6
    assert stats.total_pages == 2
    assert stats.total_chunks == 6
    assert stats.chunk_types == {"properties": 2, "method": 2, "documentation": 2}
    assert stats.average_chunks_per_page == 3.0
    assert stats.failed_pages == []


def test_process_pages_preserves_page_order():
    chunks, _ = PageChunker().process_pages([_sheet_page(), _array_page()])
    assert chunks[-1].source_url == _URL


def test_process_pages_skips_malformed_page(caplog):
    with caplog.at_level(logging.WARNING, logger="docrag.ingest.page"):
        chunks, stats = PageChunker().process_pages([{"url": "x"}, _array_page()])
    assert len(chunks) == 1
    assert stats.total_pages == 2
    assert len(stats.failed_pages) == 1
    assert stats.failed_pages[0][0] == 0
    assert "Skipping page 0" in caplog.text


def test_process_pages_strict_raises():
    with pytest.raises(PageError):
        PageChunker().process_pages([{"url": "x"}, _array_page()], strict=True)


def test_process_pages_empty():
    chunks, stats = PageChunker().process_pages([])
    assert chunks == []
    assert stats.total_pages == 0
    assert stats.average_chunks_per_page == 0.0


def test_process_pages_reingest_same_page_is_not_a_collision():
    chunks, _ = PageChunker().process_pages([_array_page(), _array_page()])
    assert len(chunks) == 2
    assert chunks[0].id == chunks[1].id


def test_process_pages_detects_id_collision(monkeypatch):
    monkeypatch.setattr(BaseChunker, "chunk_id", staticmethod(lambda url, identifier: "0" * 16))
    page = _array_page(markdown="# Intro\nHello")
    with pytest.raises(ChunkIdCollisionError, match="0000000000000000"):
        PageChunker().process_pages([page])


def test_process_pages_logs_progress(caplog):
    pages = [_array_page(url=f"https://example.com/{i}") for i in range(10)]
    with caplog.at_level(logging.INFO, logger="docrag.ingest.page"):
        PageChunker().process_pages(pages)
    assert "Processing page 10/10" in caplog.text
    assert "Chunked 10 pages into 10 chunks" in caplog.text
