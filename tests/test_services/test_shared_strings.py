"""Tests for the shared-string table loader."""

import io
import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from tests.fixtures import shared_strings_xml, workbook_xml
from xlsx_cell_extractor.config import Settings
from xlsx_cell_extractor.services.container import WorkbookContainer
from xlsx_cell_extractor.services.shared_strings import (
    SharedStringTable,
    load_shared_strings,
    parse_shared_strings,
)
from xlsx_cell_extractor.services.xml_tokens import iter_tokens
from xlsx_cell_extractor.utils.exceptions import MalformedXMLError, ResourceLimitError

NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"


def _parse(body: str, **kwargs: object) -> list[str]:
    xml = f'<sst xmlns="{NS}">{body}</sst>'
    return parse_shared_strings(iter_tokens(io.BytesIO(xml.encode())), **kwargs)


class TestSharedStringTable:
    """Tests for SharedStringTable lookups."""

    def setup_method(self) -> None:
        self.table = SharedStringTable(["zero", "one", "two"])

    def test_len_and_iter(self) -> None:
        assert len(self.table) == 3
        assert list(self.table) == ["zero", "one", "two"]

    def test_get(self) -> None:
        assert self.table.get(1) == "one"
        assert self.table.get(3) is None
        assert self.table.get(-1) is None

    def test_resolve(self) -> None:
        assert self.table.resolve("2") == "two"
        assert self.table.resolve(" 0 ") == "zero"

    @pytest.mark.parametrize(
        "index_text", ["3", "99", "-1", "abc", "", "1.0", "0_1", "+1"]
    )
    def test_resolve_invalid_index_is_empty(self, index_text: str) -> None:
        assert self.table.resolve(index_text) == ""

    def test_empty_table(self) -> None:
        assert len(SharedStringTable()) == 0
        assert SharedStringTable().resolve("0") == ""


class TestParseSharedStrings:
    """Tests for parse_shared_strings."""

    def test_plain_items(self) -> None:
        assert _parse("<si><t>Hello</t></si><si><t>World</t></si>") == [
            "Hello",
            "World",
        ]

    def test_rich_text_runs_concatenated(self) -> None:
        body = (
            "<si>"
            "<r><rPr><b/></rPr><t>Bold</t></r>"
            '<r><t xml:space="preserve"> and plain</t></r>'
            "</si>"
        )
        assert _parse(body) == ["Bold and plain"]

    def test_phonetic_runs_skipped(self) -> None:
        body = (
            "<si><t>東京</t>"
            '<rPh sb="0" eb="2"><t>トウキョウ</t></rPh>'
            '<phoneticPr fontId="1"/></si>'
        )
        assert _parse(body) == ["東京"]

    def test_empty_items_kept(self) -> None:
        """Empty items keep their slot so later indices stay aligned."""
        assert _parse("<si><t/></si><si/><si><t>x</t></si>") == ["", "", "x"]

    def test_hard_limit(self) -> None:
        with pytest.raises(ResourceLimitError) as exc_info:
            _parse("<si><t>a</t></si>" * 4, hard_limit=3)
        assert exc_info.value.resource == "shared_strings"
        assert exc_info.value.limit == 3

    def test_at_hard_limit_allowed(self) -> None:
        assert len(_parse("<si><t>a</t></si>" * 3, hard_limit=3)) == 3


class TestLoadSharedStrings:
    """Tests for load_shared_strings."""

    def test_missing_member_gives_empty_table(
        self, make_workbook: Callable[..., Path], settings: Settings
    ) -> None:
        path = make_workbook({"xl/workbook.xml": workbook_xml([("S", "1")])})
        with WorkbookContainer(path) as container:
            table = load_shared_strings(container, settings=settings)
        assert len(table) == 0

    def test_loads_in_order(
        self, make_workbook: Callable[..., Path], settings: Settings
    ) -> None:
        path = make_workbook(
            {"xl/sharedStrings.xml": shared_strings_xml(["a", "b & c", "d"])}
        )
        with WorkbookContainer(path) as container:
            table = load_shared_strings(container, settings=settings)
        assert list(table) == ["a", "b & c", "d"]

    def test_malformed_member(
        self, make_workbook: Callable[..., Path], settings: Settings
    ) -> None:
        path = make_workbook({"xl/sharedStrings.xml": "<sst><si><t>a</si></sst>"})
        with WorkbookContainer(path) as container:
            with pytest.raises(MalformedXMLError) as exc_info:
                load_shared_strings(container, settings=settings)
        assert exc_info.value.member_name == "xl/sharedStrings.xml"

    def test_large_table_warning(
        self,
        make_workbook: Callable[..., Path],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        settings = Settings(_env_file=None, shared_strings_warning_threshold=2)
        path = make_workbook({"xl/sharedStrings.xml": shared_strings_xml("abc")})
        caplog.set_level(logging.WARNING)
        with WorkbookContainer(path) as container:
            table = load_shared_strings(container, settings=settings)
        assert len(table) == 3
        assert "Large shared strings dataset detected" in caplog.text
        assert "count=3" in caplog.text

    def test_hard_limit_from_settings(self, make_workbook: Callable[..., Path]) -> None:
        settings = Settings(
            _env_file=None,
            shared_strings_warning_threshold=1,
            shared_strings_hard_limit=2,
        )
        path = make_workbook({"xl/sharedStrings.xml": shared_strings_xml("abc")})
        with WorkbookContainer(path) as container:
            with pytest.raises(ResourceLimitError):
                load_shared_strings(container, settings=settings)
