from __future__ import annotations

from itertools import batched
from pathlib import Path  # noqa: TC003

import pytest

from catimport.adapters.csv_source import read_csv_rows
from catimport.adapters.xml_source import XmlSourceError, iter_elements, parse_document


def test_csv_rows_skip_header_and_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "products.csv"
    path.write_text(
        'code,label\nP-1,"Shirt, blue"\n\n , \nP-2,"multi\nline"\n',
        encoding="utf-8",
    )

    rows = list(read_csv_rows(path, skip_lines=1))

    assert rows == [["P-1", "Shirt, blue"], ["P-2", "multi\nline"]]


def test_csv_skip_beyond_end(tmp_path: Path) -> None:
    path = tmp_path / "products.csv"
    path.write_text("code\n", encoding="utf-8")

    assert list(read_csv_rows(path, skip_lines=5)) == []


def test_xml_elements_are_direct_children_only(tmp_path: Path) -> None:
    path = tmp_path / "products.xml"
    path.write_text(
        """<?xml version="1.0" encoding="UTF-8"?>
        <products>
          <productitem ref="P-1">
            <lists>
              <product><productitem ref="P-2"/></product>
            </lists>
          </productitem>
          <productitem ref="P-3"/>
        </products>
        """,
        encoding="utf-8",
    )

    refs = [
        (element.get("ref"), len(element.findall("lists/product/productitem")))
        for element in iter_elements(path, "productitem")
    ]

    assert refs == [("P-1", 1), ("P-3", 0)]


def test_xml_elements_stay_complete_when_collected_in_batches(tmp_path: Path) -> None:
    path = tmp_path / "products.xml"
    path.write_text(
        "<products>"
        '<productitem ref="P-1"><product.label>Shirt</product.label></productitem>'
        '<productitem ref="P-2"/>'
        '<productitem ref="P-3"/>'
        "</products>",
        encoding="utf-8",
    )

    (batch,) = list(batched(iter_elements(path, "productitem"), 1000))

    assert [(element.get("ref"), len(element)) for element in batch] == [
        ("P-1", 1),
        ("P-2", 0),
        ("P-3", 0),
    ]


def test_invalid_xml_raises_source_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.xml"
    path.write_text("<products><productitem></products>", encoding="utf-8")

    with pytest.raises(XmlSourceError):
        list(iter_elements(path, "productitem"))
    with pytest.raises(XmlSourceError):
        parse_document(path)


def test_entity_declarations_are_refused(tmp_path: Path) -> None:
    path = tmp_path / "bomb.xml"
    path.write_text(
        '<?xml version="1.0"?><!DOCTYPE x [<!ENTITY a "aaaa">]><catalogitem ref="&a;"/>',
        encoding="utf-8",
    )

    with pytest.raises(XmlSourceError):
        parse_document(path)


def test_parse_document_returns_root(tmp_path: Path) -> None:
    path = tmp_path / "tree.xml"
    path.write_text('<catalogitem ref="root"/>', encoding="utf-8")

    assert parse_document(path).get("ref") == "root"
