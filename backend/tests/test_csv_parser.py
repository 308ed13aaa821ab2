"""Unit tests for CSV parsing helpers."""

from datetime import date

import pytest

from app.services.csv_parser import (
    MIN_LINES_ERROR,
    convert_value,
    parse_csv,
    parse_date,
    validate_headers,
)


class TestParseCsv:
    def test_quoted_commas_and_blank_lines(self):
        result = parse_csv('name,city\n"Villa, Azur",Nice\n\nBastide,\n')

        assert result.success
        assert result.headers == ["name", "city"]
        assert result.data == [
            {"name": "Villa, Azur", "city": "Nice"},
            {"name": "Bastide", "city": ""},
        ]
        assert result.row_lengths == [2, 2]

    def test_short_rows_are_padded(self):
        result = parse_csv("a,b,c\n1\n")

        assert result.data == [{"a": "1", "b": "", "c": ""}]
        assert result.row_lengths == [1]

    def test_byte_order_mark_is_dropped(self):
        result = parse_csv("﻿name\nVilla Azur\n")

        assert result.headers == ["name"]

    def test_cells_are_trimmed(self):
        result = parse_csv("name , city\n  Villa Azur ,  Nice \n")

        assert result.headers == ["name", "city"]
        assert result.data == [{"name": "Villa Azur", "city": "Nice"}]

    @pytest.mark.parametrize("content", ["", "name,city\n", "\n\n"])
    def test_requires_header_and_data(self, content):
        result = parse_csv(content)

        assert not result.success
        assert result.error == MIN_LINES_ERROR


class TestHeaders:
    def test_validate_headers_ignores_case(self):
        check = validate_headers(["Name", "City"], ["name", "postcode"])

        assert not check.valid
        assert check.missing == ["postcode"]
        assert check.extra == ["City"]

    def test_all_required_present(self):
        check = validate_headers(["NAME"], ["name"])

        assert check.valid
        assert check.missing == []


class TestConvertValue:
    @pytest.mark.parametrize(
        "raw, value_type, expected",
        [
            ("12.5", "number", 12.5),
            ("abc", "number", None),
            ("TRUE", "boolean", True),
            ("1", "boolean", True),
            ("yes", "boolean", False),
            ("2024-06-01", "date", date(2024, 6, 1)),
            ("2024-06-01T10:00:00", "date", date(2024, 6, 1)),
            ("  Nice ", "string", "Nice"),
            ("", "string", None),
            (None, "number", None),
        ],
    )
    def test_convert_value(self, raw, value_type, expected):
        assert convert_value(raw, value_type) == expected

    def test_parse_date_rejects_garbage(self):
        assert parse_date("not a date") is None
