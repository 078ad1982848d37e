"""
Tests for ErrorReport, exceptions and indifferent key lookup.
"""

import json
from enum import Enum

import pytest

from explicit_parameters import (
    DefinitionError,
    ErrorReport,
    ExplicitParametersError,
    InvalidParameters,
)
from explicit_parameters.indifferent import IndifferentView, normalize_key


class TestErrorReport:
    """Collecting and rendering failures."""

    def test_empty_report_is_falsy(self):
        report = ErrorReport()
        assert not report
        assert len(report) == 0
        assert report.to_json() == '{"errors":{}}'

    def test_add_keeps_order_and_messages(self):
        report = ErrorReport()
        report.add("id", "is required")
        report.add("name", "is too short (minimum is 2 characters)")
        report.add("id", "is invalid")
        assert list(report) == ["id", "name"]
        assert report.messages_for("id") == ["is required", "is invalid"]
        assert report.messages_for("missing") == []

    def test_merge_nested(self):
        nested = ErrorReport()
        nested.add("city", "is required")
        report = ErrorReport()
        report.merge("address", nested)
        assert "address" in report
        assert isinstance(report["address"], ErrorReport)
        assert report == {"address": {"city": ["is required"]}}

    def test_merge_empty_is_noop(self):
        report = ErrorReport()
        report.merge("address", ErrorReport())
        assert not report

    def test_message_beside_nested_report(self):
        nested = ErrorReport()
        nested.add("city", "is required")
        report = ErrorReport()
        report.merge("address", nested)
        report.add("address", "is invalid")
        assert report.to_dict() == {
            "address": {"city": ["is required"], "base": ["is invalid"]}
        }

    def test_flatten(self):
        item = ErrorReport()
        item.add("city", "is required")
        items = ErrorReport()
        items.merge("1", item)
        report = ErrorReport()
        report.add("id", "is required")
        report.merge("addresses", items)
        assert report.flatten() == [
            ("id", "is required"),
            ("addresses.1.city", "is required"),
        ]

    def test_to_json_is_compact(self):
        report = ErrorReport()
        report.add("name", "can't be blank")
        assert report.to_json() == '{"errors":{"name":["can\'t be blank"]}}'
        assert json.loads(report.to_json()) == {"errors": {"name": ["can't be blank"]}}

    def test_to_json_keeps_unicode(self):
        report = ErrorReport()
        report.add("nom", "doit être présent")
        assert "être" in report.to_json()

    def test_equality(self):
        first = ErrorReport()
        first.add("id", "is required")
        second = ErrorReport()
        second.add("id", "is required")
        assert first == second
        assert first == {"id": ["is required"]}
        assert first != {"id": ["is invalid"]}


class TestExceptions:
    """Exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(DefinitionError, ExplicitParametersError)
        assert issubclass(DefinitionError, ValueError)
        assert issubclass(InvalidParameters, ExplicitParametersError)

    def test_invalid_parameters_carries_report(self):
        report = ErrorReport()
        report.add("id", "must be greater than 0")
        error = InvalidParameters(report)
        assert error.report is report
        assert str(error) == '{"errors":{"id":["must be greater than 0"]}}'
        assert error.errors == {"id": ["must be greater than 0"]}
        assert "must be greater than 0" in repr(error)


class Field(str, Enum):
    ID = "id"


class Number(Enum):
    ONE = 1


class TestIndifferentView:
    """Key normalization."""

    @pytest.mark.parametrize("key, expected", [
        ("id", "id"),
        (b"id", "id"),
        (bytearray(b"id"), "id"),
        (Field.ID, "id"),
        (Number.ONE, "1"),
        (1, "1"),
    ])
    def test_normalize_key(self, key, expected):
        assert normalize_key(key) == expected

    def test_lookup_any_form(self):
        view = IndifferentView({b"id": 1, Field.ID: 2, "name": "x"})
        assert view["id"] == 2
        assert view[b"name"] == "x"
        assert Field.ID in view
        assert len(view) == 2
        assert sorted(view) == ["id", "name"]

    def test_missing_key(self):
        view = IndifferentView({"id": 1})
        with pytest.raises(KeyError):
            view["name"]
        assert view.get("name") is None

    def test_wrapped_mapping_untouched(self):
        data = {b"id": 1}
        IndifferentView(data)
        assert data == {b"id": 1}
