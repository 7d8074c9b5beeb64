"""Tests for payload types and result-shape decoding."""

import pytest

from lsp import (
    CompletionItem,
    CompletionItems,
    CompletionList,
    DecodeError,
    Diagnostic,
    DiagnosticSeverity,
    EmptyCompletions,
    Location,
    LocationArray,
    NoDefinition,
    Position,
    Range,
    SingleLocation,
    parse_completion_result,
    parse_definition_result,
)


def raw_range(line, start, end):
    return {"start": {"line": line, "character": start}, "end": {"line": line, "character": end}}


class TestDiagnostic:
    def test_from_wire(self):
        diag = Diagnostic.model_validate({
            "range": raw_range(10, 5, 15),
            "severity": 2,
            "message": "Unused variable",
            "source": "pyflakes",
            "code": "F841",
        })
        assert diag.severity == DiagnosticSeverity.WARNING
        assert diag.range.start.line == 10
        assert diag.code == "F841"

    def test_defaults(self):
        diag = Diagnostic.model_validate({"range": raw_range(0, 0, 1), "message": "bad"})
        assert diag.severity == DiagnosticSeverity.ERROR
        assert diag.source == ""
        assert diag.code is None

    def test_pretty_format(self):
        diag = Diagnostic(
            range=Range(start=Position(line=4, character=2), end=Position(line=4, character=8)),
            severity=DiagnosticSeverity.WARNING,
            message="unused import",
            source="pyflakes",
        )
        assert diag.pretty_format() == "WARN [pyflakes] [5:3] unused import"


class TestCompletionItem:
    def test_kind_name(self):
        assert CompletionItem(label="x", kind=3).kind_name == "function"
        assert CompletionItem(label="x").kind_name == ""
        assert CompletionItem(label="x", kind=99).kind_name == ""

    def test_text_to_insert(self):
        assert CompletionItem(label="foo").text_to_insert == "foo"
        assert CompletionItem(label="foo", insertText="foo()").text_to_insert == "foo()"

    def test_unknown_fields_ignored(self):
        item = CompletionItem.model_validate({"label": "x", "data": {"opaque": 1}, "preselect": True})
        assert item.label == "x"


class TestParseCompletionResult:
    def test_null_is_empty(self):
        result = parse_completion_result(None)
        assert isinstance(result, EmptyCompletions)
        assert result.items == []

    def test_bare_array(self):
        result = parse_completion_result([{"label": "a"}, {"label": "b"}])
        assert isinstance(result, CompletionItems)
        assert [item.label for item in result.items] == ["a", "b"]

    def test_completion_list(self):
        result = parse_completion_result({"isIncomplete": True, "items": [{"label": "a", "kind": 6}]})
        assert isinstance(result, CompletionList)
        assert result.is_incomplete is True
        assert result.items[0].kind == 6

    def test_list_and_array_give_same_items(self):
        raw = [{"label": "alpha", "kind": 6}, {"label": "beta", "kind": 3}]
        from_array = parse_completion_result(raw)
        from_list = parse_completion_result({"isIncomplete": False, "items": raw})
        assert from_array.items == from_list.items

    def test_non_list_items_treated_as_empty(self):
        result = parse_completion_result({"isIncomplete": False, "items": None})
        assert isinstance(result, CompletionList)
        assert result.items == []

    def test_bad_items_skipped(self):
        result = parse_completion_result([{"label": "ok"}, {"kind": 3}, "junk"])
        assert [item.label for item in result.items] == ["ok"]

    def test_unknown_shape(self):
        with pytest.raises(DecodeError):
            parse_completion_result("nope")


class TestParseDefinitionResult:
    def test_null(self):
        result = parse_definition_result(None)
        assert isinstance(result, NoDefinition)
        assert result.location is None

    def test_single_location(self):
        result = parse_definition_result({"uri": "file:///a.py", "range": raw_range(3, 0, 4)})
        assert isinstance(result, SingleLocation)
        assert result.location.uri == "file:///a.py"
        assert result.location.range.start.line == 3

    def test_location_array(self):
        result = parse_definition_result([
            {"uri": "file:///a.py", "range": raw_range(1, 0, 1)},
            {"uri": "file:///b.py", "range": raw_range(2, 0, 1)},
        ])
        assert isinstance(result, LocationArray)
        assert [loc.uri for loc in result.locations] == ["file:///a.py", "file:///b.py"]
        assert result.location.uri == "file:///a.py"

    def test_empty_array(self):
        result = parse_definition_result([])
        assert isinstance(result, LocationArray)
        assert result.location is None

    def test_location_link_uses_selection_range(self):
        result = parse_definition_result([{
            "targetUri": "file:///lib.py",
            "targetRange": raw_range(10, 0, 40),
            "targetSelectionRange": raw_range(10, 4, 9),
        }])
        assert result.location == Location(
            uri="file:///lib.py",
            range=Range(start=Position(line=10, character=4), end=Position(line=10, character=9)),
        )

    def test_invalid_location(self):
        with pytest.raises(DecodeError):
            parse_definition_result({"uri": "file:///a.py"})

    def test_invalid_entry_in_array(self):
        with pytest.raises(DecodeError):
            parse_definition_result([{"uri": "file:///a.py", "range": raw_range(0, 0, 1)}, {"bad": 1}])

    def test_unknown_shape(self):
        with pytest.raises(DecodeError):
            parse_definition_result(42)

    def test_pretty_format(self):
        location = parse_definition_result({"uri": "file:///a.py", "range": raw_range(0, 4, 8)}).location
        assert location.pretty_format() == "file:///a.py:1:5"
