"""
Unit tests for the LSP data models.
"""

import unittest

from src.lsp.models import (
    LspDocumentSymbol,
    LspHoverContent,
    LspHoverResult,
    LspLocation,
    LspSymbolInformation,
    parse_locations,
    parse_symbols,
    path_to_uri,
    uri_to_path,
)


def make_range(start_line, start_char, end_line, end_char):
    return {
        "start": {"line": start_line, "character": start_char},
        "end": {"line": end_line, "character": end_char},
    }


class TestUris(unittest.TestCase):

    def test_path_round_trip_with_spaces(self):
        uri = path_to_uri("/work/my project/a.ts")
        self.assertEqual(uri, "file:///work/my%20project/a.ts")
        self.assertEqual(uri_to_path(uri), "/work/my project/a.ts")

    def test_non_file_uri_unchanged(self):
        self.assertEqual(uri_to_path("untitled:Untitled-1"), "untitled:Untitled-1")


class TestLocations(unittest.TestCase):

    def test_null_result_stays_none(self):
        self.assertIsNone(parse_locations(None))

    def test_empty_list(self):
        self.assertEqual(parse_locations([]), [])

    def test_single_location_is_wrapped(self):
        locations = parse_locations({"uri": "file:///a.ts", "range": make_range(1, 2, 1, 5)})

        self.assertEqual(len(locations), 1)
        self.assertEqual(locations[0].path, "/a.ts")
        self.assertEqual(locations[0].to_dict(), {"uri": "file:///a.ts", "range": make_range(1, 2, 1, 5)})

    def test_location_link_prefers_selection_range(self):
        location = LspLocation.from_dict({
            "targetUri": "file:///b.ts",
            "targetRange": make_range(0, 0, 9, 1),
            "targetSelectionRange": make_range(0, 9, 0, 12),
        })

        self.assertEqual(location.uri, "file:///b.ts")
        self.assertEqual(location.range.start.character, 9)

    def test_location_link_without_selection_range(self):
        location = LspLocation.from_dict({"targetUri": "file:///b.ts", "targetRange": make_range(4, 0, 9, 1)})
        self.assertEqual(location.range.start.line, 4)

    def test_malformed_entries_are_skipped(self):
        locations = parse_locations([
            {"uri": "file:///a.ts"},
            "garbage",
            {"uri": "file:///a.ts", "range": make_range(3, 0, 3, 4)},
        ])
        self.assertEqual([loc.range.start.line for loc in locations], [3])


class TestSymbols(unittest.TestCase):

    def test_hierarchical_symbols(self):
        symbols = parse_symbols([{
            "name": "Calculator",
            "kind": 5,
            "range": make_range(0, 0, 10, 1),
            "selectionRange": make_range(0, 13, 0, 23),
            "children": [{
                "name": "add",
                "kind": 6,
                "range": make_range(1, 2, 3, 3),
                "selectionRange": make_range(1, 2, 1, 5),
            }],
        }])

        calculator = symbols[0]
        self.assertIsInstance(calculator, LspDocumentSymbol)
        self.assertEqual(calculator.identifying_position().character, 13)
        self.assertEqual(calculator.containing_range().end.line, 10)
        self.assertEqual(calculator.children[0].name, "add")

    def test_flat_symbol_information(self):
        symbols = parse_symbols([{
            "name": "main",
            "kind": 12,
            "location": {"uri": "file:///a.ts", "range": make_range(4, 0, 8, 1)},
            "containerName": "module",
        }])

        symbol = symbols[0]
        self.assertIsInstance(symbol, LspSymbolInformation)
        self.assertEqual(symbol.children, [])
        self.assertEqual(symbol.identifying_position().line, 4)
        self.assertEqual(symbol.containing_range().end.line, 8)
        self.assertEqual(symbol.container_name, "module")

    def test_missing_ranges(self):
        symbol = parse_symbols([{"name": "broken", "kind": 12}])[0]

        self.assertIsNone(symbol.identifying_position())
        self.assertIsNone(symbol.containing_range())

    def test_null_and_non_list(self):
        self.assertIsNone(parse_symbols(None))
        self.assertEqual(parse_symbols({"name": "x"}), [])


class TestHover(unittest.TestCase):

    def test_markup_content(self):
        hover = LspHoverResult.from_dict({"contents": {"kind": "markdown", "value": "**add**"}})
        self.assertEqual(hover.contents.value, "**add**")
        self.assertEqual(hover.contents.kind, "markdown")

    def test_marked_string_list(self):
        content = LspHoverContent.from_contents(["first", {"language": "ts", "value": "second"}, ""])
        self.assertEqual(content.value, "first\n\nsecond")

    def test_null_hover(self):
        self.assertIsNone(LspHoverResult.from_dict(None))


if __name__ == "__main__":
    unittest.main()
