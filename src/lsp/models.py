#!/usr/bin/env python3
"""
Data models for LSP responses.

This module contains dataclasses representing structured results from LSP operations
such as hover, definition, references and document symbols. Raw JSON payloads are
converted once, at the point of receipt, by the ``from_dict`` constructors below.
"""

import enum
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote, unquote, urlparse


def path_to_uri(path: str) -> str:
    """Convert an absolute filesystem path to a file:// URI."""
    return "file://" + quote(os.path.abspath(path))


def uri_to_path(uri: str) -> str:
    """Convert a file:// URI back to a filesystem path.

    Strings that are not file URIs are returned unchanged.
    """
    if not uri.startswith("file://"):
        return uri
    return unquote(urlparse(uri).path)


@dataclass
class LspPosition:
    """Position in a document expressed as zero-based line and character offset."""
    line: int
    character: int

    @classmethod
    def from_dict(cls, pos_dict: Optional[Dict[str, Any]]) -> Optional["LspPosition"]:
        if not isinstance(pos_dict, dict) or "line" not in pos_dict or "character" not in pos_dict:
            return None
        return cls(line=int(pos_dict["line"]), character=int(pos_dict["character"]))

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass
class LspRange:
    """Range in a document expressed as start and end positions."""
    start: LspPosition
    end: LspPosition

    @classmethod
    def from_dict(cls, range_dict: Optional[Dict[str, Any]]) -> Optional["LspRange"]:
        if not isinstance(range_dict, dict):
            return None
        start = LspPosition.from_dict(range_dict.get("start"))
        end = LspPosition.from_dict(range_dict.get("end"))
        if start is None or end is None:
            return None
        return cls(start=start, end=end)

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


@dataclass
class LspLocation:
    """Location in a document expressed as a URI and a range."""
    uri: str
    range: LspRange

    @property
    def path(self) -> str:
        """Filesystem path of the document."""
        return uri_to_path(self.uri)

    @classmethod
    def from_dict(cls, loc_dict: Optional[Dict[str, Any]]) -> Optional["LspLocation"]:
        """Convert a Location or LocationLink dictionary.

        LocationLinks carry ``targetUri`` and prefer ``targetSelectionRange`` over
        ``targetRange``; both are folded into a plain location.
        """
        if not isinstance(loc_dict, dict):
            return None

        if "targetUri" in loc_dict:
            uri = loc_dict.get("targetUri")
            loc_range = LspRange.from_dict(loc_dict.get("targetSelectionRange")) \
                or LspRange.from_dict(loc_dict.get("targetRange"))
        else:
            uri = loc_dict.get("uri")
            loc_range = LspRange.from_dict(loc_dict.get("range"))

        if not uri or loc_range is None:
            return None
        return cls(uri=uri, range=loc_range)

    def to_dict(self) -> Dict[str, Any]:
        return {"uri": self.uri, "range": self.range.to_dict()}


def parse_locations(result: Any) -> Optional[List[LspLocation]]:
    """Normalize a definition/references result to a list of locations.

    Returns None when the server answered null, so callers can tell "nothing to
    report" apart from an empty list.
    """
    if result is None:
        return None
    if not isinstance(result, list):
        result = [result]
    locations = []
    for item in result:
        location = LspLocation.from_dict(item)
        if location is not None:
            locations.append(location)
    return locations


@dataclass
class LspDocumentSymbol:
    """Hierarchical symbol (``DocumentSymbol``) with nested children."""
    name: str
    kind: int
    range: Optional[LspRange]
    selection_range: Optional[LspRange]
    children: List["LspSymbol"] = field(default_factory=list)
    detail: Optional[str] = None

    def identifying_position(self) -> Optional[LspPosition]:
        """Position of the symbol's name token."""
        if self.selection_range is not None:
            return self.selection_range.start
        return None

    def containing_range(self) -> Optional[LspRange]:
        """Full extent of the declaration."""
        return self.range


@dataclass
class LspSymbolInformation:
    """Flat symbol (``SymbolInformation``) as returned by servers without
    hierarchical document symbol support."""
    name: str
    kind: int
    location: Optional[LspLocation]
    container_name: Optional[str] = None

    @property
    def children(self) -> List["LspSymbol"]:
        return []

    def identifying_position(self) -> Optional[LspPosition]:
        if self.location is not None:
            return self.location.range.start
        return None

    def containing_range(self) -> Optional[LspRange]:
        if self.location is not None:
            return self.location.range
        return None


LspSymbol = Union[LspDocumentSymbol, LspSymbolInformation]


def parse_symbol(sym_dict: Dict[str, Any]) -> LspSymbol:
    """Resolve one symbol payload into its variant."""
    name = sym_dict.get("name", "")
    kind = sym_dict.get("kind", 0)

    if "location" in sym_dict and "selectionRange" not in sym_dict:
        return LspSymbolInformation(
            name=name,
            kind=kind,
            location=LspLocation.from_dict(sym_dict.get("location")),
            container_name=sym_dict.get("containerName"),
        )

    children = [
        parse_symbol(child)
        for child in sym_dict.get("children") or []
        if isinstance(child, dict)
    ]
    return LspDocumentSymbol(
        name=name,
        kind=kind,
        range=LspRange.from_dict(sym_dict.get("range")),
        selection_range=LspRange.from_dict(sym_dict.get("selectionRange")),
        children=children,
        detail=sym_dict.get("detail"),
    )


def parse_symbols(result: Any) -> Optional[List[LspSymbol]]:
    """Convert a documentSymbol result; None when the server answered null."""
    if result is None:
        return None
    if not isinstance(result, list):
        return []
    return [parse_symbol(item) for item in result if isinstance(item, dict)]


@dataclass
class LspHoverContent:
    """Content of a hover message."""
    value: str
    kind: Optional[str] = None

    @classmethod
    def from_contents(cls, contents: Any) -> Optional["LspHoverContent"]:
        """Extract hover content from MarkupContent, MarkedString or a list of them."""
        if contents is None:
            return None

        if isinstance(contents, dict) and "value" in contents:
            # MarkedString objects carry "language" instead of "kind"
            return cls(value=contents.get("value", ""), kind=contents.get("kind"))
        elif isinstance(contents, str):
            return cls(value=contents)
        elif isinstance(contents, list):
            parts = [cls.from_contents(item) for item in contents]
            values = [part.value for part in parts if part and part.value]
            return cls(value="\n\n".join(values))

        return cls(value="")


@dataclass
class LspHoverResult:
    """Result of a hover request."""
    contents: Optional[LspHoverContent] = None
    range: Optional[LspRange] = None

    @classmethod
    def from_dict(cls, result: Optional[Dict[str, Any]]) -> Optional["LspHoverResult"]:
        if not isinstance(result, dict):
            return None
        return cls(
            contents=LspHoverContent.from_contents(result.get("contents")),
            range=LspRange.from_dict(result.get("range")),
        )


class OpenStatus(enum.Enum):
    """Outcome of announcing a document to the language server."""
    ALREADY_OPEN = "already_open"
    OPENED = "opened"
    # The file could not be read; nothing was sent and queries may come back empty
    DEGRADED = "degraded"
