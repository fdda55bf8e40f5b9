"""
Call-graph resolution on top of LSP queries.

Answers "does function A call function B?" using only document outlines and
reference search: a reference to B's declaration that lies textually inside A's
declaration range counts as a call. This over-matches references that are not
calls (a parameter shadowing the name, taking the function's address) and misses
dynamic calls the language server does not resolve; both are accepted.
"""

import enum
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from src.lsp.models import LspLocation, LspRange, LspSymbol

# Configure logging
logger = logging.getLogger(__name__)


def normalize_path(file_path: str, root_path: str) -> str:
    """Absolute, normalized form of a path relative to the project root."""
    return os.path.normpath(os.path.join(root_path, file_path))


def find_symbol(symbols: Iterable[LspSymbol], name: str) -> Optional[LspSymbol]:
    """Depth-first, pre-order search for the first symbol named ``name``.

    Duplicate names are not disambiguated; the first one in outline order wins.
    """
    for symbol in symbols:
        if symbol.name == name:
            return symbol
        found = find_symbol(symbol.children, name)
        if found is not None:
            return found
    return None


def is_location_in_range(
    location: LspLocation, range_: LspRange, file_path: str, root_path: str
) -> bool:
    """Check whether a location lies inside a range of ``file_path``.

    Line-major comparison: on the range's first line the location must start at
    or after the range start character, on its last line it must end at or before
    the range end character, and lines in between always match.
    """
    if normalize_path(location.path, root_path) != normalize_path(file_path, root_path):
        return False

    loc_line = location.range.start.line
    start_line = range_.start.line
    end_line = range_.end.line

    if loc_line < start_line or loc_line > end_line:
        return False
    if loc_line == start_line and location.range.start.character < range_.start.character:
        return False
    if loc_line == end_line and location.range.end.character > range_.end.character:
        return False

    return True


class CallCheckOutcome(enum.Enum):
    """Which branch of the call check produced the result."""
    CALLS_FOUND = "calls_found"
    NO_CALLS = "no_calls"
    SOURCE_SYMBOLS_MISSING = "source_symbols_missing"
    SOURCE_FUNCTION_MISSING = "source_function_missing"
    TARGET_SYMBOLS_MISSING = "target_symbols_missing"
    TARGET_FUNCTION_MISSING = "target_function_missing"
    TARGET_POSITION_UNKNOWN = "target_position_unknown"
    # Server returned null for the reference search. A target with zero
    # references comes back as an empty list and ends in NO_CALLS instead.
    NO_REFERENCES = "no_references"
    SOURCE_RANGE_UNKNOWN = "source_range_unknown"


@dataclass
class CallCheckResult:
    outcome: CallCheckOutcome
    text: str
    calls: List[LspLocation] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.outcome is CallCheckOutcome.CALLS_FOUND


class CallGraphResolver:
    """Combines outline and reference queries into call checks.

    Args:
        client: Anything exposing the LSPClient query coroutines
        root_path: Project root that file paths are resolved against
    """

    def __init__(self, client, root_path: str):
        self._client = client
        self.root_path = os.path.abspath(root_path)

    async def check_function_call(
        self,
        source_file: str,
        source_function: str,
        target_file: str,
        target_function: str,
    ) -> CallCheckResult:
        """Determine whether ``source_function`` contains a reference to ``target_function``.

        Lookup misses are reported through the result's outcome; errors from the
        language server propagate.
        """
        logger.info(
            f"Checking call {source_function} ({source_file}) -> {target_function} ({target_file})"
        )

        # 1. Find the source function
        source_symbols = await self._client.get_document_symbols(source_file)
        if source_symbols is None:
            return CallCheckResult(CallCheckOutcome.SOURCE_SYMBOLS_MISSING, "Source file symbols not found")

        source_sym = find_symbol(source_symbols, source_function)
        if source_sym is None:
            return CallCheckResult(
                CallCheckOutcome.SOURCE_FUNCTION_MISSING,
                f"Source function '{source_function}' not found in {source_file}",
            )

        # 2. Find the target function and the position of its name
        target_symbols = await self._client.get_document_symbols(target_file)
        if target_symbols is None:
            return CallCheckResult(CallCheckOutcome.TARGET_SYMBOLS_MISSING, "Target file symbols not found")

        target_sym = find_symbol(target_symbols, target_function)
        if target_sym is None:
            return CallCheckResult(
                CallCheckOutcome.TARGET_FUNCTION_MISSING,
                f"Target function '{target_function}' not found in {target_file}",
            )

        target_pos = target_sym.identifying_position()
        if target_pos is None:
            return CallCheckResult(
                CallCheckOutcome.TARGET_POSITION_UNKNOWN,
                "Could not determine location of target symbol",
            )

        # 3. Find references of the target function
        references = await self._client.get_references(target_file, target_pos.line, target_pos.character)
        if references is None:
            return CallCheckResult(CallCheckOutcome.NO_REFERENCES, "No references found for target function")

        # 4. Keep references inside the source function's range
        source_range = source_sym.containing_range()
        if source_range is None:
            return CallCheckResult(
                CallCheckOutcome.SOURCE_RANGE_UNKNOWN,
                "Could not determine range of source symbol",
            )

        calls = [
            ref for ref in references
            if is_location_in_range(ref, source_range, source_file, self.root_path)
        ]
        logger.debug(f"{len(calls)} of {len(references)} references fall inside {source_function}")

        if calls:
            locations = json.dumps([call.to_dict() for call in calls], indent=2)
            return CallCheckResult(
                CallCheckOutcome.CALLS_FOUND,
                f"Yes, '{source_function}' calls '{target_function}' {len(calls)} times.\n"
                f"Locations: {locations}",
                calls,
            )
        return CallCheckResult(
            CallCheckOutcome.NO_CALLS,
            f"No direct call found from '{source_function}' to '{target_function}'.",
        )
