"""
CSV line parser for the published-spreadsheet feed.

Handles the one dialect the sheet export uses: comma separated, fields
optionally wrapped in double quotes so they can carry literal commas
("1,234,567"). Doubled-quote escaping is not supported; malformed quoting
degrades to a best-effort split instead of raising.
"""

from __future__ import annotations

from typing import List, Tuple

DELIMITER = ","
QUOTE = '"'


def parse_line(line: str) -> List[str]:
    """
    Split one CSV line into field strings.

    A double quote toggles quoted mode and is dropped from the output;
    commas inside quoted mode are kept as content.

    Args:
        line: Raw text line (without the trailing newline).

    Returns:
        Field strings in column order. Empty input yields [""].
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == QUOTE:
            in_quotes = not in_quotes
        elif char == DELIMITER and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)

    fields.append("".join(current))
    return fields


def parse_csv(text: str) -> Tuple[List[str], List[List[str]]]:
    """
    Parse a whole CSV document into a header row and data rows.

    Leading/trailing whitespace of the document is ignored, ``\\r\\n`` line
    endings are accepted and blank lines are skipped.

    Returns:
        (header_fields, rows). Both are empty for an empty document.
    """
    lines = [line.rstrip("\r") for line in text.strip().split("\n")]
    lines = [line for line in lines if line.strip()]
    if not lines:
        return [], []

    header = parse_line(lines[0])
    rows = [parse_line(line) for line in lines[1:]]
    return header, rows
