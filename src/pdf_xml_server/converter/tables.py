"""Table detection and row/column reconstruction for tabular segments."""

import re

from .models import Table

WHITESPACE_RUN_PATTERN = re.compile(r"\s+")


def _gap_count(line: str) -> int:
    return len(WHITESPACE_RUN_PATTERN.findall(line))


def is_table(segment: str) -> bool:
    """Check whether a segment looks like a pipe-delimited or space-aligned table.

    Args:
        segment: A paragraph candidate from the segmenter.

    Returns:
        True if the segment has at least two lines and either every line
        contains a ``|`` or every later line has as many whitespace gaps as
        the first line.
    """
    lines = segment.split("\n")
    if len(lines) < 2:
        return False

    if all("|" in line for line in lines):
        return True

    first_gaps = _gap_count(lines[0])
    return all(_gap_count(line) == first_gaps for line in lines[1:])


def _column_offsets(header: str) -> list[int]:
    """Find column start offsets in a space-aligned line.

    A single space stays inside a column; two or more spaces end it.
    """
    offsets = []
    in_word = False
    for i, char in enumerate(header):
        if not in_word and char != " ":
            offsets.append(i)
            in_word = True
        elif in_word and char == " " and (i + 1 >= len(header) or header[i + 1] == " "):
            in_word = False
    return offsets


def _parse_pipe_rows(lines: list[str]) -> list[list[str]]:
    rows = []
    for line in lines:
        cells = [cell.strip() for cell in line.split("|")]
        cells = [cell for cell in cells if cell]
        if cells:
            rows.append(cells)
    return rows


def _parse_aligned_rows(lines: list[str]) -> list[list[str]]:
    offsets = _column_offsets(lines[0])
    if len(offsets) < 2:
        return []

    rows = []
    for line in lines:
        cells = []
        for i, start in enumerate(offsets):
            end = offsets[i + 1] - 1 if i < len(offsets) - 1 else len(line)
            cells.append(line[start:end].strip())
        if any(cells):
            rows.append(cells)
    return rows


def parse_table(segment: str) -> Table:
    """Rebuild rows and cells from a tabular segment.

    Rows are parsed independently, so a pipe table whose rows disagree on
    cell count still yields every row that had at least one cell. Callers
    must check ``rows`` before treating the segment as a table.

    Args:
        segment: Segment that passed :func:`is_table`.

    Returns:
        Table whose rows may be empty.
    """
    lines = [line for line in segment.split("\n") if line.strip()]
    if not lines:
        return Table()

    if all("|" in line for line in lines):
        return Table(rows=_parse_pipe_rows(lines))
    return Table(rows=_parse_aligned_rows(lines))
