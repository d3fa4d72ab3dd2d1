"""Rule-based classification of page segments into typed blocks."""

import re
from functools import lru_cache
from typing import Callable

from .models import Block, BlockKind
from .tables import is_table, parse_table

HEADING_PREFIX_PATTERN = re.compile(r"^(chapter|section|\d+\.\d+|\d+\.)\s+", re.IGNORECASE)

BULLET_PATTERN = re.compile(r"^\s*[•\-*]+\s")
NUMBERED_PATTERN = re.compile(r"^\s*\d+[.)]\s")
LETTERED_PATTERN = re.compile(r"^\s*[a-z][.)]\s", re.IGNORECASE)
LIST_MARKER_PATTERN = re.compile(r"^(?:\s*[•\-*]+\s|\s*\d+[.)]\s|\s*[a-z][.)]\s)", re.IGNORECASE)

Predicate = Callable[[str, int], bool]
Transform = Callable[[str, int], Block]


@lru_cache(maxsize=256)
def _table_rows(text: str) -> tuple[tuple[str, ...], ...]:
    if not is_table(text):
        return ()
    return tuple(tuple(row) for row in parse_table(text).rows)


def _is_uppercase(text: str) -> bool:
    return text.upper() == text


def is_heading(text: str, position: int) -> bool:
    if BULLET_PATTERN.match(text):
        return False

    length = len(text)
    return (
        (position == 0 and length < 100)
        or (length < 70 and "." not in text and "," not in text)
        or (length < 80 and _is_uppercase(text) and length > 10)
        or HEADING_PREFIX_PATTERN.match(text) is not None
    )


def heading_level(text: str, position: int) -> int:
    length = len(text)
    if position == 0 and length < 60:
        return 1
    if length < 30 or (_is_uppercase(text) and length > 10):
        return 2
    return 3


def is_list_item(text: str, position: int = 0) -> bool:
    return bool(
        BULLET_PATTERN.match(text)
        or NUMBERED_PATTERN.match(text)
        or LETTERED_PATTERN.match(text)
    )


def clean_list_item(text: str) -> str:
    """Strip the leading bullet, number or letter marker."""
    return LIST_MARKER_PATTERN.sub("", text, count=1).strip()


def is_table_block(text: str, position: int) -> bool:
    return bool(_table_rows(text))


def _heading(text: str, position: int) -> Block:
    return Block(
        kind=BlockKind.HEADING,
        text=text,
        order=position,
        heading_level=heading_level(text, position),
    )


def _list_item(text: str, position: int) -> Block:
    return Block(kind=BlockKind.LIST_ITEM, text=clean_list_item(text), order=position)


def _table(text: str, position: int) -> Block:
    rows = [list(row) for row in _table_rows(text)]
    return Block(kind=BlockKind.TABLE_ROW, text=text, order=position, rows=rows)


def _paragraph(text: str, position: int) -> Block:
    return Block(kind=BlockKind.PARAGRAPH, text=text, order=position)


# Evaluated top to bottom; the first matching predicate decides the block kind.
CLASSIFICATION_RULES: list[tuple[Predicate, Transform]] = [
    (is_heading, _heading),
    (is_list_item, _list_item),
    (is_table_block, _table),
]


def classify(segment: str, position: int) -> Block:
    """Label a segment as heading, list item, table or paragraph.

    Args:
        segment: Trimmed segment text.
        position: Index of the segment on its page.

    Returns:
        The classified Block. Same inputs always give the same Block.
    """
    for predicate, transform in CLASSIFICATION_RULES:
        if predicate(segment, position):
            return transform(segment, position)
    return _paragraph(segment, position)
