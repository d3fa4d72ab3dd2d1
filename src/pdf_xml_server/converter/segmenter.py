"""Split page text into paragraph-sized segments."""

import re

# Blank line, or a line break followed by an indented run
BLOCK_BREAK_PATTERN = re.compile(r"\n\s*\n|\n\s{3,}")

# Single line break, or whitespace after a period that precedes a capital
LINE_OR_SENTENCE_PATTERN = re.compile(r"\n|(?<=\.)\s+(?=[A-Z])")

SENTENCE_PATTERN = re.compile(r"(?<=[.?!])\s+(?=[A-Z])")

# Inputs at or below this length are never split on lines or sentences
MIN_FALLBACK_LENGTH = 200

# Fragments shorter than this without terminal punctuation are continuations
CONTINUATION_MAX_LENGTH = 30
TERMINAL_PUNCTUATION = (".", ":", "?", "!")


def _split(pattern: re.Pattern, text: str) -> list[str]:
    return [part.strip() for part in pattern.split(text) if part and part.strip()]


def merge_continuations(fragments: list[str]) -> list[str]:
    """Fold short, unterminated fragments into the fragment that follows them.

    A trailing continuation with nothing after it is appended to the last
    merged fragment instead.
    """
    merged: list[str] = []
    pending = ""

    for fragment in fragments:
        if (
            len(fragment) < CONTINUATION_MAX_LENGTH
            and not fragment.endswith(TERMINAL_PUNCTUATION)
        ):
            pending = f"{pending} {fragment}".strip()
            continue

        merged.append(f"{pending} {fragment}".strip() if pending else fragment)
        pending = ""

    if pending:
        if merged:
            merged[-1] = f"{merged[-1]} {pending}"
        else:
            merged.append(pending)

    return merged


def segment(page_text: str) -> list[str]:
    """Split raw page text into trimmed paragraph candidates.

    Rules are tried in order and the first one producing more than one
    segment wins:

    1. blank lines or indented line breaks
    2. (long text only) single line breaks and sentence ends, with
       continuation fragments merged forward
    3. (long text only) sentence boundaries

    Args:
        page_text: Text of one page.

    Returns:
        Ordered list of non-empty segments; empty for blank input.
    """
    if not page_text or not page_text.strip():
        return []

    segments = _split(BLOCK_BREAK_PATTERN, page_text)
    if len(segments) > 1 or len(page_text) <= MIN_FALLBACK_LENGTH:
        return segments

    by_lines = merge_continuations(_split(LINE_OR_SENTENCE_PATTERN, page_text))
    if len(by_lines) > 1:
        return by_lines

    by_sentences = _split(SENTENCE_PATTERN, page_text)
    if len(by_sentences) > 1:
        return by_sentences

    return segments
