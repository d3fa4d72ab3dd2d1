#!/usr/bin/env python3
"""Verification script for inferred document structure.

Usage:
    python scripts/verify_conversion.py <pdf_path> [--pages N] [--xml]

Prints the page tree built for a PDF for manual review of the heuristics.
"""

import argparse
import sys
from pathlib import Path

from pdf_xml_server.converter import (
    DocumentBuilder,
    HeadingNode,
    ImageNode,
    ListNode,
    ParagraphNode,
    TableNode,
    extract_pdf,
    serialize,
)


def _describe(child) -> str:
    if isinstance(child, HeadingNode):
        return f"[H{child.level}] {child.text}"
    if isinstance(child, ParagraphNode):
        text = child.text[:200] + "..." if len(child.text) > 200 else child.text
        return f"[P] {text}"
    if isinstance(child, ListNode):
        return f"[L] {len(child.items)} items: {child.items[:3]}"
    if isinstance(child, TableNode):
        return f"[T] {len(child.rows)} rows, first: {child.rows[0] if child.rows else []}"
    if isinstance(child, ImageNode):
        return f"[I] {child.src}"
    return "[?]"


def main():
    parser = argparse.ArgumentParser(description="Verify inferred PDF structure")
    parser.add_argument("pdf_path", help="Path to PDF file")
    parser.add_argument(
        "--pages", type=int, default=5, help="Number of pages to display (default: 5)"
    )
    parser.add_argument("--xml", action="store_true", help="Print the serialized XML too")
    args = parser.parse_args()

    pdf_path = Path(args.pdf_path)
    if not pdf_path.exists():
        print(f"Error: File not found: {pdf_path}")
        sys.exit(1)

    print(f"Converting: {pdf_path}")
    print("=" * 80)

    document, stats = DocumentBuilder().build(extract_pdf(pdf_path))

    print(f"Total pages: {stats.page_count}")
    print(f"Structures: {stats.structures.model_dump()}")
    print(f"Accuracy: {stats.structure_accuracy}  Time: {stats.processing_time_ms}ms")
    print("=" * 80)

    for page in document.pages[: args.pages]:
        print(f"\n--- Page {page.page_number} ---")
        for child in page.children:
            print(f"  {_describe(child)}")

    if args.xml:
        print("\n" + "=" * 80)
        print(serialize(document))

    print("\n" + "=" * 80)
    print("Conversion complete.")


if __name__ == "__main__":
    main()
