"""Assemble one page's structural tree from its raw text."""

from pydantic import BaseModel, ConfigDict

from .classifier import classify
from .models import (
    BlockKind,
    HeadingNode,
    ImageNode,
    ListNode,
    PageChild,
    PageNode,
    ParagraphNode,
    StructureCounts,
    TableNode,
)
from .segmenter import segment

IMAGE_KEYWORDS = (
    "figure",
    "fig",
    "image",
    "photo",
    "picture",
    "diagram",
    "chart",
    "graph",
    "illustration",
    "screenshot",
    "drawing",
)


class PageAssembly(BaseModel):
    """A page tree and the element counts it contributes."""

    model_config = ConfigDict(frozen=True)

    page: PageNode
    counts: StructureCounts


def contains_image_references(text: str) -> bool:
    """Case-insensitive substring match against IMAGE_KEYWORDS."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in IMAGE_KEYWORDS)


def assemble_page(page_number: int, page_text: str) -> PageAssembly:
    """Segment, classify and group the text of one page.

    The first child is always a ``Page N`` heading. Consecutive list items
    share one list; a non-list block closes the current list. At most one
    image placeholder is appended per page.

    Args:
        page_number: 1-based page number.
        page_text: Text assigned to this page.

    Returns:
        PageAssembly with the page node and its counter deltas.
    """
    segments = segment(page_text)

    children: list[PageChild] = [HeadingNode(text=f"Page {page_number}", level=1)]
    paragraphs = tables = lists = images = 0
    list_items: list[str] = []

    for position, text in enumerate(segments):
        block = classify(text, position)

        if block.kind == BlockKind.LIST_ITEM:
            if not list_items:
                lists += 1
            list_items.append(block.text)
            continue

        if list_items:
            children.append(ListNode(items=list_items))
            list_items = []

        if block.kind == BlockKind.HEADING:
            children.append(HeadingNode(text=block.text, level=block.heading_level))
        elif block.kind == BlockKind.TABLE_ROW:
            children.append(TableNode(rows=block.rows))
            tables += 1
        else:
            children.append(ParagraphNode(text=block.text))
            paragraphs += 1

    if list_items:
        children.append(ListNode(items=list_items))

    if contains_image_references(" ".join(segments)):
        children.append(ImageNode(src=f"image-{page_number}.png"))
        images += 1

    return PageAssembly(
        page=PageNode(page_number=page_number, children=children),
        counts=StructureCounts(
            paragraphs=paragraphs, tables=tables, lists=lists, images=images
        ),
    )
