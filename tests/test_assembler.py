"""Tests for page assembly."""

from pdf_xml_server.converter.assembler import assemble_page, contains_image_references
from pdf_xml_server.converter.models import (
    HeadingNode,
    ImageNode,
    ListNode,
    ParagraphNode,
    StructureCounts,
    TableNode,
)


class TestAssemblePage:
    """Tests for assemble_page."""

    def test_page_heading_comes_first(self):
        result = assemble_page(
            1, "Title\n\nThis is a paragraph.\n\nThis is another paragraph."
        )
        children = result.page.children

        assert result.page.page_number == 1
        assert children[0] == HeadingNode(text="Page 1", level=1)
        assert children[1] == HeadingNode(text="Title", level=1)
        assert children[2] == ParagraphNode(text="This is a paragraph.")
        assert children[3] == ParagraphNode(text="This is another paragraph.")
        # "paragraph" contains the keyword "graph"
        assert children[4] == ImageNode(src="image-1.png")
        assert result.counts == StructureCounts(paragraphs=2, images=1)

    def test_empty_page_has_only_heading(self):
        result = assemble_page(3, "")
        assert result.page.children == [HeadingNode(text="Page 3", level=1)]
        assert result.counts.total() == 0

    def test_consecutive_list_items_are_grouped(self):
        text = (
            "Shopping list\n\n- Milk\n\n- Eggs\n\n"
            "A paragraph in between, with punctuation.\n\n- Bread"
        )
        result = assemble_page(1, text)
        children = result.page.children

        assert isinstance(children[1], HeadingNode)
        assert children[2] == ListNode(items=["Milk", "Eggs"])
        assert isinstance(children[3], ParagraphNode)
        assert children[4] == ListNode(items=["Bread"])
        assert result.counts.lists == 2
        assert result.counts.paragraphs == 1

    def test_table_block(self):
        result = assemble_page(2, "Data\n\nName | Age | City\nAlice | 30 | Paris, France")
        table = result.page.children[2]

        assert isinstance(table, TableNode)
        assert table.rows == [["Name", "Age", "City"], ["Alice", "30", "Paris, France"]]
        assert result.counts.tables == 1

    def test_table_without_rows_falls_back_to_paragraph(self):
        """Aligned lines with no column gaps pass is_table but parse to nothing."""
        text = "Intro\n\nHello world, again here.\nFoo bar, baz words."
        result = assemble_page(1, text)

        assert result.page.children[2] == ParagraphNode(
            text="Hello world, again here.\nFoo bar, baz words."
        )
        assert result.counts == StructureCounts(paragraphs=1)

    def test_image_keyword_inside_word(self):
        result = assemble_page(1, "Intro\n\nThe infographic shows quarterly revenue, by region.")

        assert result.page.children[-1] == ImageNode(src="image-1.png")
        assert result.counts.images == 1

    def test_image_placeholder(self):
        result = assemble_page(4, "Results\n\nFigure 2: revenue by quarter, in millions.")
        image = result.page.children[-1]

        assert isinstance(image, ImageNode)
        assert image.src == "image-4.png"
        assert result.counts.images == 1

    def test_at_most_one_image_per_page(self):
        text = "Intro\n\nSee the chart, the diagram, and the photo here.\n\nAnother figure follows."
        result = assemble_page(1, text)
        images = [child for child in result.page.children if isinstance(child, ImageNode)]
        assert len(images) == 1
        assert result.counts.images == 1


class TestImageReferences:
    """Tests for image keyword detection."""

    def test_keyword_case_insensitive(self):
        assert contains_image_references("as shown in the CHARTS below")

    def test_keyword_inside_word_matches(self):
        assert contains_image_references("An autograph was collected.")

    def test_no_keyword(self):
        assert not contains_image_references("Plain text about quarterly revenue.")
