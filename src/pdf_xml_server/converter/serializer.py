"""Render a DocumentModel as pretty-printed XML."""

import re
import xml.etree.ElementTree as ET

from .models import (
    DocumentModel,
    HeadingNode,
    ImageNode,
    ListNode,
    PageChild,
    PageNode,
    ParagraphNode,
    TableNode,
)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

# Characters XML 1.0 does not allow, even escaped
_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def _clean(text: str) -> str:
    return _INVALID_XML_CHARS.sub("", text)


def _text_element(parent: ET.Element, tag: str, text: str, **attrs: str) -> ET.Element:
    element = ET.SubElement(parent, tag, {k: _clean(v) for k, v in attrs.items()})
    element.text = _clean(text)
    return element


def _append_child(section: ET.Element, child: PageChild) -> None:
    if isinstance(child, HeadingNode):
        _text_element(section, "heading", child.text, level=str(child.level))
    elif isinstance(child, ParagraphNode):
        _text_element(section, "paragraph", child.text)
    elif isinstance(child, ListNode):
        list_element = ET.SubElement(section, "list")
        for item in child.items:
            _text_element(list_element, "item", item)
    elif isinstance(child, TableNode):
        table_element = ET.SubElement(section, "table")
        for row in child.rows:
            row_element = ET.SubElement(table_element, "row")
            for cell in row:
                _text_element(row_element, "cell", cell)
    elif isinstance(child, ImageNode):
        ET.SubElement(
            section,
            "image",
            {
                "src": _clean(child.src),
                "alt": _clean(child.alt),
                "description": _clean(child.description),
            },
        )
    else:
        raise TypeError(f"Unsupported page child: {type(child).__name__}")


def _page_section(content: ET.Element, page: PageNode) -> None:
    section = ET.SubElement(content, "section", {"id": f"page-{page.page_number}"})
    for child in page.children:
        _append_child(section, child)


def build_tree(doc: DocumentModel) -> ET.Element:
    root = ET.Element("document")

    meta = doc.metadata
    metadata = ET.SubElement(root, "metadata")
    _text_element(metadata, "title", meta.title)
    _text_element(metadata, "author", meta.author)
    _text_element(metadata, "creator", meta.creator)
    _text_element(metadata, "producer", meta.producer)
    _text_element(metadata, "creationDate", meta.creation_date)
    _text_element(metadata, "fileSize", str(meta.file_size_bytes))
    _text_element(metadata, "pdfVersion", meta.pdf_version)

    content = ET.SubElement(root, "content")
    for page in doc.pages:
        _page_section(content, page)

    return root


def serialize(doc: DocumentModel) -> str:
    """Serialize a document to indented XML.

    Output depends only on the model, so serializing the same model twice
    gives identical strings. Text and attribute values are escaped.
    """
    root = build_tree(doc)
    ET.indent(root, space="  ")
    return f"{XML_DECLARATION}\n{ET.tostring(root, encoding='unicode')}\n"
