"""DOM-like view over :mod:`xml.etree.ElementTree` trees.

ElementTree keeps character data on ``.text`` and ``.tail`` instead of in
separate nodes, and represents comments and processing instructions as
elements whose ``tag`` is a factory function. Selectors need the DOM view: an
ordered list of direct children where text is a node of its own. This module
provides that view plus the identity and attribute accessors the selectors
compare.

Example:
    from element_selectors.nodes import parse_string, child_nodes, node_kind

    root = parse_string("<a>x<b/><!-- note -->y</a>")
    [node_kind(n).value for n in child_nodes(root)]
    # -> ['text', 'element', 'comment', 'text']

Notes:
    * CDATA sections are merged into text by the expat parser, so they show
      up as :class:`TextNode` instances like any other character data.
    * Namespace declarations (``xmlns``) are consumed by the parser and are
      never reported as attributes.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Union


class QName(NamedTuple):
    """Namespace URI (or ``None``) plus local name."""

    namespace: Optional[str]
    local: str

    @classmethod
    def from_clark(cls, name: str) -> "QName":
        """Parse ElementTree's ``{uri}local`` notation."""
        if name.startswith("{"):
            uri, _, local = name[1:].partition("}")
            return cls(uri or None, local)
        return cls(None, name)

    def __str__(self) -> str:
        if self.namespace:
            return f"{{{self.namespace}}}{self.local}"
        return self.local


class NodeKind(str, Enum):
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"
    PROCESSING_INSTRUCTION = "processing-instruction"


@dataclass(frozen=True, eq=False)
class TextNode:
    """A run of character data between two siblings (or at either end)."""

    value: str


Node = Union[ET.Element, TextNode]


def node_kind(node: Node) -> NodeKind:
    if isinstance(node, TextNode):
        return NodeKind.TEXT
    if node.tag is ET.Comment:
        return NodeKind.COMMENT
    if node.tag is ET.ProcessingInstruction:
        return NodeKind.PROCESSING_INSTRUCTION
    return NodeKind.ELEMENT


def is_text(node: Optional[Node]) -> bool:
    return isinstance(node, TextNode)


def is_element(node: Optional[Node]) -> bool:
    return node is not None and node_kind(node) is NodeKind.ELEMENT


def child_nodes(element: ET.Element) -> List[Node]:
    """Return every direct child of ``element`` in document order.

    Text held on ``element.text`` and on each child's ``tail`` is returned as
    a :class:`TextNode` in its document position. Empty strings produce no
    node.
    """
    nodes: List[Node] = []
    if element.text:
        nodes.append(TextNode(element.text))
    for child in element:
        nodes.append(child)
        if child.tail:
            nodes.append(TextNode(child.tail))
    return nodes


def get_qname(element: ET.Element) -> QName:
    return QName.from_clark(element.tag)


def get_attributes(element: ET.Element) -> Dict[QName, str]:
    """Return a fresh ``QName`` keyed copy of ``element``'s attributes."""
    return {QName.from_clark(key): value for key, value in element.attrib.items()}


def merged_direct_text(element: ET.Element) -> str:
    """Concatenate the element's immediate text children.

    Text nested inside child elements is not included.
    """
    return "".join(node.value for node in child_nodes(element) if is_text(node))


def _tree_builder_parser() -> ET.XMLParser:
    return ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))


def parse_document(path: Path) -> ET.Element:
    """Parse an XML file keeping comments and processing instructions.

    Raises:
        xml.etree.ElementTree.ParseError: If the document is not well formed.
        OSError: If the file cannot be read.
    """
    tree = ET.parse(Path(path), parser=_tree_builder_parser())
    return tree.getroot()


def parse_string(text: str) -> ET.Element:
    """Parse XML text keeping comments and processing instructions."""
    return ET.fromstring(text, parser=_tree_builder_parser())
