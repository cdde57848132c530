"""Addressable cursor into one of the two trees being compared.

A :class:`PathContext` is a stack of frames. The bottom frame stands for the
document itself; every other frame stands for one node and knows the XPath
step that leads to it from its parent. Each frame also holds the ordered set
of child frames registered as *selectable* at that level. Selectors register
children with :meth:`PathContext.set_children` and then move into one of them
with :meth:`PathContext.navigate_to_child`, or, preferably, with the
:meth:`PathContext.child` context manager which always restores the parent
position on exit.

Example:
    from element_selectors.nodes import child_nodes, parse_string
    from element_selectors.path_context import PathContext

    root = parse_string("<a>t<b/><b/></a>")
    ctx = PathContext(root)
    ctx.to_xpath()                       # '/a[1]'
    ctx.set_children(child_nodes(root))
    with ctx.child(2):
        ctx.to_xpath()                   # '/a[1]/b[2]'
    ctx.to_xpath()                       # '/a[1]'

One context is bound to exactly one tree for the duration of one top-level
pairing decision. Contexts are not thread safe and must not be shared between
concurrent decisions.
"""

from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from .nodes import Node, NodeKind, QName, get_qname, node_kind


@dataclass(frozen=True)
class NodeInfo:
    """Just enough about a node to derive its XPath step."""

    kind: NodeKind
    name: Optional[QName] = None

    @classmethod
    def from_node(cls, node: Node) -> "NodeInfo":
        kind = node_kind(node)
        if kind is NodeKind.ELEMENT:
            return cls(kind, get_qname(node))
        return cls(kind)


class _Frame:
    __slots__ = ("expression", "key", "children", "attributes")

    def __init__(self, expression: str, key: str = "") -> None:
        self.expression = expression
        # expression without the positional predicate, used for counting
        self.key = key
        self.children: List[_Frame] = []
        self.attributes: Dict[QName, _Frame] = {}


_KIND_STEPS = {
    NodeKind.TEXT: "text()",
    NodeKind.COMMENT: "comment()",
    NodeKind.PROCESSING_INSTRUCTION: "processing-instruction()",
}


class PathContext:
    """Stack-like cursor with per-level registered children.

    Args:
        root: Optional node to start at. When given, the context registers it
            as the only child of the document frame and descends into it.
        prefixes: Optional prefix → namespace URI mapping used when rendering
            element steps in :meth:`to_xpath`.
    """

    def __init__(
        self,
        root: Optional[Node] = None,
        prefixes: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._uri_to_prefix: Dict[str, str] = {
            uri: prefix for prefix, uri in (prefixes or {}).items()
        }
        self._path: List[_Frame] = [_Frame("")]
        if root is not None:
            self.set_children([root])
            self.navigate_to_child(0)

    @property
    def depth(self) -> int:
        """Number of frames on the stack (1 at the document level)."""
        return len(self._path)

    @property
    def child_count(self) -> int:
        return len(self._path[-1].children)

    def navigate_to_child(self, index: int) -> None:
        """Move into the ``index``-th registered child of the current level.

        Raises:
            IndexError: If no child is registered at ``index``.
        """
        if index < 0:
            raise IndexError(f"child index must not be negative: {index}")
        self._path.append(self._path[-1].children[index])

    def navigate_to_attribute(self, name: QName) -> None:
        """Move onto a registered attribute of the current node.

        Raises:
            KeyError: If ``name`` was never registered with
                :meth:`add_attributes`.
        """
        self._path.append(self._path[-1].attributes[name])

    def navigate_to_parent(self) -> None:
        if len(self._path) == 1:
            raise IndexError("already at the document level")
        self._path.pop()

    @contextmanager
    def child(self, index: int) -> Iterator["PathContext"]:
        """Descend into child ``index`` for the duration of a ``with`` block."""
        self.navigate_to_child(index)
        try:
            yield self
        finally:
            self.navigate_to_parent()

    def set_children(self, nodes: Iterable[Union[Node, NodeInfo]]) -> None:
        """Replace the selectable children of the current level."""
        self._path[-1].children.clear()
        self.add_children(nodes)

    def add_children(self, nodes: Iterable[Union[Node, NodeInfo]]) -> None:
        """Append selectable children to the current level."""
        current = self._path[-1]
        counts: Dict[str, int] = {}
        for frame in current.children:
            counts[frame.key] = counts.get(frame.key, 0) + 1
        for node in nodes:
            info = node if isinstance(node, NodeInfo) else NodeInfo.from_node(node)
            key = self._step(info)
            counts[key] = counts.get(key, 0) + 1
            current.children.append(_Frame(f"{key}[{counts[key]}]", key))

    def add_attributes(self, names: Iterable[QName]) -> None:
        current = self._path[-1]
        for name in names:
            current.attributes[name] = _Frame(f"@{self._qualified(name)}")

    def to_xpath(self) -> str:
        """Render the current position as an absolute XPath expression."""
        return "/" + "/".join(frame.expression for frame in self._path[1:])

    def clone(self) -> "PathContext":
        """Return an independent copy positioned where this context is."""
        return copy.deepcopy(self)

    def _step(self, info: NodeInfo) -> str:
        if info.kind is NodeKind.ELEMENT and info.name is not None:
            return self._qualified(info.name)
        return _KIND_STEPS[info.kind]

    def _qualified(self, name: QName) -> str:
        prefix = self._uri_to_prefix.get(name.namespace) if name.namespace else None
        return f"{prefix}:{name.local}" if prefix else name.local

    def __repr__(self) -> str:
        return f"PathContext({self.to_xpath()!r})"


class ChildNodeContextProvider:
    """Hand out contexts positioned at members of a registered child sequence.

    The index used is the node's position within ``children`` (the sequence
    that was registered with :meth:`PathContext.set_children`), not its raw
    sibling position in the tree.
    """

    def __init__(self, context: PathContext, children: Sequence[Node]) -> None:
        self._context = context
        self._children = list(children)

    def __call__(self, node: Node) -> PathContext:
        for index, candidate in enumerate(self._children):
            if candidate is node:
                context = self._context.clone()
                context.navigate_to_child(index)
                return context
        raise ValueError("node is not part of the registered child sequence")
