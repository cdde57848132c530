"""Sibling matching between two sequences of nodes.

The query selector only relies on the :class:`NodeMatcher` contract: given two
node sequences, a context provider per side and a pairing selector, produce
``(control, test)`` pairs lazily. :class:`DefaultNodeMatcher` is the strategy
used when no other matcher is supplied.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Iterator, List, Optional, Protocol, Sequence, Set, Tuple

from .nodes import Node, is_element, node_kind
from .path_context import PathContext

if TYPE_CHECKING:  # pragma: no cover - for type checkers only
    from .selectors import Selector

ContextProvider = Callable[[Node], PathContext]
NodePair = Tuple[Node, Node]


class NodeMatcher(Protocol):
    def match(
        self,
        control_nodes: Sequence[Node],
        control_context_provider: ContextProvider,
        test_nodes: Sequence[Node],
        test_context_provider: ContextProvider,
        selector: "Selector",
    ) -> Iterator[NodePair]:
        ...


class DefaultNodeMatcher:
    """Pair each control node with the first acceptable unmatched test node.

    The search for a partner starts right after the test node matched last
    and wraps around to the beginning, so documents whose siblings appear in
    the same order are matched in a single forward pass. Elements are paired
    when ``selector`` accepts them; any other node pairs with the next
    unmatched node of the same kind.
    """

    def match(
        self,
        control_nodes: Sequence[Node],
        control_context_provider: ContextProvider,
        test_nodes: Sequence[Node],
        test_context_provider: ContextProvider,
        selector: "Selector",
    ) -> Iterator[NodePair]:
        tests: List[Node] = list(test_nodes)
        matched: Set[int] = set()
        last_match = -1
        for control in control_nodes:
            index = self._find_partner(
                control,
                control_context_provider,
                tests,
                test_context_provider,
                selector,
                matched,
                last_match,
            )
            if index is None:
                continue
            matched.add(index)
            last_match = index
            yield control, tests[index]

    def _find_partner(
        self,
        control: Node,
        control_context_provider: ContextProvider,
        tests: List[Node],
        test_context_provider: ContextProvider,
        selector: "Selector",
        matched: Set[int],
        last_match: int,
    ) -> Optional[int]:
        order = list(range(last_match + 1, len(tests))) + list(range(0, last_match + 1))
        for index in order:
            if index in matched:
                continue
            if self._accepts(
                control, control_context_provider, tests[index], test_context_provider, selector
            ):
                return index
        return None

    @staticmethod
    def _accepts(
        control: Node,
        control_context_provider: ContextProvider,
        test: Node,
        test_context_provider: ContextProvider,
        selector: "Selector",
    ) -> bool:
        if node_kind(control) is not node_kind(test):
            return False
        if not is_element(control):
            return True
        return selector(
            control,
            control_context_provider(control),
            test,
            test_context_provider(test),
        )
