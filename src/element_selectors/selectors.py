"""Element selectors: rules deciding whether two elements may be paired.

A selector is any callable taking ``(control_element, control_context,
test_element, test_context)`` and returning a bool. It answers one question:
are these two elements the same logical node, and therefore worth comparing
in detail? It never decides *what* differs.

Building blocks:
    * Name and attribute based selectors (:func:`by_name`,
      :func:`by_name_and_text`, :func:`by_name_and_attributes`,
      :func:`by_name_and_attributes_control_ns`,
      :func:`by_name_and_all_attributes`).
    * Combinators (:func:`not_`, :func:`or_`, :func:`and_`, :func:`xor`,
      :func:`conditional_selector`, :func:`selector_for_element_named`).
    * :func:`by_xpath`, which pairs a path-selected subset of children with a
      sibling matcher.
    * :func:`by_name_and_text_rec`, a strict positional comparison of whole
      subtrees that ignores interleaved text.

Example:
    from element_selectors import selectors as es

    selector = es.or_(
        es.selector_for_element_named("Wall", es.by_name_and_attributes("id")),
        es.by_name,
    )
    selector(control_wall, control_ctx, test_wall, test_ctx)

All constructors validate their arguments eagerly and raise
:class:`~element_selectors.exceptions.InvalidConfiguration`; built selectors
never raise while evaluating a pair.
"""

from __future__ import annotations

import copy
import logging
import xml.etree.ElementTree as ET
from typing import Callable, List, Mapping, Optional, Sequence, Tuple, Union

from .comparison import attributes_equal_for_keys, both_none_or_equal, identity_equal
from .exceptions import InvalidConfiguration
from .matcher import DefaultNodeMatcher, NodeMatcher
from .nodes import (
    Node,
    QName,
    child_nodes,
    get_attributes,
    get_qname,
    is_element,
    is_text,
    merged_direct_text,
    node_kind,
)
from .path_context import ChildNodeContextProvider, PathContext
from .xpath import ElementPathEngine

logger = logging.getLogger(__name__)

Element = Optional[ET.Element]
Selector = Callable[[Element, PathContext, Element, PathContext], bool]
Predicate = Callable[[Element, PathContext], bool]


def _require(value, what: str) -> None:
    if value is None:
        raise InvalidConfiguration(f"{what} must not be None")


def _require_callable(value, what: str) -> None:
    _require(value, what)
    if not callable(value):
        raise InvalidConfiguration(f"{what} must be callable, got {type(value).__name__}")


def _require_all(values: Sequence, what: str, check=_require) -> None:
    if values is None:
        raise InvalidConfiguration(f"{what} must not be None")
    for value in values:
        if value is None:
            raise InvalidConfiguration(f"{what} must not contain None values")
        check(value, what)


# ---------------- Name and attribute selectors ---------------- #


def default(
    control_element: Element,
    control_context: PathContext,
    test_element: Element,
    test_context: PathContext,
) -> bool:
    """Accept every pair; elements end up compared in document order."""
    return True


def by_name(
    control_element: Element,
    control_context: PathContext,
    test_element: Element,
    test_context: PathContext,
) -> bool:
    """Pair elements sharing local name and namespace URI."""
    return (
        control_element is not None
        and test_element is not None
        and identity_equal(get_qname(control_element), get_qname(test_element))
    )


def by_name_and_text(
    control_element: Element,
    control_context: PathContext,
    test_element: Element,
    test_context: PathContext,
) -> bool:
    """:func:`by_name` plus equal merged direct text."""
    return by_name(
        control_element, control_context, test_element, test_context
    ) and both_none_or_equal(
        merged_direct_text(control_element), merged_direct_text(test_element)
    )


def by_name_and_attributes(*attributes: Union[str, QName]) -> Selector:
    """Pair elements by name plus the values of the given attributes.

    Args:
        *attributes: Plain strings name attributes in no namespace;
            :class:`~element_selectors.nodes.QName` instances are used as
            given.

    Raises:
        InvalidConfiguration: If any entry is ``None``.
    """
    _require_all(attributes, "attributes")
    keys = [name if isinstance(name, QName) else QName(None, name) for name in attributes]

    def selector(
        control_element: Element,
        control_context: PathContext,
        test_element: Element,
        test_context: PathContext,
    ) -> bool:
        if not by_name(control_element, control_context, test_element, test_context):
            return False
        return attributes_equal_for_keys(
            get_attributes(control_element), get_attributes(test_element), keys
        )

    return selector


def by_name_and_attributes_control_ns(*attributes: str) -> Selector:
    """Pair elements by name plus attributes, namespaces taken from the control.

    For each local name the namespace is the one the control element's own
    attribute of that name carries (no namespace if the control element has
    no such attribute). The same key is then looked up on both elements.
    """
    _require_all(attributes, "attributes")
    local_names = set(attributes)

    def selector(
        control_element: Element,
        control_context: PathContext,
        test_element: Element,
        test_context: PathContext,
    ) -> bool:
        if not by_name(control_element, control_context, test_element, test_context):
            return False
        control_attributes = get_attributes(control_element)
        keys = {name.local: name for name in control_attributes if name.local in local_names}
        for local in local_names:
            keys.setdefault(local, QName(None, local))
        return attributes_equal_for_keys(
            control_attributes, get_attributes(test_element), keys.values()
        )

    return selector


def by_name_and_all_attributes(
    control_element: Element,
    control_context: PathContext,
    test_element: Element,
    test_context: PathContext,
) -> bool:
    """Pair elements by name whose attribute sets are identical."""
    if not by_name(control_element, control_context, test_element, test_context):
        return False
    control_attributes = get_attributes(control_element)
    test_attributes = get_attributes(test_element)
    if len(control_attributes) != len(test_attributes):
        return False
    return attributes_equal_for_keys(control_attributes, test_attributes, control_attributes)


# ---------------- Combinators ---------------- #


def not_(selector: Selector) -> Selector:
    _require_callable(selector, "selector")

    def negated(
        control_element: Element,
        control_context: PathContext,
        test_element: Element,
        test_context: PathContext,
    ) -> bool:
        return not selector(control_element, control_context, test_element, test_context)

    return negated


def or_(*selectors: Selector) -> Selector:
    """Accept when any selector accepts; evaluated in order, stops at the first True."""
    _require_all(selectors, "selectors", _require_callable)
    members = list(selectors)

    def any_of(
        control_element: Element,
        control_context: PathContext,
        test_element: Element,
        test_context: PathContext,
    ) -> bool:
        return any(
            s(control_element, control_context, test_element, test_context) for s in members
        )

    return any_of


def and_(*selectors: Selector) -> Selector:
    """Accept when every selector accepts; evaluated in order, stops at the first False."""
    _require_all(selectors, "selectors", _require_callable)
    members = list(selectors)

    def all_of(
        control_element: Element,
        control_context: PathContext,
        test_element: Element,
        test_context: PathContext,
    ) -> bool:
        return all(
            s(control_element, control_context, test_element, test_context) for s in members
        )

    return all_of


def xor(first: Selector, second: Selector) -> Selector:
    """Accept when exactly one of the two selectors accepts. Both always run."""
    _require_callable(first, "first selector")
    _require_callable(second, "second selector")

    def exclusive(
        control_element: Element,
        control_context: PathContext,
        test_element: Element,
        test_context: PathContext,
    ) -> bool:
        a = first(control_element, control_context, test_element, test_context)
        b = second(control_element, control_context, test_element, test_context)
        return bool(a) != bool(b)

    return exclusive


def conditional_selector(predicate: Predicate, selector: Selector) -> Selector:
    """Apply ``selector`` only where ``predicate`` holds for the control element.

    The predicate sees ``(control_element, control_context)``. When it
    answers False the result is False and ``selector`` is not evaluated.
    """
    _require_callable(predicate, "predicate")
    _require_callable(selector, "selector")

    def guarded(
        control_element: Element,
        control_context: PathContext,
        test_element: Element,
        test_context: PathContext,
    ) -> bool:
        return bool(predicate(control_element, control_context)) and selector(
            control_element, control_context, test_element, test_context
        )

    return guarded


def element_name_predicate(expected_name: str) -> Predicate:
    """Guard matching elements whose local name is ``expected_name``."""
    _require(expected_name, "expected_name")

    def named(element: Element, context: PathContext) -> bool:
        return element is not None and get_qname(element).local == expected_name

    return named


def element_qname_predicate(expected_name: QName) -> Predicate:
    """Guard matching elements whose qualified name is ``expected_name``."""
    _require(expected_name, "expected_name")

    def named(element: Element, context: PathContext) -> bool:
        return element is not None and get_qname(element) == expected_name

    return named


def name_predicate(expected_name: Union[str, QName]) -> Predicate:
    if isinstance(expected_name, QName):
        return element_qname_predicate(expected_name)
    return element_name_predicate(expected_name)


def selector_for_element_named(expected_name: Union[str, QName], selector: Selector) -> Selector:
    """Shortcut for :func:`conditional_selector` with a name guard."""
    return conditional_selector(name_predicate(expected_name), selector)


# ---------------- Query delegation ---------------- #


def by_xpath(
    expression: str,
    child_selector: Selector,
    namespaces: Optional[Mapping[str, str]] = None,
    engine: Optional[ElementPathEngine] = None,
    matcher: Optional[NodeMatcher] = None,
) -> Selector:
    """Pair elements whose path-selected children can all be matched.

    The expression is evaluated against both elements. The control results are
    matched against the test results with ``matcher`` (a
    :class:`~element_selectors.matcher.DefaultNodeMatcher` unless given),
    using ``child_selector`` to pair members. The elements are paired when
    every control result found a partner; surplus test results do not count
    against the pair.

    Args:
        expression: ElementPath expression relative to the element, for
            example ``"./vehicle/engine/car"``.
        child_selector: Selector used to pair the selected children.
        namespaces: Optional prefix → URI bindings for ``expression``.
        engine: Query engine; defaults to
            :class:`~element_selectors.xpath.ElementPathEngine`. When
            ``namespaces`` is given as well, a copy of the engine receives
            the bindings and ``engine`` itself is left untouched.
        matcher: Sibling matcher; defaults to
            :class:`~element_selectors.matcher.DefaultNodeMatcher`.

    Raises:
        InvalidConfiguration: If ``expression`` or ``child_selector`` is
            missing, or the expression does not compile.
    """
    _require(expression, "expression")
    _require_callable(child_selector, "child_selector")
    if engine is None:
        engine = ElementPathEngine(namespaces)
    elif namespaces is not None:
        # bind on a copy; the caller's engine may back other selectors
        engine = copy.copy(engine)
        engine.namespace_context = namespaces
    validate = getattr(engine, "validate", None)
    if validate is not None:
        validate(expression)
    matcher = matcher or DefaultNodeMatcher()

    def selector(
        control_element: Element,
        control_context: PathContext,
        test_element: Element,
        test_context: PathContext,
    ) -> bool:
        if control_element is None or test_element is None:
            return False
        control_children = _select_and_register(
            engine, expression, control_element, control_context
        )
        test_children = _select_and_register(engine, expression, test_element, test_context)
        expected = len(control_children)
        matched = sum(
            1
            for _ in matcher.match(
                control_children,
                ChildNodeContextProvider(control_context, control_children),
                test_children,
                ChildNodeContextProvider(test_context, test_children),
                child_selector,
            )
        )
        logger.debug(
            f"{expression} at {control_context.to_xpath()}: "
            f"matched {matched} of {expected} control candidates"
        )
        return matched == expected

    return selector


def _select_and_register(
    engine: ElementPathEngine, expression: str, element: ET.Element, context: PathContext
) -> List[Node]:
    nodes = list(engine.select_nodes(expression, element))
    context.set_children(nodes)
    return nodes


# ---------------- Recursive structural comparison ---------------- #


def by_name_and_text_rec(
    control_element: Element,
    control_context: PathContext,
    test_element: Element,
    test_context: PathContext,
) -> bool:
    """Pair elements whose whole subtrees line up, ignoring interleaved text.

    Both elements must satisfy :func:`by_name_and_text`. Their non-text
    children are then walked position by position: children of different
    node kinds reject the pair, child elements are compared the same way,
    and any leftover non-text child on either side rejects the pair. There is
    no search for an alternative alignment.

    The walk keeps its own stack of open levels, so subtree depth is not
    bounded by the interpreter's recursion limit. Both contexts are back at
    the level they started on when the call returns.
    """
    if not by_name_and_text(control_element, control_context, test_element, test_context):
        return False

    levels = [
        _Alignment(
            _register_children(control_element, control_context),
            _register_children(test_element, test_context),
        )
    ]
    try:
        while True:
            level = levels[-1]
            position = level.next_position()
            if position is None:
                if level.has_leftovers():
                    return False
                if len(levels) == 1:
                    return True
                levels.pop()
                control_context.navigate_to_parent()
                test_context.navigate_to_parent()
                levels[-1].advance()
                continue

            control_index, test_index = position
            control_child = level.control[control_index]
            test_child = level.test[test_index]
            if node_kind(control_child) is not node_kind(test_child):
                logger.debug(
                    f"Node kind mismatch below {control_context.to_xpath()}: "
                    f"{node_kind(control_child).value} vs {node_kind(test_child).value}"
                )
                return False
            if not is_element(control_child):
                level.advance()
                continue

            control_context.navigate_to_child(control_index)
            test_context.navigate_to_child(test_index)
            if not by_name_and_text(control_child, control_context, test_child, test_context):
                logger.debug(
                    f"Subtree mismatch: {control_context.to_xpath()} "
                    f"vs {test_context.to_xpath()}"
                )
                control_context.navigate_to_parent()
                test_context.navigate_to_parent()
                return False
            levels.append(
                _Alignment(
                    _register_children(control_child, control_context),
                    _register_children(test_child, test_context),
                )
            )
    finally:
        # one descent per open level below the starting one
        for _ in range(len(levels) - 1):
            control_context.navigate_to_parent()
            test_context.navigate_to_parent()


class _Alignment:
    """Cursor over the children of one control/test element pair."""

    __slots__ = ("control", "test", "control_index", "test_index")

    def __init__(self, control: List[Node], test: List[Node]) -> None:
        self.control = control
        self.test = test
        self.control_index = 0
        self.test_index = 0

    def next_position(self) -> Optional[Tuple[int, int]]:
        """Skip text on both sides; ``None`` once either side is exhausted."""
        if self.control_index >= len(self.control) or self.test_index >= len(self.test):
            return None
        self.control_index = _skip_text(self.control, self.control_index)
        if self.control_index >= len(self.control):
            return None
        self.test_index = _skip_text(self.test, self.test_index)
        if self.test_index >= len(self.test):
            return None
        return self.control_index, self.test_index

    def advance(self) -> None:
        self.control_index += 1
        self.test_index += 1

    def has_leftovers(self) -> bool:
        return _skip_text(self.control, self.control_index) < len(self.control) or (
            _skip_text(self.test, self.test_index) < len(self.test)
        )


def _register_children(element: ET.Element, context: PathContext) -> List[Node]:
    children = child_nodes(element)
    context.set_children(children)
    return children


def _skip_text(nodes: List[Node], index: int) -> int:
    """Return the index of the first non-text node at or after ``index``."""
    while index < len(nodes) and is_text(nodes[index]):
        index += 1
    return index
