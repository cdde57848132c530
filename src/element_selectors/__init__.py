"""Element Selectors
=================

Rules that decide, for two candidate elements taken from a *control* and a
*test* XML document, whether they are the same logical node and therefore
eligible for detailed comparison. Pairing is the crux of any tree diff:
choosing the wrong partner reports phantom insertions and deletions instead
of real changes.

Key capabilities
----------------
- Composable selectors over ElementTree elements (:mod:`~element_selectors.selectors`).
- :class:`~element_selectors.path_context.PathContext` cursors that track an
  XPath position in each tree while selectors recurse.
- A strict recursive structural selector that ignores interleaved text.
- Path-query delegation to a sibling matcher
  (:class:`~element_selectors.matcher.DefaultNodeMatcher`).
- Conditional rule tables, built in code
  (:func:`~element_selectors.builder.conditional_builder`) or loaded from JSON
  (:mod:`~element_selectors.config`).

Design principles
-----------------
1. **Pure decisions** – Selectors never mutate the trees; the only side
   effect is registering children in the supplied contexts.
2. **Fail at construction** – Bad arguments raise
   :class:`~element_selectors.exceptions.InvalidConfiguration` before a
   selector exists; evaluation never raises.
3. **Balanced navigation** – Every descent into a child context is undone on
   every exit path.

Minimal quick start
-------------------
>>> from element_selectors import PathContext, by_name_and_text_rec, parse_string
>>> control = parse_string("<a><b/>text<c/></a>")
>>> test = parse_string("<a><b/><c/>text</a>")
>>> by_name_and_text_rec(control, PathContext(control), test, PathContext(test))
True
"""

__version__ = "0.1.0"

from .builder import conditional_builder
from .exceptions import InvalidBuilderState, InvalidConfiguration
from .nodes import QName, parse_document, parse_string
from .path_context import PathContext
from .selectors import (
    Selector,
    and_,
    by_name,
    by_name_and_all_attributes,
    by_name_and_attributes,
    by_name_and_attributes_control_ns,
    by_name_and_text,
    by_name_and_text_rec,
    by_xpath,
    conditional_selector,
    default,
    not_,
    or_,
    selector_for_element_named,
    xor,
)

__all__ = [
    "InvalidBuilderState",
    "InvalidConfiguration",
    "PathContext",
    "QName",
    "Selector",
    "and_",
    "by_name",
    "by_name_and_all_attributes",
    "by_name_and_attributes",
    "by_name_and_attributes_control_ns",
    "by_name_and_text",
    "by_name_and_text_rec",
    "by_xpath",
    "conditional_builder",
    "conditional_selector",
    "default",
    "not_",
    "or_",
    "parse_document",
    "parse_string",
    "selector_for_element_named",
    "xor",
]
