"""Path query engine backed by ElementTree's ElementPath support.

ElementPath covers the XPath subset ``Element.findall`` understands: relative
location paths, ``*``, ``.``, ``..``, ``//``, attribute predicates,
positional predicates and child-text predicates. Namespaced steps are written
with prefixes bound through :attr:`ElementPathEngine.namespace_context` (the
empty prefix binds a default namespace).

Example:
    engine = ElementPathEngine({"h": "http://hpxmlonline.com/2019/10"})
    engine.select_nodes("./h:Walls/h:Wall", building_element)
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Dict, List, Mapping, Optional
from xml.etree import ElementPath

from .exceptions import InvalidConfiguration


class ElementPathEngine:
    """Evaluate ElementPath expressions relative to a context element."""

    def __init__(self, namespace_context: Optional[Mapping[str, str]] = None) -> None:
        self._namespaces: Optional[Dict[str, str]] = None
        self.namespace_context = namespace_context

    @property
    def namespace_context(self) -> Optional[Dict[str, str]]:
        return dict(self._namespaces) if self._namespaces is not None else None

    @namespace_context.setter
    def namespace_context(self, value: Optional[Mapping[str, str]]) -> None:
        if value is None:
            self._namespaces = None
            return
        for prefix, uri in value.items():
            if prefix is None or uri is None:
                raise InvalidConfiguration(
                    "namespace context must not contain None prefixes or URIs"
                )
        self._namespaces = dict(value)

    def validate(self, expression: str) -> None:
        """Compile ``expression`` once so problems surface before evaluation.

        Every prefixed step is resolved against the namespace context first.
        ``findall`` alone would accept an unbound ``x:b`` as a literal tag
        name when no bindings are set.

        Raises:
            InvalidConfiguration: On syntax errors, absolute paths or prefixes
                missing from the namespace context.
        """
        try:
            for _ in ElementPath.xpath_tokenizer(expression, self._namespaces):
                pass
            ET.Element("scratch").findall(expression, self._namespaces)
        except (SyntaxError, KeyError, TypeError, AttributeError, StopIteration) as exc:
            raise InvalidConfiguration(f"Invalid path expression {expression!r}: {exc}") from exc

    def select_nodes(self, expression: str, context_element: ET.Element) -> List[ET.Element]:
        """Return the nodes ``expression`` selects, in document order."""
        return context_element.findall(expression, self._namespaces)
