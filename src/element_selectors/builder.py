"""Ordered rule tables compiled into a single selector.

Example:
    from element_selectors.builder import conditional_builder
    from element_selectors import selectors as es

    selector = (
        conditional_builder()
        .when_element_is_named("Wall").then_use(es.by_name_and_attributes("id"))
        .when_element_is_named("Window").then_use(es.by_name_and_text_rec)
        .default_to(es.by_name)
        .build()
    )

Entries are tried in insertion order and the first one whose guard holds and
whose selector accepts wins; the default runs last.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Union

from .exceptions import (
    DUPLICATE_DEFAULT,
    MISSING_CONDITION,
    UNBALANCED_CONDITIONS,
    InvalidBuilderState,
    InvalidConfiguration,
)
from .nodes import QName
from .selectors import Predicate, Selector, conditional_selector, name_predicate, or_

logger = logging.getLogger(__name__)


class BuilderState(str, Enum):
    EMPTY = "empty"
    GUARD_PENDING = "guard-pending"
    READY = "ready"


class ConditionalSelectorBuilder:
    """Two-step ``when(...).then_use(...)`` protocol plus an optional default."""

    def __init__(self) -> None:
        self.state = BuilderState.EMPTY
        self._pending: Optional[Predicate] = None
        self._entries: List[Selector] = []
        self._default: Optional[Selector] = None

    def when(self, predicate: Predicate) -> "ConditionalSelectorBuilder":
        """Open a rule guarded by ``predicate``.

        Raises:
            InvalidBuilderState: If the previous guard was never bound with
                :meth:`then_use`.
            InvalidConfiguration: If ``predicate`` is ``None``.
        """
        if self.state is BuilderState.GUARD_PENDING:
            raise InvalidBuilderState(UNBALANCED_CONDITIONS)
        if predicate is None:
            raise InvalidConfiguration("predicate must not be None")
        self._pending = predicate
        self.state = BuilderState.GUARD_PENDING
        return self

    def when_element_is_named(self, expected_name: Union[str, QName]) -> "ConditionalSelectorBuilder":
        if self.state is BuilderState.GUARD_PENDING:
            raise InvalidBuilderState(UNBALANCED_CONDITIONS)
        return self.when(name_predicate(expected_name))

    def then_use(self, selector: Selector) -> "ConditionalSelectorBuilder":
        """Bind the pending guard to ``selector``.

        Raises:
            InvalidBuilderState: If no guard is pending.
        """
        if self.state is not BuilderState.GUARD_PENDING or self._pending is None:
            raise InvalidBuilderState(MISSING_CONDITION)
        self._entries.append(conditional_selector(self._pending, selector))
        self._pending = None
        self.state = BuilderState.READY
        return self

    def default_to(self, selector: Selector) -> "ConditionalSelectorBuilder":
        """Set the selector used when no guarded rule accepts the pair."""
        if self._default is not None:
            raise InvalidBuilderState(
                DUPLICATE_DEFAULT, "duplicate default: can't have more than one default selector"
            )
        if selector is None:
            raise InvalidConfiguration("default selector must not be None")
        self._default = selector
        if self.state is BuilderState.EMPTY:
            self.state = BuilderState.READY
        return self

    def build(self) -> Selector:
        """Compile the rules into one selector.

        Raises:
            InvalidBuilderState: If a guard is still waiting for
                :meth:`then_use`.
        """
        if self.state is BuilderState.GUARD_PENDING:
            raise InvalidBuilderState(UNBALANCED_CONDITIONS)
        selectors = list(self._entries)
        if self._default is not None:
            selectors.append(self._default)
        logger.debug(
            f"Compiled {len(self._entries)} conditional rule(s)"
            f"{' plus default' if self._default is not None else ''}"
        )
        return or_(*selectors)


def conditional_builder() -> ConditionalSelectorBuilder:
    return ConditionalSelectorBuilder()
