"""Error types raised while building selectors.

Both errors surface at construction or build time only. A selector that was
built successfully never raises while evaluating a pair of elements; absent
elements and mismatches are reported as ``False``.
"""

from __future__ import annotations

MISSING_CONDITION = "missing condition"
UNBALANCED_CONDITIONS = "unbalanced conditions"
DUPLICATE_DEFAULT = "duplicate default"


class InvalidConfiguration(ValueError):
    """A selector constructor received a missing or malformed argument."""


class InvalidBuilderState(RuntimeError):
    """The conditional builder's when/then_use/default_to protocol was violated.

    Attributes:
        reason: One of ``"missing condition"``, ``"unbalanced conditions"`` or
            ``"duplicate default"``.
    """

    def __init__(self, reason: str, message: str = "") -> None:
        super().__init__(message or reason)
        self.reason = reason
