"""Declarative rule tables loaded from JSON.

A rule table describes a conditional selector without writing Python: an
ordered list of ``when_named`` → selector rules, an optional default, and the
namespace prefixes used by ``by_xpath`` expressions.

Example rule table::

    {
      "namespaces": {"h": "http://hpxmlonline.com/2019/10"},
      "rules": [
        {"when_named": "{http://hpxmlonline.com/2019/10}Wall",
         "use": {"type": "by_name_and_attributes", "attributes": ["id"]}},
        {"when_named": "Window",
         "use": {"type": "by_xpath", "xpath": "./h:SystemIdentifier",
                 "child": {"type": "by_name_and_all_attributes"}}}
      ],
      "default": {"type": "by_name"}
    }

Usage::

    from element_selectors.config import compile_rule_table, load_rule_table

    selector = compile_rule_table(load_rule_table(Path("rules.json")))

Names written as ``{uri}local`` are qualified names; plain names are local
names (in no namespace for attributes, any namespace for ``when_named``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from . import selectors as es
from .builder import conditional_builder
from .exceptions import InvalidConfiguration
from .nodes import QName

logger = logging.getLogger(__name__)

SelectorType = Literal[
    "default",
    "by_name",
    "by_name_and_text",
    "by_name_and_text_rec",
    "by_name_and_attributes",
    "by_name_and_attributes_control_ns",
    "by_name_and_all_attributes",
    "by_xpath",
    "not",
    "and",
    "or",
    "xor",
]

SIMPLE_SELECTORS = {
    "default": es.default,
    "by_name": es.by_name,
    "by_name_and_text": es.by_name_and_text,
    "by_name_and_text_rec": es.by_name_and_text_rec,
    "by_name_and_all_attributes": es.by_name_and_all_attributes,
}


class SelectorSpec(BaseModel):
    """One selector, possibly composed of nested selectors."""

    type: SelectorType = Field(..., description="Selector kind")
    attributes: List[str] = Field(
        default_factory=list,
        description="Attribute names (plain local names or {uri}local)",
    )
    xpath: Optional[str] = Field(None, description="Child query for by_xpath")
    child: Optional["SelectorSpec"] = Field(
        None, description="Selector pairing the children picked by xpath"
    )
    selectors: List["SelectorSpec"] = Field(
        default_factory=list, description="Operands of not/and/or/xor"
    )

    @model_validator(mode="after")
    def _check_operands(self) -> "SelectorSpec":
        if self.type == "by_xpath" and (self.xpath is None or self.child is None):
            raise ValueError("by_xpath requires 'xpath' and 'child'")
        if self.type in ("by_name_and_attributes", "by_name_and_attributes_control_ns"):
            if not self.attributes:
                raise ValueError(f"{self.type} requires at least one attribute")
        if self.type == "by_name_and_attributes_control_ns":
            if any(name.startswith("{") for name in self.attributes):
                raise ValueError("by_name_and_attributes_control_ns takes local names only")
        if self.type == "not" and len(self.selectors) != 1:
            raise ValueError("not requires exactly one selector")
        if self.type == "xor" and len(self.selectors) != 2:
            raise ValueError("xor requires exactly two selectors")
        return self

    def to_selector(self, namespaces: Optional[Dict[str, str]] = None) -> es.Selector:
        if self.type in SIMPLE_SELECTORS:
            return SIMPLE_SELECTORS[self.type]
        if self.type == "by_name_and_attributes":
            return es.by_name_and_attributes(*(_name(a) for a in self.attributes))
        if self.type == "by_name_and_attributes_control_ns":
            return es.by_name_and_attributes_control_ns(*self.attributes)
        if self.type == "by_xpath":
            return es.by_xpath(
                self.xpath, self.child.to_selector(namespaces), namespaces=namespaces
            )
        operands = [spec.to_selector(namespaces) for spec in self.selectors]
        if self.type == "not":
            return es.not_(operands[0])
        if self.type == "and":
            return es.and_(*operands)
        if self.type == "or":
            return es.or_(*operands)
        return es.xor(operands[0], operands[1])


SelectorSpec.model_rebuild()


class RuleSpec(BaseModel):
    when_named: str = Field(..., description="Element name guarding the rule")
    use: SelectorSpec = Field(..., description="Selector applied when the guard holds")


class RuleTable(BaseModel):
    """Ordered rules, optional default and namespace bindings."""

    namespaces: Dict[str, str] = Field(
        default_factory=dict, description="Prefix to namespace URI bindings"
    )
    rules: List[RuleSpec] = Field(default_factory=list)
    default: Optional[SelectorSpec] = None


def _name(name: str) -> Union[str, QName]:
    return QName.from_clark(name) if name.startswith("{") else name


def parse_rule_table(text: str) -> RuleTable:
    """Validate a JSON rule table.

    Raises:
        InvalidConfiguration: If the text is not valid JSON or does not
            describe a rule table.
    """
    try:
        return RuleTable.model_validate_json(text)
    except ValidationError as exc:
        raise InvalidConfiguration(f"Invalid rule table: {exc}") from exc


def load_rule_table(path: Path) -> RuleTable:
    """Read and validate a JSON rule table file.

    Raises:
        InvalidConfiguration: If the file is missing, unreadable or invalid.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidConfiguration(f"Cannot read rule table {path}: {exc}") from exc
    table = parse_rule_table(text)
    logger.info(f"Loaded {len(table.rules)} rule(s) from {path}")
    return table


def compile_rule_table(table: RuleTable) -> es.Selector:
    """Turn a :class:`RuleTable` into a selector via the conditional builder."""
    namespaces = table.namespaces or None
    builder = conditional_builder()
    for rule in table.rules:
        builder.when_element_is_named(_name(rule.when_named)).then_use(
            rule.use.to_selector(namespaces)
        )
    if table.default is not None:
        builder.default_to(table.default.to_selector(namespaces))
    return builder.build()
