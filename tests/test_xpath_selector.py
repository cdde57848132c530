"""Tests for the query-delegating selector."""

import pytest

from element_selectors.exceptions import InvalidConfiguration
from element_selectors.nodes import parse_string
from element_selectors.path_context import PathContext
from element_selectors.selectors import (
    by_name,
    by_name_and_all_attributes,
    by_name_and_attributes,
    by_name_and_text,
    by_xpath,
    or_,
)
from element_selectors.xpath import ElementPathEngine

VEHICLES_CONTROL = """
<vehicles>
  <vehicle>
    <engine><car>Ford</car></engine>
    <wheels>4</wheels>
  </vehicle>
  <vehicle>
    <engine><car>Audi</car></engine>
    <wheels>4</wheels>
  </vehicle>
</vehicles>
"""

VEHICLES_TEST = """
<vehicles>
  <vehicle>
    <engine><car>Audi</car></engine>
    <wheels>3</wheels>
  </vehicle>
  <vehicle>
    <engine><car>Ford</car></engine>
    <wheels>4</wheels>
  </vehicle>
</vehicles>
"""


def _select(selector, control, test):
    return selector(control, PathContext(control), test, PathContext(test))


def test_pairs_by_nested_key():
    control = parse_string(VEHICLES_CONTROL)
    test = parse_string(VEHICLES_TEST)
    selector = by_xpath("./engine/car", by_name_and_text)

    first_control = control[0]
    assert _select(selector, first_control, test[1])
    assert not _select(selector, first_control, test[0])


def test_all_control_candidates_must_match():
    selector = by_xpath("./b", by_name_and_attributes("id"))
    control = parse_string('<a><b id="1"/><b id="2"/></a>')
    assert not _select(selector, control, parse_string('<a><b id="1"/></a>'))
    assert _select(selector, control, parse_string('<a><b id="2"/><b id="1"/></a>'))


def test_surplus_test_candidates_do_not_fail():
    selector = by_xpath("./b", by_name_and_attributes("id"))
    control = parse_string('<a><b id="1"/></a>')
    assert _select(selector, control, parse_string('<a><b id="1"/><b id="9"/></a>'))


def test_no_candidates_on_either_side():
    selector = by_xpath("./missing", by_name)
    assert _select(selector, parse_string("<a/>"), parse_string("<z/>"))


def test_missing_elements():
    selector = by_xpath("./b", by_name)
    assert not _select(selector, None, parse_string("<a/>"))


def test_namespace_bindings():
    selector = by_xpath(
        "./h:SystemIdentifier", by_name_and_all_attributes, namespaces={"h": "urn:h"}
    )
    control = parse_string('<Window xmlns="urn:h"><SystemIdentifier id="W1"/></Window>')
    same = parse_string('<Window xmlns="urn:h"><SystemIdentifier id="W1"/></Window>')
    other = parse_string('<Window xmlns="urn:h"><SystemIdentifier id="W2"/></Window>')
    assert _select(selector, control, same)
    assert not _select(selector, control, other)


def test_child_selector_sees_registered_positions():
    seen = []

    def recording(control, control_ctx, test, test_ctx):
        seen.append((control_ctx.to_xpath(), test_ctx.to_xpath()))
        return True

    control = parse_string("<a><x/><b/><x/><b/></a>")
    test = parse_string("<a><b/><b/></a>")
    control_ctx, test_ctx = PathContext(control), PathContext(test)
    assert by_xpath("./b", recording)(control, control_ctx, test, test_ctx)

    assert seen == [("/a[1]/b[1]", "/a[1]/b[1]"), ("/a[1]/b[2]", "/a[1]/b[2]")]
    assert control_ctx.to_xpath() == "/a[1]"
    assert control_ctx.child_count == 2


def test_not_evaluated_after_earlier_match_in_or():
    calls = []

    class CountingEngine(ElementPathEngine):
        def select_nodes(self, expression, context_element):
            calls.append(expression)
            return super().select_nodes(expression, context_element)

    selector = or_(by_name, by_xpath("./b", by_name, engine=CountingEngine()))
    assert _select(selector, parse_string("<a/>"), parse_string("<a/>"))
    assert calls == []


def test_custom_matcher_is_used():
    class NoPairs:
        def match(self, control_nodes, control_provider, test_nodes, test_provider, selector):
            return iter(())

    selector = by_xpath("./b", by_name, matcher=NoPairs())
    assert not _select(selector, parse_string("<a><b/></a>"), parse_string("<a><b/></a>"))
    assert _select(selector, parse_string("<a/>"), parse_string("<a/>"))


@pytest.mark.parametrize(
    "build",
    [
        lambda: by_xpath(None, by_name),
        lambda: by_xpath("./b", None),
        lambda: by_xpath("/absolute", by_name),
        lambda: by_xpath("./p:b", by_name),
        lambda: by_xpath("./b[", by_name),
    ],
)
def test_construction_errors(build):
    with pytest.raises(InvalidConfiguration):
        build()


def test_unbound_prefix_is_rejected_not_matched_everywhere():
    with pytest.raises(InvalidConfiguration):
        by_xpath("x:b", by_name)
    with pytest.raises(InvalidConfiguration):
        by_xpath("./x:b", by_name, namespaces={"y": "urn:x"})


def test_shared_engine_keeps_its_bindings():
    engine = ElementPathEngine({"p": "urn:one"})
    first = by_xpath("./p:b", by_name, engine=engine)
    second = by_xpath("./p:b", by_name, namespaces={"p": "urn:two"}, engine=engine)
    assert engine.namespace_context == {"p": "urn:one"}

    one = parse_string('<a xmlns:p="urn:one"><p:b/></a>')
    two = parse_string('<a xmlns:p="urn:two"><p:b/></a>')
    empty = parse_string("<a/>")
    assert not _select(first, one, empty)
    assert _select(first, two, empty)
    assert not _select(second, two, empty)
    assert _select(second, one, empty)


def test_rebinding_copies_engine_subclass():
    calls = []

    class CountingEngine(ElementPathEngine):
        def select_nodes(self, expression, context_element):
            calls.append(expression)
            return super().select_nodes(expression, context_element)

    engine = CountingEngine()
    selector = by_xpath("./p:b", by_name, namespaces={"p": "urn:p"}, engine=engine)
    assert engine.namespace_context is None
    assert _select(selector, parse_string("<a/>"), parse_string("<a/>"))
    assert calls == ["./p:b", "./p:b"]
