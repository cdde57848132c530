"""Tests for PathContext navigation and XPath rendering."""

import pytest

from element_selectors.nodes import NodeKind, QName, child_nodes, parse_string
from element_selectors.path_context import ChildNodeContextProvider, NodeInfo, PathContext


def test_root_context():
    root = parse_string("<a/>")
    ctx = PathContext(root)
    assert ctx.to_xpath() == "/a[1]"
    assert ctx.depth == 2
    assert PathContext().to_xpath() == "/"


def test_children_are_counted_per_kind_and_name():
    root = parse_string("<a>t<b/><c/><b/><!-- x -->u<?pi?></a>")
    ctx = PathContext(root)
    ctx.set_children(child_nodes(root))

    rendered = []
    for index in range(ctx.child_count):
        with ctx.child(index):
            rendered.append(ctx.to_xpath())

    assert rendered == [
        "/a[1]/text()[1]",
        "/a[1]/b[1]",
        "/a[1]/c[1]",
        "/a[1]/b[2]",
        "/a[1]/comment()[1]",
        "/a[1]/text()[2]",
        "/a[1]/processing-instruction()[1]",
    ]


def test_child_context_manager_restores_on_error():
    root = parse_string("<a><b/></a>")
    ctx = PathContext(root)
    ctx.set_children(child_nodes(root))
    with pytest.raises(RuntimeError):
        with ctx.child(0):
            assert ctx.to_xpath() == "/a[1]/b[1]"
            raise RuntimeError("boom")
    assert ctx.to_xpath() == "/a[1]"
    assert ctx.depth == 2


def test_add_children_continues_counting():
    ctx = PathContext(parse_string("<a/>"))
    ctx.set_children([NodeInfo(NodeKind.ELEMENT, QName(None, "b"))])
    ctx.add_children([NodeInfo(NodeKind.ELEMENT, QName(None, "b"))])
    ctx.navigate_to_child(1)
    assert ctx.to_xpath() == "/a[1]/b[2]"


def test_set_children_replaces_registered_set():
    root = parse_string("<a><b/><c/></a>")
    ctx = PathContext(root)
    ctx.set_children(child_nodes(root))
    ctx.set_children(root.findall("c"))
    assert ctx.child_count == 1
    with ctx.child(0):
        assert ctx.to_xpath() == "/a[1]/c[1]"


def test_prefixes_are_used_when_bound():
    root = parse_string('<a xmlns="urn:a"><b/></a>')
    ctx = PathContext(root, prefixes={"x": "urn:a"})
    ctx.set_children(child_nodes(root))
    ctx.navigate_to_child(0)
    assert ctx.to_xpath() == "/x:a[1]/x:b[1]"
    assert PathContext(root).to_xpath() == "/a[1]"


def test_attributes():
    ctx = PathContext(parse_string('<a id="1"/>'))
    ctx.add_attributes([QName(None, "id")])
    ctx.navigate_to_attribute(QName(None, "id"))
    assert ctx.to_xpath() == "/a[1]/@id"
    ctx.navigate_to_parent()
    with pytest.raises(KeyError):
        ctx.navigate_to_attribute(QName(None, "missing"))


def test_navigation_errors():
    ctx = PathContext(parse_string("<a/>"))
    with pytest.raises(IndexError):
        ctx.navigate_to_child(0)
    with pytest.raises(IndexError):
        ctx.navigate_to_child(-1)
    ctx.navigate_to_parent()
    with pytest.raises(IndexError):
        ctx.navigate_to_parent()


def test_clone_is_independent():
    root = parse_string("<a><b/></a>")
    ctx = PathContext(root)
    ctx.set_children(child_nodes(root))
    cloned = ctx.clone()
    cloned.navigate_to_child(0)
    cloned.set_children([])
    assert cloned.to_xpath() == "/a[1]/b[1]"
    assert ctx.to_xpath() == "/a[1]"
    assert ctx.depth == 2


def test_provider_uses_index_in_registered_sequence():
    root = parse_string("<a><b/><c/><b/></a>")
    ctx = PathContext(root)
    selected = root.findall("b")
    ctx.set_children(selected)
    provider = ChildNodeContextProvider(ctx, selected)

    assert provider(selected[1]).to_xpath() == "/a[1]/b[2]"
    assert ctx.to_xpath() == "/a[1]"
    with pytest.raises(ValueError):
        provider(root.find("c"))
