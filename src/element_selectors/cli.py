"""
CLI commands for checking element pairing between two XML documents.
"""

import argparse
import logging
import os
import sys
import xml.etree.ElementTree as ET
from pathlib import Path

from .config import SIMPLE_SELECTORS, compile_rule_table, load_rule_table
from .exceptions import InvalidConfiguration
from .matcher import DefaultNodeMatcher
from .nodes import child_nodes, is_text, parse_document
from .path_context import ChildNodeContextProvider, PathContext

logger = logging.getLogger(__name__)

NAMED_SELECTORS = SIMPLE_SELECTORS

RULES_ENV = "ELEMENT_SELECTORS_RULES"
LOG_LEVEL_ENV = "ELEMENT_SELECTORS_LOG_LEVEL"


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    override = os.getenv(LOG_LEVEL_ENV)
    if override and not verbose:
        level = getattr(logging, override.upper(), level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def _resolve_selector(args):
    rules = args.rules or os.getenv(RULES_ENV)
    if rules:
        return compile_rule_table(load_rule_table(Path(rules)))
    return NAMED_SELECTORS[args.selector]


def _load(args):
    return parse_document(Path(args.control)), parse_document(Path(args.test))


def cmd_compare(args):
    """Check whether the two document elements may be paired."""
    setup_logging(args.verbose)

    try:
        selector = _resolve_selector(args)
        control, test = _load(args)
    except (InvalidConfiguration, ET.ParseError, OSError) as e:
        print(f"✗ {e}")
        return 2

    if selector(control, PathContext(control), test, PathContext(test)):
        print(f"✓ {args.control} and {args.test} can be compared")
        return 0
    print(f"✗ {args.control} and {args.test} cannot be compared")
    return 1


def cmd_pairs(args):
    """List the pairs the default matcher finds among the roots' children."""
    setup_logging(args.verbose)

    try:
        selector = _resolve_selector(args)
        control, test = _load(args)
    except (InvalidConfiguration, ET.ParseError, OSError) as e:
        print(f"✗ {e}")
        return 2

    control_context = PathContext(control)
    test_context = PathContext(test)
    control_children = [n for n in child_nodes(control) if not is_text(n)]
    test_children = [n for n in child_nodes(test) if not is_text(n)]
    control_context.set_children(control_children)
    test_context.set_children(test_children)
    control_provider = ChildNodeContextProvider(control_context, control_children)
    test_provider = ChildNodeContextProvider(test_context, test_children)

    pairs = list(
        DefaultNodeMatcher().match(
            control_children, control_provider, test_children, test_provider, selector
        )
    )
    for control_node, test_node in pairs:
        print(
            f"  {control_provider(control_node).to_xpath()} -> "
            f"{test_provider(test_node).to_xpath()}"
        )

    paired_control = {id(c) for c, _ in pairs}
    paired_test = {id(t) for _, t in pairs}
    for node in control_children:
        if id(node) not in paired_control:
            print(f"  ○ control only: {control_provider(node).to_xpath()}")
    for node in test_children:
        if id(node) not in paired_test:
            print(f"  ○ test only: {test_provider(node).to_xpath()}")

    logger.info(f"Matched {len(pairs)} of {len(control_children)} control children")
    return 0 if len(pairs) == len(control_children) == len(test_children) else 1


def _add_document_arguments(subparser):
    subparser.add_argument("control", help="Control (expected) XML document")
    subparser.add_argument("test", help="Test (actual) XML document")
    subparser.add_argument(
        "--rules",
        help=f"JSON rule table (default: ${RULES_ENV} if set)"
    )
    subparser.add_argument(
        "--selector",
        default="by_name",
        choices=sorted(NAMED_SELECTORS),
        help="Built-in selector used when no rule table is given (default: by_name)"
    )


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Decide whether elements of two XML documents can be paired",
        prog="element-selectors"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands"
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Check whether the two document elements can be paired"
    )
    _add_document_arguments(compare_parser)
    compare_parser.set_defaults(func=cmd_compare)

    pairs_parser = subparsers.add_parser(
        "pairs",
        help="Match the children of the two document elements"
    )
    _add_document_arguments(pairs_parser)
    pairs_parser.set_defaults(func=cmd_pairs)

    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
