"""Per-thread tree-sitter parser cache shared by the script and stylesheet extractors."""

from __future__ import annotations

import threading
from typing import Iterator

from tree_sitter_language_pack import get_parser

_local = threading.local()


def parser_for(grammar_name: str):
    """Return a parser for grammar_name owned by the calling thread.

    tree-sitter parsers keep internal state while parsing, so worker
    threads each get their own instance.
    """
    cache: dict[str, object] | None = getattr(_local, "parsers", None)
    if cache is None:
        cache = _local.parsers = {}
    if grammar_name not in cache:
        cache[grammar_name] = get_parser(grammar_name)
    return cache[grammar_name]


def parse(grammar_name: str, source: str):
    return parser_for(grammar_name).parse(source.encode("utf-8"))


def walk(node) -> Iterator:
    """Pre-order traversal without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def node_text(node) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def unquote(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text
