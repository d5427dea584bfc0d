"""WXSS/LESS extractor using the tree-sitter css grammar."""

from __future__ import annotations

import re
from pathlib import Path

from mp_prune.extractor.base import BaseExtractor
from mp_prune.extractor.treesitter import node_text, parse, unquote, walk
from mp_prune.filetypes import STYLESHEET_EXTENSIONS

# Used only on sources the grammar could not fully parse (LESS mixins,
# unquoted relative urls), after comments have been blanked out.
# LESS import options such as "(reference)" or "(css, optional)" precede the target
_IMPORT_RE = re.compile(r"""@import\s+(?:\([^)]*\)\s*)?(?:url\(\s*)?['"]?([^'")\s;]+)""")
_URL_RE = re.compile(r"""url\(\s*['"]?([^'")]+?)['"]?\s*\)""")


class StylesheetExtractor(BaseExtractor):
    extensions = STYLESHEET_EXTENSIONS

    def extract(self, content: str, file_path: Path) -> list[str]:
        tree = parse("css", content)
        refs: list[str] = []
        comments: list[tuple[int, int]] = []

        for node in walk(tree.root_node):
            if node.type == "comment":
                comments.append((node.start_byte, node.end_byte))
            elif node.type == "import_statement":
                # The target may sit below LESS import options, so search the subtree
                target = next((c for c in walk(node) if c.type == "string_value"), None)
                if target is not None:
                    refs.append(unquote(node_text(target)))
            elif node.type == "call_expression" and self._is_url_call(node):
                refs.append(self._url_argument(node))

        if tree.root_node.has_error:
            refs.extend(self._recover(content, comments))

        return self._collect(refs)

    @staticmethod
    def _is_url_call(node) -> bool:
        name = node.child_by_field_name("function") or (
            node.named_children[0] if node.named_children else None
        )
        return name is not None and node_text(name).lower() == "url"

    @staticmethod
    def _url_argument(node) -> str:
        args = node.child_by_field_name("arguments")
        if args is None:
            args = next((c for c in node.named_children if c.type == "arguments"), None)
        if args is None:
            return ""
        # Unquoted urls are split into several value tokens; take the raw span
        inner = node_text(args).strip()
        if inner.startswith("(") and inner.endswith(")"):
            inner = inner[1:-1]
        return unquote(inner)

    @staticmethod
    def _recover(content: str, comments: list[tuple[int, int]]) -> list[str]:
        data = bytearray(content.encode("utf-8"))
        for start, end in comments:
            data[start:end] = b" " * (end - start)
        text = data.decode("utf-8", errors="replace")
        refs = [m.group(1) for m in _IMPORT_RE.finditer(text)]
        refs.extend(m.group(1).strip() for m in _URL_RE.finditer(text))
        return refs
