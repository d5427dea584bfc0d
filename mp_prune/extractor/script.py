"""JS/TS/WXS extractor using tree-sitter.

Collected: static imports, side-effect imports, re-exports, ``require()``
and ``import()`` with a literal argument. ``import type`` and
``export type ... from`` are left out because they have no runtime effect.
"""

from __future__ import annotations

from pathlib import Path

from mp_prune.extractor.base import BaseExtractor
from mp_prune.extractor.treesitter import node_text, parse, unquote, walk
from mp_prune.filetypes import SCRIPT_EXTENSIONS, WXS_EXTENSIONS

_GRAMMARS = {
    ".js": "javascript",
    ".wxs": "javascript",
    ".ts": "typescript",
}


def grammar_for(file_path: Path) -> str:
    if file_path.name.endswith(".d.ts"):
        return "typescript"
    return _GRAMMARS.get(file_path.suffix.lower(), "javascript")


def _is_type_only(node) -> bool:
    """import type / export type: an anonymous 'type' token right after the keyword."""
    return any(not c.is_named and c.type == "type" for c in node.children[:3])


def _literal(node) -> str | None:
    """Value of a string literal, or of a template string without substitutions."""
    if node.type == "string":
        return unquote(node_text(node))
    if node.type == "template_string":
        if any(c.type == "template_substitution" for c in node.named_children):
            return None
        return unquote(node_text(node))
    return None


class ScriptExtractor(BaseExtractor):
    extensions = SCRIPT_EXTENSIONS + WXS_EXTENSIONS

    def extract(self, content: str, file_path: Path) -> list[str]:
        tree = parse(grammar_for(file_path), content)
        refs: list[str] = []

        for node in walk(tree.root_node):
            if node.type in ("import_statement", "export_statement"):
                if _is_type_only(node):
                    continue
                source = node.child_by_field_name("source")
                if source is not None:
                    value = _literal(source)
                    if value is not None:
                        refs.append(value)
            elif node.type == "import_require_clause":
                # TS: import x = require('./x')
                source = node.child_by_field_name("source")
                if source is None:
                    source = next((c for c in node.named_children if c.type == "string"), None)
                if source is not None and not _is_type_only(node.parent):
                    value = _literal(source)
                    if value is not None:
                        refs.append(value)
            elif node.type == "call_expression":
                value = self._call_target(node)
                if value is not None:
                    refs.append(value)

        return self._collect(refs)

    @staticmethod
    def _call_target(node) -> str | None:
        function = node.child_by_field_name("function")
        if function is None:
            return None
        is_require = function.type == "identifier" and node_text(function) == "require"
        is_dynamic_import = function.type == "import"
        if not (is_require or is_dynamic_import):
            return None

        args = node.child_by_field_name("arguments")
        if args is None or len(args.named_children) != 1:
            # require(a, b), require() or require(...spread) cannot be resolved
            return None
        return _literal(args.named_children[0])


def is_ambient_declaration(content: str) -> bool:
    """True for a .d.ts source that only declares globals.

    Such a file has no import/export statement (so nothing imports it) and at
    least one ``declare`` block.
    """
    tree = parse("typescript", content)
    has_declare = False
    for child in tree.root_node.children:
        if child.type in ("import_statement", "export_statement", "import_alias"):
            return False
        if child.type == "ambient_declaration":
            has_declare = True
    return has_declare
