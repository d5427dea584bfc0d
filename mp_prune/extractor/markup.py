"""WXML extractor: import/include templates, wxs modules and image sources."""

from __future__ import annotations

from html.parser import HTMLParser
from pathlib import Path

from mp_prune.errors import ExtractionError
from mp_prune.extractor.base import BaseExtractor, Reference
from mp_prune.filetypes import MARKUP_EXTENSIONS

# Tags whose src attribute points at another file
_SRC_TAGS = {"import", "include", "wxs", "image"}


def blank_expressions(content: str) -> str:
    """Replace ``{{...}}`` spans outside quoted attribute values with spaces.

    Expressions such as ``{{count<max}}`` would otherwise open a bogus tag in
    HTMLParser and swallow the real tags that follow. Quoted attribute values
    are kept so placeholders in ``src`` are still seen and skipped. Newlines
    are preserved, so offsets and line numbers do not move.
    """
    out: list[str] = []
    i = 0
    n = len(content)
    in_tag = False
    quote: str | None = None
    while i < n:
        if quote is not None:
            end = content.find(quote, i)
            end = n if end == -1 else end + 1
            out.append(content[i:end])
            i = end
            quote = None
            continue
        if content.startswith("{{", i):
            end = content.find("}}", i + 2)
            if end != -1:
                out.append("".join("\n" if c == "\n" else " " for c in content[i:end + 2]))
                i = end + 2
                continue
        ch = content[i]
        if not in_tag:
            if content.startswith("<!--", i):
                end = content.find("-->", i + 4)
                end = n if end == -1 else end + 3
                out.append(content[i:end])
                i = end
                continue
            if ch == "<":
                in_tag = True
        elif ch in "\"'":
            quote = ch
        elif ch == ">":
            in_tag = False
        out.append(ch)
        i += 1
    return "".join(out)


class _ReferenceFinder(HTMLParser):
    """HTMLParser subclass that records src attributes of referencing tags."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.refs: list[Reference] = []  # (src, tag)

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]):
        if tag not in _SRC_TAGS:
            return
        for name, value in attrs:
            if name == "src" and value:
                self.refs.append((value, tag))


class MarkupExtractor(BaseExtractor):
    extensions = MARKUP_EXTENSIONS

    def extract(self, content: str, file_path: Path) -> list[str]:
        return self._collect([src for src, _ in self.extract_tagged(content, file_path)])

    def extract_tagged(self, content: str, file_path: Path) -> list[Reference]:
        """(src, tag) pairs; the tag decides which extensions the src may carry."""
        finder = _ReferenceFinder()
        try:
            finder.feed(blank_expressions(content))
            finder.close()
        except AssertionError as e:
            # HTMLParser signals unrecoverable markup through assertions
            raise ExtractionError(file_path, f"malformed markup: {e}") from e
        return self._collect_tagged(finder.refs)
