"""
Tree-sitter front end: turns TypeScript/TSX source into navigable syntax trees.
"""
from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterator

import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Node, Parser, Tree


@lru_cache(maxsize=None)
def _language(lang_hint: str) -> Language:
    if lang_hint == "tsx":
        return Language(ts_typescript.language_tsx())
    return Language(ts_typescript.language_typescript())


@dataclass
class SourceFile:
    """A parsed file: the tree plus the bytes it was parsed from."""

    path: Path
    src: bytes
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node | None) -> str:
        if node is None:
            return ""
        return self.src[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def walk(self, node: Node | None = None, include_self: bool = True) -> Iterator[Node]:
        """Pre-order traversal over every descendant of node."""
        start = node if node is not None else self.root
        stack = [start] if include_self else list(reversed(start.children))
        while stack:
            current = stack.pop()
            yield current
            for i in range(len(current.children) - 1, -1, -1):
                stack.append(current.children[i])


def start_line(node: Node) -> int:
    return int(node.start_point[0]) + 1


def end_line(node: Node) -> int:
    return int(node.end_point[0]) + 1


def parse_source(path: Path, text: str, lang_hint: str = "typescript") -> SourceFile:
    parser = Parser(_language(lang_hint))
    src = text.encode("utf-8", errors="ignore")
    return SourceFile(path=Path(path), src=src, tree=parser.parse(src))
