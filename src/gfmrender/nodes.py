"""Block nodes with custom rendering.

The block parser hands headings and code blocks to these variants; every
other node type keeps the parser's default HTML rendering.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from gfmrender.codeblock import render_code_block
from gfmrender.heading import render_heading

if TYPE_CHECKING:
    from gfmrender.config import Settings


@dataclass(frozen=True, slots=True)
class HeadingNode:
    level: int
    content: str  # rendered inline HTML


@dataclass(frozen=True, slots=True)
class CodeBlockNode:
    info: str
    literal: str


type BlockNode = HeadingNode | CodeBlockNode


def render_node(node: BlockNode, settings: Settings) -> str:
    """Render a heading or code block node to HTML."""
    match node:
        case HeadingNode(level=level, content=content):
            return render_heading(level, content).markup + "\n"
        case CodeBlockNode(info=info, literal=literal):
            return render_code_block(info, literal, settings)
    msg = f"unsupported node: {node!r}"
    raise TypeError(msg)
