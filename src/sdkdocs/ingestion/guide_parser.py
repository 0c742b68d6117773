"""Split hand-written markdown guides into heading-scoped chunks.

Uses markdown-it-py for the block-level tree. Every heading closes the chunk
before it regardless of depth; paragraphs, code fences, lists and blockquotes
that follow are rendered to text and collected under it. Text that precedes
the first heading is dropped.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from sdkdocs.ingestion.paths import classify_path
from sdkdocs.models import DocChunk

LOGGER = logging.getLogger(__name__)

_MARKDOWN = MarkdownIt("commonmark")

_LIST_TYPES = {"bullet_list", "ordered_list"}
_CODE_TYPES = {"fence", "code_block"}


def node_text(node: SyntaxTreeNode) -> str:
    """Concatenate the literal text below ``node``, dropping markup."""
    if node.type in ("text", "code_inline", "html_inline"):
        return node.content
    if node.type in ("softbreak", "hardbreak"):
        return "\n"
    if node.type in _CODE_TYPES:
        return node.content.rstrip("\n")
    if node.type == "inline" and not node.children:
        return node.content
    parts = [node_text(child) for child in node.children]
    if node.is_nested and node.type not in ("paragraph", "heading", "link", "em", "strong"):
        # block containers: keep their children apart
        return " ".join(part for part in parts if part)
    return "".join(parts)


def render_code(node: SyntaxTreeNode) -> str:
    lang = node.info.split()[0] if node.type == "fence" and node.info.strip() else ""
    return f"```{lang}\n{node.content.rstrip(chr(10))}\n```"


def render_list(node: SyntaxTreeNode) -> str:
    return "\n".join(f"- {node_text(item)}" for item in node.children)


def render_block(node: SyntaxTreeNode) -> str | None:
    """Render one content block, or ``None`` for blocks that carry no text."""
    if node.type == "paragraph":
        return node_text(node)
    if node.type in _CODE_TYPES:
        return render_code(node)
    if node.type in _LIST_TYPES:
        return render_list(node)
    if node.type == "blockquote":
        return f"> {node_text(node)}"
    return None


def iter_chunks(text: str, file_path: str | Path) -> Iterator[DocChunk]:
    """Lazily yield chunks in document order."""
    info = classify_path(file_path)
    root = SyntaxTreeNode(_MARKDOWN.parse(text))

    heading = ""
    level = 1
    content: List[str] = []

    def flush() -> DocChunk | None:
        if heading and content:
            return DocChunk(
                title=heading,
                content="\n\n".join(content),
                heading_level=level,
                package=info.package,
                category=info.category,
                source_url=info.source_url,
                file_path=str(file_path),
            )
        return None

    for node in root.children:
        if node.type == "heading":
            chunk = flush()
            if chunk is not None:
                yield chunk
            heading = node_text(node).strip()
            level = int(node.tag[1])
            content = []
            continue
        rendered = render_block(node)
        if rendered is not None:
            content.append(rendered)

    chunk = flush()
    if chunk is not None:
        yield chunk


def parse_guide(text: str, file_path: str | Path) -> List[DocChunk]:
    """Parse a markdown document into its list of heading-scoped chunks."""
    chunks = list(iter_chunks(text, file_path))
    LOGGER.debug("Parsed %d chunks from %s", len(chunks), file_path)
    return chunks
