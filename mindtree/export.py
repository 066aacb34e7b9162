"""Export functionality for mindtree documents."""

import json
import logging
from pathlib import Path
from typing import List, Union

from mindtree.models import Document, TopicNode

logger = logging.getLogger(__name__)


def export_json(document: Document, indent: int = 2) -> str:
    """Serialise a document to JSON text."""
    return json.dumps(document.to_dict(), indent=indent, ensure_ascii=False)


def import_json(text: str) -> Document:
    """Parse JSON produced by `export_json`."""
    return Document.from_dict(json.loads(text))


def export_markdown(document: Document, include_notes: bool = True) -> str:
    """Export a document to a Markdown outline."""
    root = document.root
    lines: List[str] = []

    # Title
    lines.append(f"# {root.topic}")
    lines.append("")

    # Iterative walk; children are pushed reversed so they come out in order.
    stack = [(child, 1) for child in reversed(root.children)]
    while stack:
        node, depth = stack.pop()
        _append_node(lines, node, depth, include_notes)
        stack.extend((child, depth + 1) for child in reversed(node.children))

    return "\n".join(lines)


def _append_node(lines: List[str], node: TopicNode, depth: int, include_notes: bool):
    # Heading or bullet based on depth
    if depth == 1:
        lines.append(f"## {node.topic}")
    elif depth == 2:
        lines.append(f"### {node.topic}")
    else:
        indent = "  " * (depth - 3)
        lines.append(f"{indent}- {node.topic}")

    if include_notes and node.note and node.note.strip():
        note_indent = "  " * (depth - 2) if depth > 2 else "  "
        for note_line in node.note.strip().split("\n"):
            lines.append(f"{note_indent}> {note_line}")
        lines.append("")


def write_export(path: Union[str, Path], text: str) -> Path:
    """Write exported text to ``path``, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        f.write(text)
    logger.info("Exported %d characters to %s", len(text), target)
    return target
