"""Data model for mindtree documents."""

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


DEFAULT_TOPIC = "New Topic"

Offset = Tuple[float, float]


def new_id() -> str:
    """Generate a fresh globally unique id."""
    return str(uuid.uuid4())


class LayoutDirection(Enum):
    """Side hint for a branch."""
    LEFT = "left"
    RIGHT = "right"
    SIDE = "side"


@dataclass(frozen=True)
class NodeStyle:
    """Style configuration for a node."""
    font_size: Optional[float] = None
    font_weight: Optional[str] = None
    color: Optional[str] = None
    background: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "fontSize": self.font_size,
            "fontWeight": self.font_weight,
            "color": self.color,
            "background": self.background,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "NodeStyle":
        if not data:
            return cls()
        return cls(
            font_size=data.get("fontSize"),
            font_weight=data.get("fontWeight"),
            color=data.get("color"),
            background=data.get("background"),
        )


@dataclass(frozen=True)
class Tag:
    """A short label attached to a node."""
    text: str
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text}
        if self.color is not None:
            data["color"] = self.color
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        return cls(text=data.get("text", ""), color=data.get("color"))


@dataclass(frozen=True)
class ImageRef:
    """Reference to an image shown on a node. Never loaded by the core."""
    url: str
    width: float = 0.0
    height: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageRef":
        return cls(
            url=data.get("url", ""),
            width=float(data.get("width", 0.0)),
            height=float(data.get("height", 0.0)),
        )


@dataclass(frozen=True)
class TopicNode:
    """A node in the mind-map tree.

    Nodes are immutable values owned by their parent's ``children`` tuple.
    There are no parent pointers; parentage is derived by traversal.
    """
    id: str
    topic: str = DEFAULT_TOPIC
    children: Tuple["TopicNode", ...] = ()
    expanded: bool = True
    branch_color: Optional[str] = None
    direction: Optional[LayoutDirection] = None
    # Passengers: carried, never inspected.
    style: Optional[NodeStyle] = None
    tags: Tuple[Tag, ...] = ()
    icons: Tuple[str, ...] = ()
    images: Tuple[ImageRef, ...] = ()
    hyperlink: Optional[str] = None
    note: Optional[str] = None

    @classmethod
    def create(cls, topic: str = DEFAULT_TOPIC, **fields: Any) -> "TopicNode":
        """Create a node with a generated id."""
        node_id = fields.pop("id", None) or new_id()
        if "children" in fields:
            fields["children"] = tuple(fields["children"])
        return cls(id=node_id, topic=topic, **fields)

    def copy_with(self, **fields: Any) -> "TopicNode":
        if "children" in fields:
            fields["children"] = tuple(fields["children"])
        return replace(self, **fields)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "topic": self.topic}
        if self.style is not None:
            data["style"] = self.style.to_dict()
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        if self.tags:
            data["tags"] = [t.to_dict() for t in self.tags]
        if self.icons:
            data["icons"] = list(self.icons)
        if self.hyperlink is not None:
            data["hyperLink"] = self.hyperlink
        data["expanded"] = self.expanded
        if self.direction is not None:
            data["direction"] = self.direction.value
        if self.images:
            data["images"] = [i.to_dict() for i in self.images]
        if self.branch_color is not None:
            data["branchColor"] = self.branch_color
        if self.note is not None:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopicNode":
        direction = data.get("direction")
        return cls(
            id=data.get("id") or new_id(),
            topic=data.get("topic", DEFAULT_TOPIC),
            children=tuple(cls.from_dict(c) for c in data.get("children", [])),
            expanded=bool(data.get("expanded", True)),
            branch_color=data.get("branchColor"),
            direction=LayoutDirection(direction) if direction else None,
            style=NodeStyle.from_dict(data["style"]) if data.get("style") is not None else None,
            tags=tuple(Tag.from_dict(t) for t in data.get("tags", [])),
            icons=tuple(data.get("icons", [])),
            images=tuple(ImageRef.from_dict(i) for i in data.get("images", [])),
            hyperlink=data.get("hyperLink"),
            note=data.get("note"),
        )


@dataclass(frozen=True)
class Arrow:
    """A cross-tree connection between two nodes."""
    id: str
    from_node_id: str
    to_node_id: str
    label: Optional[str] = None
    bidirectional: bool = False
    control_offsets: Tuple[Offset, Offset] = ((0.0, 0.0), (0.0, 0.0))

    @classmethod
    def create(cls, from_node_id: str, to_node_id: str, **fields: Any) -> "Arrow":
        return cls(id=fields.pop("id", None) or new_id(),
                   from_node_id=from_node_id, to_node_id=to_node_id, **fields)

    def to_dict(self) -> Dict[str, Any]:
        (dx1, dy1), (dx2, dy2) = self.control_offsets
        data: Dict[str, Any] = {
            "id": self.id,
            "fromNodeId": self.from_node_id,
            "toNodeId": self.to_node_id,
        }
        if self.label is not None:
            data["label"] = self.label
        data["delta1"] = {"dx": dx1, "dy": dy1}
        data["delta2"] = {"dx": dx2, "dy": dy2}
        data["bidirectional"] = self.bidirectional
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Arrow":
        def offset(key: str) -> Offset:
            raw = data.get(key) or {}
            return (float(raw.get("dx", 0.0)), float(raw.get("dy", 0.0)))

        return cls(
            id=data.get("id") or new_id(),
            from_node_id=data.get("fromNodeId", ""),
            to_node_id=data.get("toNodeId", ""),
            label=data.get("label"),
            bidirectional=bool(data.get("bidirectional", False)),
            control_offsets=(offset("delta1"), offset("delta2")),
        )


@dataclass(frozen=True)
class Summary:
    """A bracket grouping a contiguous run of a parent's children."""
    id: str
    parent_node_id: str
    start_index: int
    end_index: int
    label: Optional[str] = None
    style: Optional[Dict[str, Any]] = field(default=None, compare=True, hash=False)

    @classmethod
    def create(cls, parent_node_id: str, start_index: int, end_index: int,
               **fields: Any) -> "Summary":
        return cls(id=fields.pop("id", None) or new_id(), parent_node_id=parent_node_id,
                   start_index=start_index, end_index=end_index, **fields)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "parentNodeId": self.parent_node_id,
            "startIndex": self.start_index,
            "endIndex": self.end_index,
        }
        if self.label is not None:
            data["label"] = self.label
        if self.style is not None:
            data["style"] = dict(self.style)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Summary":
        return cls(
            id=data.get("id") or new_id(),
            parent_node_id=data.get("parentNodeId", ""),
            start_index=int(data.get("startIndex", 0)),
            end_index=int(data.get("endIndex", 0)),
            label=data.get("label"),
            style=data.get("style"),
        )


@dataclass(frozen=True)
class Document:
    """A complete mind map: the topic tree plus arrows and summaries."""
    root: TopicNode
    arrows: Tuple[Arrow, ...] = ()
    summaries: Tuple[Summary, ...] = ()
    direction: LayoutDirection = LayoutDirection.SIDE

    @classmethod
    def empty(cls, root_topic: str = "Central Topic") -> "Document":
        return cls(root=TopicNode.create(root_topic))

    def copy_with(self, **fields: Any) -> "Document":
        for key in ("arrows", "summaries"):
            if key in fields:
                fields[key] = tuple(fields[key])
        return replace(self, **fields)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"nodeData": self.root.to_dict()}
        if self.arrows:
            data["arrows"] = [a.to_dict() for a in self.arrows]
        if self.summaries:
            data["summaries"] = [s.to_dict() for s in self.summaries]
        data["direction"] = self.direction.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        root_data = data.get("nodeData")
        return cls(
            root=TopicNode.from_dict(root_data) if root_data else TopicNode.create("Central Topic"),
            arrows=tuple(Arrow.from_dict(a) for a in data.get("arrows", [])),
            summaries=tuple(Summary.from_dict(s) for s in data.get("summaries", [])),
            direction=LayoutDirection(data.get("direction", LayoutDirection.SIDE.value)),
        )
