"""Configuration for mindtree controllers."""

import json
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Optional


@dataclass(frozen=True)
class MindMapConfig:
    """Options recognised by `MindMapController`."""
    allow_undo: bool = True
    max_history_size: int = 50  # 0 or less keeps unlimited history
    default_topic: str = "New Topic"
    default_summary_label: str = "Summary"

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: Optional[str]) -> "MindMapConfig":
        if not data:
            return cls()
        try:
            d = json.loads(data)
            # Filter to only known fields to handle schema evolution
            known = {f.name for f in fields(cls)}
            return cls(**{k: v for k, v in d.items() if k in known})
        except (json.JSONDecodeError, TypeError, AttributeError):
            return cls()

    def copy_with(self, **changes: Any) -> "MindMapConfig":
        return replace(self, **changes)
