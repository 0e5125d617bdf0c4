"""Design-tree input model — the hierarchical description of intended UI.

The design collaborator hands over JSON in one of three shapes: a single root
node, a list of root nodes, or a document with a ``nodes`` list.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from designdiff.engine.errors import InvalidDesignTree
from designdiff.utils.geometry import Box


class DesignBox(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)

    def to_box(self) -> Box:
        return Box(self.x, self.y, self.width, self.height)


class DesignNode(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str = ""
    type: str = ""
    bounding_box: DesignBox | None = Field(default=None, alias="boundingBox")
    children: tuple[DesignNode, ...] = ()


def parse_design_tree(data: Any) -> list[DesignNode] | None:
    """Validate design JSON (already decoded, or a JSON string) into root nodes.

    ``None`` means no design data; malformed data raises ``InvalidDesignTree``.
    """
    if data is None:
        return None
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise InvalidDesignTree(f"Design tree is not valid JSON: {e}") from e
    if isinstance(data, DesignNode):
        return [data]
    if isinstance(data, dict) and "nodes" in data and "id" not in data:
        data = data["nodes"]
    raw_roots = data if isinstance(data, list) else [data]
    try:
        return [
            node if isinstance(node, DesignNode) else DesignNode.model_validate(node)
            for node in raw_roots
        ]
    except ValidationError as e:
        raise InvalidDesignTree(f"Malformed design tree: {e.error_count()} validation error(s)") from e


def walk(roots: list[DesignNode]) -> Iterator[tuple[DesignNode, int]]:
    """Depth-first pre-order walk yielding ``(node, depth)`` in document order."""
    stack: list[tuple[DesignNode, int]] = [(root, 0) for root in reversed(roots)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        for child in reversed(node.children):
            stack.append((child, depth + 1))
