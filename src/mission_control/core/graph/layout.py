from __future__ import annotations

from typing import Mapping

from .schemas import NodeBase, Position

NODE_HEIGHT = 60
NODE_WIDTH = 200
LEVEL_GAP = 100
SIBLING_GAP = 20


def apply_tree_layout(nodes: Mapping[str, NodeBase], root_id: str) -> None:
    """Assign positions in place.

    Leaves stack top to bottom, a parent sits at the vertical midpoint of its
    first and last child, and x depends only on depth.
    """

    def place(node_id: str, level: int, offset: float) -> float:
        node = nodes.get(node_id)
        if node is None:
            return offset
        x = float(level * (NODE_WIDTH + LEVEL_GAP))
        children = [child for child in node.children if child in nodes]
        if not children:
            node.position = Position(x=x, y=offset)
            return offset + NODE_HEIGHT + SIBLING_GAP

        next_offset = offset
        for child_id in children:
            next_offset = place(child_id, level + 1, next_offset)
        first = nodes[children[0]].position
        last = nodes[children[-1]].position
        top = first.y if first is not None else 0.0
        bottom = last.y if last is not None else 0.0
        node.position = Position(x=x, y=(top + bottom) / 2)
        return next_offset

    place(root_id, 0, 0.0)
