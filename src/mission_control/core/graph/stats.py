from __future__ import annotations

from .schemas import NODE_STATUSES, NODE_TYPES, GraphStats, TaskGraph


def _max_depth(graph: TaskGraph) -> int:
    if graph.root_id not in graph.nodes:
        return 0
    deepest = 0
    stack = [(graph.root_id, 0)]
    while stack:
        node_id, depth = stack.pop()
        deepest = max(deepest, depth)
        node = graph.nodes.get(node_id)
        if node is None:
            continue
        stack.extend((child, depth + 1) for child in node.children if child in graph.nodes)
    return deepest


def compute_graph_stats(graph: TaskGraph) -> GraphStats:
    by_type = {node_type: 0 for node_type in NODE_TYPES}
    by_status = {status: 0 for status in NODE_STATUSES}
    for node in graph.nodes.values():
        by_type[node.type] += 1
        by_status[node.status] += 1
    root = graph.nodes.get(graph.root_id)
    return GraphStats(
        node_count=len(graph.nodes),
        nodes_by_type=by_type,
        nodes_by_status=by_status,
        edge_count=len(graph.edges),
        max_depth=_max_depth(graph),
        total_duration_ms=root.duration_ms if root is not None else None,
    )
