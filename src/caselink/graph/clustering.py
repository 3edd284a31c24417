"""Collapse crowded leaves of the outermost graph level into cluster nodes."""

from __future__ import annotations

from collections import defaultdict

from caselink.graph.models import ClusterData, GraphEdge, GraphNode, node_id


def cluster_outer_level(nodes: list[GraphNode], edges: list[GraphEdge],
                        threshold: int) -> tuple[list[GraphNode], list[GraphEdge]]:
    """Replace groups of outer-level leaves with one cluster node per group.

    A leaf is a node on the deepest level with exactly one incident edge, and
    that edge points at it. Leaves are grouped by (source node, node type);
    a group with more than ``threshold`` members becomes a single ``cluster``
    node joined to the source by a ``has_cluster`` edge.
    """
    depth = max((node.level for node in nodes), default=0)
    if depth == 0:
        return nodes, edges

    incident: dict[str, list[GraphEdge]] = defaultdict(list)
    for edge in edges:
        incident[edge.source].append(edge)
        if edge.target != edge.source:
            incident[edge.target].append(edge)

    groups: dict[tuple[str, str], list[GraphNode]] = defaultdict(list)
    for node in nodes:
        if node.level != depth or node.is_center or node.type == "cluster":
            continue
        touching = incident.get(node.id, [])
        if len(touching) == 1 and touching[0].target == node.id:
            groups[(touching[0].source, node.type)].append(node)

    absorbed: set[str] = set()
    clusters: list[GraphNode] = []
    cluster_edges: list[GraphEdge] = []
    for (source, member_type), members in groups.items():
        if len(members) <= threshold:
            continue
        absorbed.update(member.id for member in members)
        cluster_id = node_id("cluster", f"{source}:{member_type}")
        clusters.append(GraphNode(
            id=cluster_id,
            type="cluster",
            label=f"{len(members)} {member_type}s",
            level=depth,
            data=ClusterData(member_type=member_type, members=members),
        ))
        cluster_edges.append(GraphEdge(source, cluster_id, "has_cluster",
                                       label=str(len(members))))

    if not absorbed:
        return nodes, edges

    kept_nodes = [node for node in nodes if node.id not in absorbed] + clusters
    kept_edges = [edge for edge in edges
                  if edge.source not in absorbed and edge.target not in absorbed]
    return kept_nodes, kept_edges + cluster_edges
