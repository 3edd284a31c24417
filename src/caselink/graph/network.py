"""Case-to-case network built from the strongest case links."""

from caselink.graph.models import Graph, GraphEdge, GraphNode, case_node
from caselink.graph.stats import summarize


def link_network(links: list[dict]) -> Graph:
    """Build a flat graph of cases joined by their case links.

    ``links`` are rows carrying both ends' case columns (``case1_*`` and
    ``case2_*``), as returned by :func:`caselink.queries.network_links`.
    Every node sits on level 0; there is no center.
    """
    nodes: dict[str, GraphNode] = {}
    edges: list[GraphEdge] = []
    for link in links:
        ends = []
        for side in ("case1", "case2"):
            node = case_node({
                "case_id": link[f"{side}_id"],
                "case_number": link.get(f"{side}_number"),
                "case_type": link.get(f"{side}_type"),
                "province": link.get(f"{side}_province"),
                "case_date": link.get(f"{side}_date"),
            }, level=0)
            nodes.setdefault(node.id, node)
            ends.append(node.id)
        if ends[0] == ends[1]:
            continue
        link_type = link.get("link_type") or "LINK"
        edges.append(GraphEdge(ends[0], ends[1], link_type.lower(), label=link_type,
                               strength=link.get("link_strength")))

    node_list = list(nodes.values())
    return Graph(nodes=node_list, edges=edges, stats=summarize(node_list, edges))
