"""Summary counts over an assembled graph."""

from __future__ import annotations

from collections import Counter

from caselink.graph.models import GraphEdge, GraphNode


def summarize(nodes: list[GraphNode], edges: list[GraphEdge]) -> dict:
    by_type = Counter(node.type for node in nodes)
    by_role = Counter(
        node.data.effective_role for node in nodes if node.type == "person"
    )
    return {
        "nodeCount": len(nodes),
        "edgeCount": len(edges),
        "depth": max((node.level for node in nodes), default=0),
        "totalCases": by_type["case"],
        "totalPersons": by_type["person"],
        "totalSamples": by_type["sample"],
        "totalDna": by_type["dna"],
        "totalClusters": by_type["cluster"],
        "byType": dict(by_type),
        "byRole": dict(by_role),
        "suspects": by_role["Suspect"],
        "arrested": by_role["Arrested"],
        # Every person who is neither a suspect nor arrested counts as a reference
        "references": by_type["person"] - by_role["Suspect"] - by_role["Arrested"],
        "victims": by_role["Victim"],
    }


def severity_counts(nodes: list[GraphNode]) -> dict:
    """Severe versus normal cases, for person-centred views."""
    counts = Counter(node.data.severity for node in nodes if node.type == "case")
    return {"severeCases": counts["severe"], "normalCases": counts["normal"]}


def link_counts(nodes: list[GraphNode], edges: list[GraphEdge]) -> dict:
    """Person and link counts for case-centred views."""
    return {
        "personCount": sum(1 for node in nodes if node.type == "person"),
        "linkCount": sum(1 for edge in edges if not edge.inferred
                         and edge.type not in ("has_sample", "has_dna", "has_person",
                                               "found_in", "has_cluster")),
        "dnaLinks": sum(1 for edge in edges
                        if edge.type == "dna_match" and not edge.inferred),
        "idLinks": sum(1 for edge in edges if edge.type == "id_number"),
    }
