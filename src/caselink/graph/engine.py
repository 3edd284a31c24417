"""Breadth-first graph assembly over cases, samples and persons.

Starting from one case or person, the engine walks the relational graph
level by level::

    case   -> samples       (has_sample, optional has_dna profile nodes)
    case   -> persons       (has_person, labelled with the person's role)
    case   -> linked cases  (dna_match / <link type>, with link strength)
    person -> cases         (found_in, labelled with the role)

Cases and persons are added and expanded at most once, so the walk
terminates on cyclic data; the level a node is first reached at is the level
it keeps. Edges to already-present nodes are still recorded, so multiplicity
lives on the edges. Fetches run one after another in frontier order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping

from caselink.errors import EntityNotFoundError, FetchError
from caselink.graph.clustering import cluster_outer_level
from caselink.graph.models import (
    Graph,
    GraphEdge,
    GraphNode,
    SampleData,
    case_node,
    dna_node,
    node_id,
    person_node,
    sample_node,
)
from caselink.graph.sources import GraphSource
from caselink.graph.stats import summarize

logger = logging.getLogger(__name__)

ROOT_TYPES = ("case", "person")

# Edge types describing the same person/case membership in opposite directions
_RELATION_GROUPS = {"has_person": "membership", "found_in": "membership"}


@dataclass(frozen=True)
class TraversalConfig:
    """Bounds and switches for one traversal.

    ``fanout`` caps how many rows of each relation a single expansion takes
    (``None`` takes all); ``level_fanout`` overrides it for specific levels.
    The node budget is checked before each expansion, and a fetched batch is
    merged whole, so a graph may end up one batch over ``max_nodes``.
    ``strict_budget`` stops adding nodes exactly at the budget instead.
    """

    max_levels: int = 3
    max_nodes: int = 100
    fanout: int | None = None
    level_fanout: Mapping[int, int] = field(default_factory=dict)
    include_samples: bool = True
    dna_profile_nodes: bool = False
    link_types: tuple[str, ...] | None = ("DNA_MATCH",)
    proxy_dna_edges: bool = False
    strict_budget: bool = False
    cluster_threshold: int | None = None
    cluster_min_nodes: int = 0

    def fanout_for(self, level: int) -> int | None:
        return self.level_fanout.get(level, self.fanout)

    def follows(self, link_type: str | None) -> bool:
        return self.link_types is None or link_type in self.link_types


def _take(rows: list[dict], limit: int | None) -> list[dict]:
    return rows if limit is None else rows[:limit]


class GraphAssembler:
    """Runs one traversal; holds the visited state for that traversal only."""

    def __init__(self, source: GraphSource, config: TraversalConfig | None = None):
        self.source = source
        self.config = config or TraversalConfig()
        self.nodes: dict[str, GraphNode] = {}
        self.edges: list[GraphEdge] = []
        self._edge_keys: set[tuple] = set()
        self.root_row: dict | None = None

    @property
    def budget_exhausted(self) -> bool:
        return len(self.nodes) >= self.config.max_nodes

    def assemble(self, root_type: str, root_id: str) -> Graph:
        root = self._load_root(root_type, root_id)
        self.nodes[root.id] = root

        frontier = [root]
        for level in range(1, self.config.max_levels + 1):
            next_frontier: list[GraphNode] = []
            for node in frontier:
                if self.budget_exhausted:
                    break
                next_frontier.extend(self._expand(node, level))
            frontier = next_frontier
            if not frontier or self.budget_exhausted:
                break

        nodes = list(self.nodes.values())
        edges = list(self.edges)
        threshold = self.config.cluster_threshold
        if threshold is not None and len(nodes) > self.config.cluster_min_nodes:
            nodes, edges = cluster_outer_level(nodes, edges, threshold)

        logger.debug(
            f"Assembled {root_type} graph for {root_id}: "
            f"{len(nodes)} nodes, {len(edges)} edges"
        )
        return Graph(nodes=nodes, edges=edges, stats=summarize(nodes, edges),
                     root=self.root_row)

    def _load_root(self, root_type: str, root_id: str) -> GraphNode:
        if root_type == "case":
            row = self.source.get_case(root_id)
            build = case_node
        elif root_type == "person":
            row = self.source.get_person(root_id)
            build = person_node
        else:
            raise ValueError(
                f"Unsupported root type '{root_type}' (expected one of {', '.join(ROOT_TYPES)})"
            )
        if row is None:
            raise EntityNotFoundError(root_type, root_id)
        self.root_row = row
        return build(row, 0, is_center=True)

    def _fetch(self, fetch: Callable[[str], list[dict]], key: str) -> list[dict]:
        try:
            return fetch(key) or []
        except FetchError as e:
            logger.warning(f"Skipping expansion: {e}")
            return []

    def _add_node(self, node: GraphNode) -> GraphNode | None:
        """Add ``node`` unless its id is already present; return it only if added."""
        if node.id in self.nodes:
            return None
        if self.config.strict_budget and self.budget_exhausted:
            return None
        self.nodes[node.id] = node
        return node

    def _add_edge(self, edge: GraphEdge) -> None:
        pair = frozenset((edge.source, edge.target))
        key = (pair, _RELATION_GROUPS.get(edge.type, edge.type), edge.inferred)
        if key in self._edge_keys:
            return
        self._edge_keys.add(key)
        self.edges.append(edge)

    def _attach(self, parent: GraphNode, child: GraphNode, edge_type: str,
                label: str | None = None, strength: float | None = None) -> GraphNode | None:
        added = self._add_node(child)
        if child.id in self.nodes:
            self._add_edge(GraphEdge(parent.id, child.id, edge_type, label, strength))
        return added

    def _expand(self, node: GraphNode, level: int) -> list[GraphNode]:
        if node.type == "case":
            return self._expand_case(node, level)
        if node.type == "person":
            return self._expand_person(node, level)
        return []

    def _expand_case(self, node: GraphNode, level: int) -> list[GraphNode]:
        case_key = node.data.case_id
        limit = self.config.fanout_for(level)
        new_nodes: list[GraphNode] = []

        first_sample: str | None = None
        if self.config.include_samples:
            for row in _take(self._fetch(self.source.case_samples, case_key), limit):
                sample = self._attach(node, sample_node(row, level), "has_sample")
                sample_id = node_id("sample", row["sample_id"])
                if first_sample is None and sample_id in self.nodes:
                    first_sample = sample_id
                if sample is not None and self.config.dna_profile_nodes:
                    self._attach_profile(sample, level)

        for row in _take(self._fetch(self.source.case_persons, case_key), limit):
            person = self._attach(node, person_node(row, level), "has_person",
                                  label=row.get("role"))
            if person is None:
                continue
            new_nodes.append(person)
            if self.config.proxy_dna_edges and first_sample is not None:
                # Display-only: DNA matches link samples, not persons
                self._add_edge(GraphEdge(first_sample, person.id, "dna_match",
                                         label="DNA", inferred=True))

        if self.config.link_types is None or self.config.link_types:
            links = [link for link in self._fetch(self.source.case_links, case_key)
                     if self.config.follows(link.get("link_type"))]
            for link in _take(links, limit):
                partner = _partner_case(link, case_key)
                if partner is None:
                    continue
                link_type = link.get("link_type") or "LINK"
                linked = self._attach(
                    node,
                    case_node(partner, level),
                    link_type.lower(),
                    label="DNA match" if link_type == "DNA_MATCH" else link_type,
                    strength=link.get("link_strength"),
                )
                if linked is not None:
                    new_nodes.append(linked)

        return new_nodes

    def _attach_profile(self, sample: GraphNode, level: int) -> None:
        data: SampleData = sample.data
        if data.has_dna_profile:
            self._attach(sample, dna_node(data, level), "has_dna")

    def _expand_person(self, node: GraphNode, level: int) -> list[GraphNode]:
        limit = self.config.fanout_for(level)
        new_nodes: list[GraphNode] = []
        for row in _take(self._fetch(self.source.person_cases, node.data.person_id), limit):
            case = self._attach(node, case_node(row, level), "found_in", label=row.get("role"))
            if case is not None:
                new_nodes.append(case)
        return new_nodes


def _partner_case(link: dict, case_key: str) -> dict | None:
    """Return the other end of a case link as a case row, or None for self-links."""
    if str(link.get("case1_id")) == case_key:
        side = "case2"
    elif str(link.get("case2_id")) == case_key:
        side = "case1"
    else:
        return None
    partner_id = link.get(f"{side}_id")
    if partner_id is None or str(partner_id) == case_key:
        return None
    return {
        "case_id": partner_id,
        "case_number": link.get(f"{side}_number"),
        "case_type": link.get(f"{side}_type"),
        "province": link.get(f"{side}_province"),
        "case_date": link.get(f"{side}_date"),
        "link_type": link.get("link_type"),
        "link_strength": link.get("link_strength"),
    }


def assemble_graph(source: GraphSource, root_type: str, root_id: str,
                   config: TraversalConfig | None = None) -> Graph:
    """Build the graph around one case or person.

    Raises:
        EntityNotFoundError: the root entity does not exist
        FetchError: the root entity could not be loaded
        ValueError: ``root_type`` is not ``case`` or ``person``
    """
    return GraphAssembler(source, config).assemble(root_type, root_id)
