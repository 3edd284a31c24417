"""Graph node, edge and payload types produced by the assembly engine.

A node's ``data`` is a tagged union keyed by ``GraphNode.type``:

========  ===============
type      data
========  ===============
case      :class:`CaseData`
person    :class:`PersonData`
sample    :class:`SampleData`
dna       :class:`DnaData`
cluster   :class:`ClusterData`
========  ===============
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Union

NODE_TYPES = ("case", "person", "sample", "dna", "cluster")

# Case types containing one of these markers (murder, robbery, narcotics) are severe
SEVERE_MARKERS = ("ฆ่า", "ปล้น", "ยาเสพติด")


def node_id(node_type: str, key: Any) -> str:
    return f"{node_type}:{key}"


def severity(case_type: str | None) -> str:
    if case_type and any(marker in case_type for marker in SEVERE_MARKERS):
        return "severe"
    return "normal"


@dataclass
class CaseData:
    case_id: str
    case_number: str | None = None
    case_type: str | None = None
    province: str | None = None
    police_station: str | None = None
    case_date: str | None = None
    role: str | None = None
    sample_count: int | None = None
    link_type: str | None = None
    link_strength: float | None = None

    @property
    def severity(self) -> str:
        return severity(self.case_type)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CaseData":
        return cls(
            case_id=str(row["case_id"]),
            case_number=row.get("case_number"),
            case_type=row.get("case_type"),
            province=row.get("province"),
            police_station=row.get("police_station"),
            case_date=row.get("case_date"),
            role=row.get("role"),
            sample_count=row.get("sample_count"),
            link_type=row.get("link_type"),
            link_strength=row.get("link_strength"),
        )

    def to_dict(self) -> dict:
        return {**asdict(self), "severity": self.severity}


@dataclass
class PersonData:
    person_id: str
    id_number: str | None = None
    full_name: str | None = None
    person_type: str | None = None
    role: str | None = None
    case_count: int | None = None

    @property
    def effective_role(self) -> str:
        return self.role or self.person_type or "Unknown"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PersonData":
        return cls(
            person_id=str(row["person_id"]),
            id_number=row.get("id_number"),
            full_name=row.get("full_name"),
            person_type=row.get("person_type"),
            role=row.get("role"),
            case_count=row.get("case_count", row.get("total_cases")),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SampleData:
    sample_id: str
    case_id: str | None = None
    lab_number: str | None = None
    sample_type: str | None = None
    sample_source: str | None = None
    has_dna_profile: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SampleData":
        has_profile = row.get("has_dna_profile")
        if has_profile is None:
            has_profile = row.get("dna_profile") is not None
        return cls(
            sample_id=str(row["sample_id"]),
            case_id=row.get("case_id"),
            lab_number=row.get("lab_number"),
            sample_type=row.get("sample_type"),
            sample_source=row.get("sample_source"),
            has_dna_profile=bool(has_profile),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DnaData:
    sample_id: str
    lab_number: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ClusterData:
    member_type: str
    members: list["GraphNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "member_type": self.member_type,
            "count": len(self.members),
            "members": [member.to_dict() for member in self.members],
        }


NodeData = Union[CaseData, PersonData, SampleData, DnaData, ClusterData]


@dataclass
class GraphNode:
    id: str
    type: str
    label: str
    level: int
    data: NodeData
    is_center: bool = False

    def __post_init__(self):
        if self.type not in NODE_TYPES:
            raise ValueError(f"Unknown node type '{self.type}'")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "label": self.label,
            "level": self.level,
            "isCenter": self.is_center,
            "data": self.data.to_dict(),
        }


@dataclass
class GraphEdge:
    source: str
    target: str
    type: str
    label: str | None = None
    strength: float | None = None
    inferred: bool = False

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "label": self.label,
            "strength": self.strength,
            "inferred": self.inferred,
        }


@dataclass
class Graph:
    nodes: list[GraphNode]
    edges: list[GraphEdge]
    stats: dict = field(default_factory=dict)
    root: dict | None = None

    @property
    def center(self) -> GraphNode:
        return next(node for node in self.nodes if node.is_center)

    def node(self, node_key: str) -> GraphNode | None:
        return next((node for node in self.nodes if node.id == node_key), None)

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "stats": self.stats,
        }


def case_node(row: Mapping[str, Any], level: int, is_center: bool = False) -> GraphNode:
    data = CaseData.from_row(row)
    return GraphNode(
        id=node_id("case", data.case_id),
        type="case",
        label=data.case_number or data.case_id,
        level=level,
        data=data,
        is_center=is_center,
    )


def person_node(row: Mapping[str, Any], level: int, is_center: bool = False) -> GraphNode:
    data = PersonData.from_row(row)
    return GraphNode(
        id=node_id("person", data.person_id),
        type="person",
        label=data.full_name or "Unknown",
        level=level,
        data=data,
        is_center=is_center,
    )


def sample_node(row: Mapping[str, Any], level: int) -> GraphNode:
    data = SampleData.from_row(row)
    return GraphNode(
        id=node_id("sample", data.sample_id),
        type="sample",
        label=data.lab_number or data.sample_id,
        level=level,
        data=data,
    )


def dna_node(sample: SampleData, level: int) -> GraphNode:
    return GraphNode(
        id=node_id("dna", sample.sample_id),
        type="dna",
        label="DNA Profile",
        level=level,
        data=DnaData(sample_id=sample.sample_id, lab_number=sample.lab_number),
    )
