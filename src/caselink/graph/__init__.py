from caselink.graph.engine import ROOT_TYPES, GraphAssembler, TraversalConfig, assemble_graph
from caselink.graph.models import Graph, GraphEdge, GraphNode
from caselink.graph.presets import DEFAULT_PRESET, PRESETS, get_preset
from caselink.graph.sources import ApiSource, DatabaseSource, GraphSource

__all__ = [
    "ROOT_TYPES",
    "DEFAULT_PRESET",
    "PRESETS",
    "ApiSource",
    "DatabaseSource",
    "Graph",
    "GraphAssembler",
    "GraphEdge",
    "GraphNode",
    "GraphSource",
    "TraversalConfig",
    "assemble_graph",
    "get_preset",
]
