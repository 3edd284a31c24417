"""Named traversal configurations, one per graph view."""

from caselink.graph.engine import TraversalConfig

DEFAULT_PRESET = "explorer"

PRESETS = {
    # Person profile: the cases a person appears in
    "person": TraversalConfig(
        max_levels=1, max_nodes=1000, include_samples=False, link_types=None,
    ),
    # Case profile: persons and all directly linked cases
    "case": TraversalConfig(
        max_levels=1, max_nodes=1000, include_samples=False, link_types=None,
    ),
    "explorer": TraversalConfig(
        max_levels=3, max_nodes=100, fanout=3, level_fanout={1: 10},
        include_samples=True, dna_profile_nodes=True,
    ),
    "hierarchy": TraversalConfig(
        max_levels=5, max_nodes=200, fanout=8, level_fanout={1: 10},
        include_samples=False,
    ),
    "network": TraversalConfig(
        max_levels=3, max_nodes=100, include_samples=True, proxy_dna_edges=True,
        cluster_threshold=3, cluster_min_nodes=50,
    ),
}


def get_preset(name: str) -> TraversalConfig:
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown preset '{name}' (available: {', '.join(sorted(PRESETS))})"
        ) from None


def describe(config: TraversalConfig) -> dict:
    return {
        "maxLevels": config.max_levels,
        "maxNodes": config.max_nodes,
        "fanout": config.fanout,
        "levelFanout": dict(config.level_fanout),
        "includeSamples": config.include_samples,
        "dnaProfileNodes": config.dna_profile_nodes,
        "linkTypes": list(config.link_types) if config.link_types is not None else None,
        "proxyDnaEdges": config.proxy_dna_edges,
        "strictBudget": config.strict_budget,
        "clusterThreshold": config.cluster_threshold,
        "clusterMinNodes": config.cluster_min_nodes,
    }
