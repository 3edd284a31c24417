"""Graph routes: JSON node/edge sets for the visualisation pages."""

import dataclasses

from flask import Blueprint, current_app, jsonify, request

from caselink import queries
from caselink.errors import BadRequestError
from caselink.graph import ROOT_TYPES, DatabaseSource, assemble_graph, get_preset
from caselink.graph.network import link_network
from caselink.graph.presets import DEFAULT_PRESET, PRESETS, describe
from caselink.graph.stats import link_counts, severity_counts

bp = Blueprint("graph", __name__)


def _overrides(config):
    """Apply ``levels``, ``max_nodes``, ``fanout`` and ``cluster_threshold`` query overrides."""
    changes = {}
    if "levels" in request.args:
        changes["max_levels"] = queries.clamp_limit(request.args["levels"], config.max_levels, 10)
    if "max_nodes" in request.args:
        changes["max_nodes"] = queries.clamp_limit(request.args["max_nodes"], config.max_nodes, 2000)
    if "fanout" in request.args:
        changes["fanout"] = max(queries.to_int(request.args["fanout"], 0), 0) or None
        changes["level_fanout"] = {}
    if "cluster_threshold" in request.args:
        changes["cluster_threshold"] = max(queries.to_int(request.args["cluster_threshold"], 0), 0) or None
    return dataclasses.replace(config, **changes) if changes else config


@bp.route("/person/<person_id>")
def person_graph(person_id):
    """Person-centred view: the person and every case they appear in."""
    db = current_app.get_db()
    try:
        graph = assemble_graph(DatabaseSource(db), "person", person_id, PRESETS["person"])
    finally:
        db.close()
    data = graph.to_dict()
    data["stats"].update(severity_counts(graph.nodes))
    return jsonify({"data": {"person": graph.root, **data}})


@bp.route("/case/<case_id>")
def case_graph(case_id):
    """Case-centred view: persons in the case and directly linked cases."""
    db = current_app.get_db()
    try:
        graph = assemble_graph(DatabaseSource(db), "case", case_id, PRESETS["case"])
    finally:
        db.close()
    data = graph.to_dict()
    data["stats"].update(link_counts(graph.nodes, graph.edges))
    return jsonify({"data": {"case": graph.root, **data}})


@bp.route("/network")
def network():
    db = current_app.get_db()
    try:
        limit = queries.clamp_limit(request.args.get("limit"), 50, 200)
        min_strength = queries.to_float(request.args.get("min_strength"), 0.8) or 0.8
        links = queries.network_links(db, limit, min_strength)
    finally:
        db.close()
    return jsonify({"data": link_network(links).to_dict()})


@bp.route("/explore/<root_type>/<root_id>")
def explore(root_type, root_id):
    """Multi-hop traversal from any case or person using a named preset."""
    if root_type not in ROOT_TYPES:
        raise BadRequestError(
            f"Unsupported root type '{root_type}' (expected one of {', '.join(ROOT_TYPES)})"
        )
    preset = request.args.get("preset", DEFAULT_PRESET)
    try:
        config = get_preset(preset)
    except ValueError as e:
        raise BadRequestError(str(e)) from None
    config = _overrides(config)

    db = current_app.get_db()
    try:
        graph = assemble_graph(DatabaseSource(db), root_type, root_id, config)
    finally:
        db.close()
    return jsonify({"data": {"preset": preset, "root": graph.root, **graph.to_dict()}})


@bp.route("/presets")
def presets():
    return jsonify({"data": {name: describe(config) for name, config in PRESETS.items()},
                    "default": DEFAULT_PRESET})
