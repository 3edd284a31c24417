"""Search routes: free text, by ID number, by case number and filtered."""

from flask import Blueprint, current_app, jsonify, request

from caselink import queries
from caselink.errors import BadRequestError

bp = Blueprint("search", __name__)

MIN_TERM_LENGTH = 2

ADVANCED_FILTERS = ("province", "case_type", "from_date", "to_date",
                    "has_links", "min_link_strength")


@bp.route("")
def index():
    term = request.args.get("q", "")
    kind = request.args.get("type", "all")
    if len(term) < MIN_TERM_LENGTH:
        raise BadRequestError(f"Search term must be at least {MIN_TERM_LENGTH} characters")
    if kind not in queries.SEARCH_KINDS:
        raise BadRequestError(
            f"Unknown search type '{kind}' (expected one of {', '.join(queries.SEARCH_KINDS)})"
        )

    db = current_app.get_db()
    try:
        results = queries.search_entities(db, term, kind)
    finally:
        db.close()

    counts = {key: len(rows) for key, rows in results.items()}
    counts["total"] = sum(counts.values())
    return jsonify({"data": results, "query": term, "counts": counts})


@bp.route("/id/<id_number>")
def by_id_number(id_number):
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.search_by_id_number(db, id_number)})
    finally:
        db.close()


@bp.route("/case/<path:case_number>")
def by_case_number(case_number):
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.search_by_case_number(db, case_number)})
    finally:
        db.close()


@bp.route("/advanced", methods=["POST"])
def advanced():
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        raise BadRequestError("Request body must be a JSON object")
    filters = {key: body.get(key) for key in ADVANCED_FILTERS}

    min_strength = filters["min_link_strength"]
    if min_strength is not None:
        min_strength = queries.to_float(min_strength, 0.0)

    db = current_app.get_db()
    try:
        rows = queries.advanced_search(
            db,
            province=filters["province"],
            case_type=filters["case_type"],
            from_date=filters["from_date"],
            to_date=filters["to_date"],
            has_links=bool(filters["has_links"]),
            min_link_strength=min_strength,
        )
    finally:
        db.close()
    return jsonify({"data": rows, "count": len(rows), "filters": filters})
