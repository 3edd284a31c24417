"""Person routes."""

from flask import Blueprint, current_app, jsonify, request

from caselink import queries
from caselink.errors import NotFoundError

bp = Blueprint("persons", __name__)


@bp.route("")
def index():
    db = current_app.get_db()
    try:
        page = queries.parse_page_args(request.args.get("page"), request.args.get("limit"))
        multi_case_only = request.args.get("multi_case_only") == "true"
        rows, page = queries.list_persons(db, page, multi_case_only=multi_case_only)
        return jsonify({"data": rows, "pagination": page.to_dict()})
    finally:
        db.close()


@bp.route("/multi-case")
def multi_case():
    """Persons appearing in at least ``min_cases`` cases."""
    db = current_app.get_db()
    try:
        min_cases = queries.to_int(request.args.get("min_cases"), 2)
        limit = queries.clamp_limit(request.args.get("limit"), 50, 200)
        return jsonify({"data": queries.multi_case_persons(db, min_cases, limit)})
    finally:
        db.close()


@bp.route("/<person_id>")
def detail(person_id):
    db = current_app.get_db()
    try:
        person = queries.get_person(db, person_id)
        if person is None:
            raise NotFoundError("Person not found")
        return jsonify({"data": person})
    finally:
        db.close()


@bp.route("/<person_id>/cases")
def cases(person_id):
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.person_cases(db, person_id)})
    finally:
        db.close()
