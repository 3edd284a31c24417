"""Case routes."""

from flask import Blueprint, current_app, jsonify, request

from caselink import queries
from caselink.errors import NotFoundError

bp = Blueprint("cases", __name__)


@bp.route("")
def index():
    db = current_app.get_db()
    try:
        page = queries.parse_page_args(request.args.get("page"), request.args.get("limit"))
        rows, page = queries.list_cases(
            db,
            page,
            province=request.args.get("province"),
            case_type=request.args.get("case_type"),
            from_date=request.args.get("from_date"),
            to_date=request.args.get("to_date"),
        )
        return jsonify({"data": rows, "pagination": page.to_dict()})
    finally:
        db.close()


@bp.route("/<case_id>")
def detail(case_id):
    db = current_app.get_db()
    try:
        case = queries.get_case(db, case_id)
        if case is None:
            raise NotFoundError("Case not found")
        return jsonify({"data": case})
    finally:
        db.close()


@bp.route("/<case_id>/samples")
def samples(case_id):
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.case_samples(db, case_id)})
    finally:
        db.close()


@bp.route("/<case_id>/persons")
def persons(case_id):
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.case_persons(db, case_id)})
    finally:
        db.close()


@bp.route("/<case_id>/links")
def links(case_id):
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.case_links(db, case_id)})
    finally:
        db.close()
