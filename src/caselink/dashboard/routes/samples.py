"""Sample routes."""

from flask import Blueprint, current_app, jsonify, request

from caselink import queries
from caselink.errors import NotFoundError

bp = Blueprint("samples", __name__)


@bp.route("")
def index():
    db = current_app.get_db()
    try:
        page = queries.parse_page_args(request.args.get("page"), request.args.get("limit"))
        rows, page = queries.list_samples(db, page, sample_type=request.args.get("sample_type"))
        return jsonify({"data": rows, "pagination": page.to_dict()})
    finally:
        db.close()


@bp.route("/<sample_id>")
def detail(sample_id):
    db = current_app.get_db()
    try:
        sample = queries.get_sample(db, sample_id)
        if sample is None:
            raise NotFoundError("Sample not found")
        return jsonify({"data": sample})
    finally:
        db.close()


@bp.route("/<sample_id>/matches")
def matches(sample_id):
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.sample_matches(db, sample_id)})
    finally:
        db.close()
