"""Case link routes."""

from flask import Blueprint, current_app, jsonify, request

from caselink import queries
from caselink.errors import NotFoundError

bp = Blueprint("links", __name__)


@bp.route("")
def index():
    db = current_app.get_db()
    try:
        page = queries.parse_page_args(request.args.get("page"), request.args.get("limit"))
        rows, page = queries.list_links(
            db,
            page,
            link_type=request.args.get("link_type"),
            min_strength=queries.to_float(request.args.get("min_strength"), 0.0),
            province=request.args.get("province"),
        )
        return jsonify({"data": rows, "pagination": page.to_dict()})
    finally:
        db.close()


@bp.route("/types")
def types():
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.link_types(db)})
    finally:
        db.close()


@bp.route("/top")
def top():
    db = current_app.get_db()
    try:
        limit = queries.clamp_limit(request.args.get("limit"), 10, 50)
        return jsonify({"data": queries.top_links(db, limit)})
    finally:
        db.close()


@bp.route("/<link_id>")
def detail(link_id):
    db = current_app.get_db()
    try:
        link = queries.get_link(db, link_id)
        if link is None:
            raise NotFoundError("Link not found")
        return jsonify({"data": link})
    finally:
        db.close()
