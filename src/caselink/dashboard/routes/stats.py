"""Dashboard statistics routes."""

from datetime import date

from flask import Blueprint, current_app, jsonify, request

from caselink import queries

bp = Blueprint("stats", __name__)


@bp.route("/overview")
def overview():
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.overview(db)})
    finally:
        db.close()


@bp.route("/by-year")
def by_year():
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.by_year(db)})
    finally:
        db.close()


@bp.route("/by-province")
def by_province():
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.by_province(db)})
    finally:
        db.close()


@bp.route("/by-case-type")
def by_case_type():
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.by_case_type(db)})
    finally:
        db.close()


@bp.route("/by-month")
def by_month():
    db = current_app.get_db()
    try:
        year = queries.to_int(request.args.get("year"), date.today().year)
        return jsonify({"data": queries.by_month(db, year)})
    finally:
        db.close()


@bp.route("/links-summary")
def links_summary():
    db = current_app.get_db()
    try:
        return jsonify({"data": queries.links_summary(db)})
    finally:
        db.close()


@bp.route("/top-linked-cases")
def top_linked_cases():
    db = current_app.get_db()
    try:
        limit = queries.clamp_limit(request.args.get("limit"), 10, 50)
        return jsonify({"data": queries.top_linked_cases(db, limit)})
    finally:
        db.close()
