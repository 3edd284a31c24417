"""Parameterized read queries backing the REST endpoints and the graph sources.

Every function takes an open :class:`~caselink.db.LinkDatabase` and returns
plain ``dict`` rows. Filters are appended to a ``1=1`` condition list and
bound as ``?`` parameters; only fixed SQL fragments are ever joined into the
statement text.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from typing import Any

from caselink.db import LinkDatabase

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
SEARCH_LIMIT = 20
SEARCH_KINDS = ("all", "cases", "persons", "samples")

_CASE_COUNTS = """
    (SELECT COUNT(*) FROM samples s WHERE s.case_id = c.case_id) AS sample_count,
    (SELECT COUNT(*) FROM case_links cl
     WHERE cl.case1_id = c.case_id OR cl.case2_id = c.case_id) AS link_count
"""

_LINK_CASE_COLUMNS = """
    c1.case_number AS case1_number,
    c1.case_type AS case1_type,
    c1.province AS case1_province,
    c1.case_date AS case1_date,
    c2.case_number AS case2_number,
    c2.case_type AS case2_type,
    c2.province AS case2_province,
    c2.case_date AS case2_date
"""


def to_int(value: Any, default: int) -> int:
    """Parse an integer query argument; missing, malformed or zero values give ``default``."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed or default


def to_float(value: Any, default: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(parsed):
        return default
    return parsed


@dataclass(frozen=True)
class Page:
    page: int = 1
    limit: int = DEFAULT_LIMIT
    total: int = 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


def clamp_limit(value: Any, default: int, maximum: int) -> int:
    """Parse a row limit and keep it within ``1..maximum``."""
    return min(max(to_int(value, default), 1), maximum)


def parse_page_args(page: Any = None, limit: Any = None,
                    default_limit: int = DEFAULT_LIMIT,
                    max_limit: int = MAX_LIMIT) -> Page:
    return Page(
        page=max(to_int(page, 1), 1),
        limit=clamp_limit(limit, default_limit, max_limit),
    )


def _rows(rows) -> list[dict]:
    return [dict(row) for row in rows]


def _one(row) -> dict | None:
    return dict(row) if row is not None else None


# ---------------------------------------------------------------------------
# Cases
# ---------------------------------------------------------------------------

def list_cases(db: LinkDatabase, page: Page, province: str | None = None,
               case_type: str | None = None, from_date: str | None = None,
               to_date: str | None = None) -> tuple[list[dict], Page]:
    conditions = ["1=1"]
    params: list[Any] = []
    if province:
        conditions.append("c.province = ?")
        params.append(province)
    if case_type:
        conditions.append("c.case_type = ?")
        params.append(case_type)
    if from_date:
        conditions.append("c.case_date >= ?")
        params.append(from_date)
    if to_date:
        conditions.append("c.case_date <= ?")
        params.append(to_date)
    where = " AND ".join(conditions)

    total = db.scalar(f"SELECT COUNT(*) FROM cases c WHERE {where}", tuple(params))
    rows = db.fetchall(
        f"""SELECT c.case_id, c.case_number, c.case_type, c.case_category,
                   c.province, c.police_station, c.case_date, c.analyst_name,
                   {_CASE_COUNTS}
            FROM cases c
            WHERE {where}
            ORDER BY c.case_date DESC, c.case_number
            LIMIT ? OFFSET ?""",
        (*params, page.limit, page.offset),
    )
    return _rows(rows), replace(page, total=total)


def get_case(db: LinkDatabase, case_id: str) -> dict | None:
    row = db.fetchone(
        f"""SELECT c.*,
                   {_CASE_COUNTS},
                   (SELECT COUNT(*) FROM person_case_links pcl
                    WHERE pcl.case_id = c.case_id) AS person_count
            FROM cases c
            WHERE c.case_id = ? OR c.case_number = ?""",
        (case_id, case_id),
    )
    return _one(row)


def case_samples(db: LinkDatabase, case_id: str) -> list[dict]:
    rows = db.fetchall(
        """SELECT s.*, (s.dna_profile IS NOT NULL) AS has_dna_profile
           FROM samples s
           JOIN cases c ON s.case_id = c.case_id
           WHERE c.case_id = ? OR c.case_number = ?
           ORDER BY s.created_at, s.sample_id""",
        (case_id, case_id),
    )
    return _rows(rows)


def case_persons(db: LinkDatabase, case_id: str) -> list[dict]:
    rows = db.fetchall(
        """SELECT p.*, pcl.role,
                  (SELECT COUNT(*) FROM person_case_links pcl2
                   WHERE pcl2.person_id = p.person_id) AS total_cases
           FROM persons p
           JOIN person_case_links pcl ON p.person_id = pcl.person_id
           JOIN cases c ON pcl.case_id = c.case_id
           WHERE c.case_id = ? OR c.case_number = ?
           ORDER BY pcl.id""",
        (case_id, case_id),
    )
    return _rows(rows)


def case_links(db: LinkDatabase, case_id: str) -> list[dict]:
    rows = db.fetchall(
        f"""SELECT cl.*, {_LINK_CASE_COLUMNS}
            FROM case_links cl
            JOIN cases c1 ON cl.case1_id = c1.case_id
            JOIN cases c2 ON cl.case2_id = c2.case_id
            WHERE c1.case_id = ? OR c1.case_number = ?
               OR c2.case_id = ? OR c2.case_number = ?
            ORDER BY cl.link_strength DESC, cl.link_id""",
        (case_id, case_id, case_id, case_id),
    )
    return _rows(rows)


# ---------------------------------------------------------------------------
# Persons
# ---------------------------------------------------------------------------

def list_persons(db: LinkDatabase, page: Page,
                 multi_case_only: bool = False) -> tuple[list[dict], Page]:
    having = "HAVING COUNT(DISTINCT pcl.case_id) > 1" if multi_case_only else ""
    total = db.scalar(
        f"""SELECT COUNT(*) FROM (
                SELECT p.person_id
                FROM persons p
                LEFT JOIN person_case_links pcl ON p.person_id = pcl.person_id
                GROUP BY p.person_id
                {having}
            )"""
    )
    rows = db.fetchall(
        f"""SELECT p.person_id, p.id_number, p.full_name, p.first_name,
                   p.last_name, p.gender, p.person_type,
                   COUNT(DISTINCT pcl.case_id) AS case_count
            FROM persons p
            LEFT JOIN person_case_links pcl ON p.person_id = pcl.person_id
            GROUP BY p.person_id
            {having}
            ORDER BY case_count DESC, p.full_name
            LIMIT ? OFFSET ?""",
        (page.limit, page.offset),
    )
    return _rows(rows), replace(page, total=total)


def multi_case_persons(db: LinkDatabase, min_cases: int = 2,
                       limit: int = 50) -> list[dict]:
    rows = db.fetchall(
        """SELECT p.person_id, p.id_number, p.full_name, p.person_type,
                  COUNT(DISTINCT pcl.case_id) AS case_count,
                  GROUP_CONCAT(c.case_number, ', ') AS case_numbers
           FROM persons p
           JOIN person_case_links pcl ON p.person_id = pcl.person_id
           JOIN cases c ON pcl.case_id = c.case_id
           GROUP BY p.person_id
           HAVING COUNT(DISTINCT pcl.case_id) >= ?
           ORDER BY case_count DESC, p.full_name
           LIMIT ?""",
        (min_cases, limit),
    )
    return _rows(rows)


def get_person(db: LinkDatabase, person_id: str) -> dict | None:
    row = db.fetchone(
        """SELECT p.*,
                  (SELECT COUNT(*) FROM person_case_links pcl
                   WHERE pcl.person_id = p.person_id) AS case_count
           FROM persons p
           WHERE p.person_id = ? OR p.id_number = ?""",
        (person_id, person_id),
    )
    return _one(row)


def person_cases(db: LinkDatabase, person_id: str) -> list[dict]:
    rows = db.fetchall(
        """SELECT c.*, pcl.role,
                  (SELECT COUNT(*) FROM samples s WHERE s.case_id = c.case_id) AS sample_count
           FROM cases c
           JOIN person_case_links pcl ON c.case_id = pcl.case_id
           JOIN persons p ON pcl.person_id = p.person_id
           WHERE p.person_id = ? OR p.id_number = ?
           ORDER BY c.case_date DESC, c.case_number""",
        (person_id, person_id),
    )
    return _rows(rows)


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------

def list_samples(db: LinkDatabase, page: Page,
                 sample_type: str | None = None) -> tuple[list[dict], Page]:
    conditions = ["1=1"]
    params: list[Any] = []
    if sample_type:
        conditions.append("s.sample_type = ?")
        params.append(sample_type)
    where = " AND ".join(conditions)

    total = db.scalar(f"SELECT COUNT(*) FROM samples s WHERE {where}", tuple(params))
    rows = db.fetchall(
        f"""SELECT s.*, c.case_number, c.province
            FROM samples s
            JOIN cases c ON s.case_id = c.case_id
            WHERE {where}
            ORDER BY s.created_at DESC, s.sample_id
            LIMIT ? OFFSET ?""",
        (*params, page.limit, page.offset),
    )
    return _rows(rows), replace(page, total=total)


def get_sample(db: LinkDatabase, sample_id: str) -> dict | None:
    row = db.fetchone(
        """SELECT s.*, c.case_number, c.case_type, c.province, c.police_station
           FROM samples s
           JOIN cases c ON s.case_id = c.case_id
           WHERE s.sample_id = ? OR s.lab_number = ?""",
        (sample_id, sample_id),
    )
    return _one(row)


def sample_matches(db: LinkDatabase, sample_id: str) -> list[dict]:
    rows = db.fetchall(
        """SELECT dm.*, c1.case_number AS case1_number, c2.case_number AS case2_number
           FROM dna_matches dm
           LEFT JOIN cases c1 ON dm.case1_id = c1.case_id
           LEFT JOIN cases c2 ON dm.case2_id = c2.case_id
           WHERE dm.sample1_id = ? OR dm.sample2_id = ?
           ORDER BY dm.match_score DESC, dm.match_id""",
        (sample_id, sample_id),
    )
    return _rows(rows)


# ---------------------------------------------------------------------------
# Case links
# ---------------------------------------------------------------------------

def list_links(db: LinkDatabase, page: Page, link_type: str | None = None,
               min_strength: float = 0.0,
               province: str | None = None) -> tuple[list[dict], Page]:
    conditions = ["cl.link_strength >= ?"]
    params: list[Any] = [min_strength]
    if link_type:
        conditions.append("cl.link_type = ?")
        params.append(link_type)
    if province:
        conditions.append("(c1.province = ? OR c2.province = ?)")
        params.extend([province, province])
    where = " AND ".join(conditions)
    joins = """FROM case_links cl
               JOIN cases c1 ON cl.case1_id = c1.case_id
               JOIN cases c2 ON cl.case2_id = c2.case_id"""

    total = db.scalar(f"SELECT COUNT(*) {joins} WHERE {where}", tuple(params))
    rows = db.fetchall(
        f"""SELECT cl.link_id, cl.link_type, cl.link_strength, cl.evidence_details,
                   cl.verified, cl.created_at, cl.case1_id, cl.case2_id,
                   {_LINK_CASE_COLUMNS}
            {joins}
            WHERE {where}
            ORDER BY cl.link_strength DESC, cl.created_at DESC, cl.link_id
            LIMIT ? OFFSET ?""",
        (*params, page.limit, page.offset),
    )
    return _rows(rows), replace(page, total=total)


def link_types(db: LinkDatabase) -> list[dict]:
    rows = db.fetchall(
        """SELECT link_type,
                  COUNT(*) AS count,
                  AVG(link_strength) AS avg_strength,
                  SUM(CASE WHEN verified = 1 THEN 1 ELSE 0 END) AS verified_count
           FROM case_links
           GROUP BY link_type
           ORDER BY count DESC, link_type"""
    )
    return _rows(rows)


def top_links(db: LinkDatabase, limit: int = 10) -> list[dict]:
    rows = db.fetchall(
        f"""SELECT cl.link_id, cl.link_type, cl.link_strength, cl.evidence_details,
                   cl.case1_id, cl.case2_id,
                   {_LINK_CASE_COLUMNS}
            FROM case_links cl
            JOIN cases c1 ON cl.case1_id = c1.case_id
            JOIN cases c2 ON cl.case2_id = c2.case_id
            ORDER BY cl.link_strength DESC, cl.created_at DESC, cl.link_id
            LIMIT ?""",
        (limit,),
    )
    return _rows(rows)


def network_links(db: LinkDatabase, limit: int = 50,
                  min_strength: float = 0.8) -> list[dict]:
    rows = db.fetchall(
        f"""SELECT cl.link_id, cl.link_type, cl.link_strength,
                   cl.case1_id, cl.case2_id,
                   {_LINK_CASE_COLUMNS}
            FROM case_links cl
            JOIN cases c1 ON cl.case1_id = c1.case_id
            JOIN cases c2 ON cl.case2_id = c2.case_id
            WHERE cl.link_strength >= ?
            ORDER BY cl.link_strength DESC, cl.link_id
            LIMIT ?""",
        (min_strength, limit),
    )
    return _rows(rows)


def get_link(db: LinkDatabase, link_id: str) -> dict | None:
    row = db.fetchone(
        f"""SELECT cl.*, {_LINK_CASE_COLUMNS},
                   c1.police_station AS case1_station,
                   c2.police_station AS case2_station
            FROM case_links cl
            JOIN cases c1 ON cl.case1_id = c1.case_id
            JOIN cases c2 ON cl.case2_id = c2.case_id
            WHERE cl.link_id = ?""",
        (link_id,),
    )
    return _one(row)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def search_entities(db: LinkDatabase, term: str, kind: str = "all") -> dict[str, list[dict]]:
    """Substring search across cases, persons and samples.

    Identifier columns (case number, ID number, lab number) are matched with
    the term as given; descriptive columns are matched as ``%term%``. Each
    entity kind returns at most ``SEARCH_LIMIT`` rows.
    """
    wild = f"%{term}%"
    results: dict[str, list[dict]] = {"cases": [], "persons": [], "samples": []}

    if kind in ("all", "cases"):
        results["cases"] = _rows(db.fetchall(
            """SELECT case_id, case_number, case_type, province, police_station, case_date
               FROM cases
               WHERE case_number LIKE ?
                  OR case_type LIKE ?
                  OR province LIKE ?
                  OR police_station LIKE ?
               ORDER BY case_date DESC, case_number
               LIMIT ?""",
            (term, wild, wild, wild, SEARCH_LIMIT),
        ))

    if kind in ("all", "persons"):
        results["persons"] = _rows(db.fetchall(
            """SELECT p.person_id, p.id_number, p.full_name, p.person_type,
                      (SELECT COUNT(*) FROM person_case_links pcl
                       WHERE pcl.person_id = p.person_id) AS case_count
               FROM persons p
               WHERE p.id_number LIKE ?
                  OR p.full_name LIKE ?
                  OR p.first_name LIKE ?
                  OR p.last_name LIKE ?
               ORDER BY case_count DESC, p.full_name
               LIMIT ?""",
            (term, wild, wild, wild, SEARCH_LIMIT),
        ))

    if kind in ("all", "samples"):
        results["samples"] = _rows(db.fetchall(
            """SELECT s.sample_id, s.lab_number, s.sample_type, s.sample_source,
                      c.case_number, c.province
               FROM samples s
               JOIN cases c ON s.case_id = c.case_id
               WHERE s.lab_number LIKE ?
                  OR s.sample_type LIKE ?
                  OR s.sample_source LIKE ?
               ORDER BY s.created_at DESC, s.sample_id
               LIMIT ?""",
            (term, wild, wild, SEARCH_LIMIT),
        ))

    return results


def search_by_id_number(db: LinkDatabase, raw_id_number: str) -> dict:
    id_number = re.sub(r"\D", "", raw_id_number)
    person = _one(db.fetchone(
        """SELECT p.*,
                  (SELECT COUNT(*) FROM person_case_links pcl
                   WHERE pcl.person_id = p.person_id) AS case_count
           FROM persons p
           WHERE p.id_number = ?""",
        (id_number,),
    ))
    if person is None:
        return {"person": None, "cases": [], "message": "No person found with this ID number"}

    cases = _rows(db.fetchall(
        """SELECT c.*, pcl.role
           FROM cases c
           JOIN person_case_links pcl ON c.case_id = pcl.case_id
           WHERE pcl.person_id = ?
           ORDER BY c.case_date DESC, c.case_number""",
        (person["person_id"],),
    ))
    return {"person": person, "cases": cases}


def search_by_case_number(db: LinkDatabase, case_number: str) -> dict:
    case = _one(db.fetchone("SELECT c.* FROM cases c WHERE c.case_number = ?", (case_number,)))
    if case is None:
        partial = _rows(db.fetchall(
            """SELECT c.* FROM cases c
               WHERE c.case_number LIKE ?
               ORDER BY c.case_date DESC, c.case_number
               LIMIT 10""",
            (f"%{case_number}%",),
        ))
        return {"exactMatch": None, "partialMatches": partial}

    case_id = case["case_id"]
    samples = _rows(db.fetchall(
        "SELECT * FROM samples WHERE case_id = ? ORDER BY created_at, sample_id", (case_id,)
    ))
    persons = _rows(db.fetchall(
        """SELECT p.*, pcl.role
           FROM persons p
           JOIN person_case_links pcl ON p.person_id = pcl.person_id
           WHERE pcl.case_id = ?
           ORDER BY pcl.id""",
        (case_id,),
    ))
    links = _rows(db.fetchall(
        """SELECT cl.*,
                  CASE WHEN cl.case1_id = ? THEN c2.case_number ELSE c1.case_number END
                      AS linked_case
           FROM case_links cl
           JOIN cases c1 ON cl.case1_id = c1.case_id
           JOIN cases c2 ON cl.case2_id = c2.case_id
           WHERE cl.case1_id = ? OR cl.case2_id = ?
           ORDER BY cl.link_strength DESC, cl.link_id""",
        (case_id, case_id, case_id),
    ))
    return {"case": case, "samples": samples, "persons": persons, "links": links}


def advanced_search(db: LinkDatabase, province: str | None = None,
                    case_type: str | None = None, from_date: str | None = None,
                    to_date: str | None = None, has_links: bool = False,
                    min_link_strength: float | None = None) -> list[dict]:
    conditions = ["1=1"]
    params: list[Any] = []
    if province:
        conditions.append("c.province = ?")
        params.append(province)
    if case_type:
        conditions.append("c.case_type LIKE ?")
        params.append(f"%{case_type}%")
    if from_date:
        conditions.append("c.case_date >= ?")
        params.append(from_date)
    if to_date:
        conditions.append("c.case_date <= ?")
        params.append(to_date)
    if has_links:
        strength_clause = ""
        if min_link_strength:
            strength_clause = "AND cl.link_strength >= ?"
            params.append(min_link_strength)
        conditions.append(
            f"""EXISTS (SELECT 1 FROM case_links cl
                        WHERE (cl.case1_id = c.case_id OR cl.case2_id = c.case_id)
                        {strength_clause})"""
        )
    where = " AND ".join(conditions)

    rows = db.fetchall(
        f"""SELECT c.*, {_CASE_COUNTS}
            FROM cases c
            WHERE {where}
            ORDER BY c.case_date DESC, c.case_number
            LIMIT 100""",
        tuple(params),
    )
    return _rows(rows)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

def overview(db: LinkDatabase) -> dict:
    row = db.fetchone(
        """SELECT
               (SELECT COUNT(*) FROM cases) AS total_cases,
               (SELECT COUNT(*) FROM samples) AS total_samples,
               (SELECT COUNT(*) FROM persons) AS total_persons,
               (SELECT COUNT(*) FROM dna_matches) AS total_dna_matches,
               (SELECT COUNT(*) FROM case_links) AS total_links,
               (SELECT COUNT(*) FROM (
                   SELECT person_id FROM person_case_links
                   GROUP BY person_id HAVING COUNT(*) > 1
               )) AS multi_case_persons,
               (SELECT COUNT(*) FROM case_links WHERE link_type = 'DNA_MATCH') AS dna_links,
               (SELECT COUNT(*) FROM case_links WHERE link_type = 'ID_NUMBER') AS id_links,
               (SELECT COUNT(*) FROM case_links WHERE verified = 1) AS verified_links"""
    )
    return dict(row)


def by_year(db: LinkDatabase) -> list[dict]:
    rows = db.fetchall(
        """SELECT CAST(strftime('%Y', case_date) AS INTEGER) AS year,
                  COUNT(*) AS count
           FROM cases
           WHERE case_date IS NOT NULL AND strftime('%Y', case_date) IS NOT NULL
           GROUP BY strftime('%Y', case_date)
           ORDER BY year DESC"""
    )
    return _rows(rows)


def by_province(db: LinkDatabase) -> list[dict]:
    rows = db.fetchall(
        """SELECT c.province,
                  COUNT(*) AS case_count,
                  (SELECT COUNT(*) FROM samples s
                   JOIN cases cs ON s.case_id = cs.case_id
                   WHERE cs.province = c.province) AS sample_count,
                  (SELECT COUNT(*) FROM case_links cl
                   JOIN cases c1 ON cl.case1_id = c1.case_id
                   WHERE c1.province = c.province) AS link_count
           FROM cases c
           WHERE c.province IS NOT NULL AND c.province != ''
           GROUP BY c.province
           ORDER BY case_count DESC, c.province"""
    )
    return _rows(rows)


def by_case_type(db: LinkDatabase) -> list[dict]:
    rows = db.fetchall(
        """SELECT case_type, COUNT(*) AS count
           FROM cases
           WHERE case_type IS NOT NULL AND case_type != ''
           GROUP BY case_type
           ORDER BY count DESC, case_type
           LIMIT 20"""
    )
    return _rows(rows)


def by_month(db: LinkDatabase, year: int) -> list[dict]:
    rows = db.fetchall(
        """SELECT CAST(strftime('%Y', c.case_date) AS INTEGER) AS year,
                  CAST(strftime('%m', c.case_date) AS INTEGER) AS month,
                  COUNT(*) AS case_count,
                  (SELECT COUNT(*) FROM samples s
                   JOIN cases cs ON s.case_id = cs.case_id
                   WHERE strftime('%Y-%m', cs.case_date) = strftime('%Y-%m', c.case_date))
                      AS sample_count
           FROM cases c
           WHERE c.case_date IS NOT NULL
             AND CAST(strftime('%Y', c.case_date) AS INTEGER) = ?
           GROUP BY strftime('%Y-%m', c.case_date)
           ORDER BY year, month""",
        (year,),
    )
    return _rows(rows)


def links_summary(db: LinkDatabase) -> dict:
    by_type = _rows(db.fetchall(
        """SELECT link_type,
                  COUNT(*) AS count,
                  AVG(link_strength) AS avg_strength,
                  MIN(link_strength) AS min_strength,
                  MAX(link_strength) AS max_strength,
                  SUM(CASE WHEN verified = 1 THEN 1 ELSE 0 END) AS verified_count
           FROM case_links
           GROUP BY link_type
           ORDER BY count DESC, link_type"""
    ))
    cross_province = db.scalar(
        """SELECT COUNT(*)
           FROM case_links cl
           JOIN cases c1 ON cl.case1_id = c1.case_id
           JOIN cases c2 ON cl.case2_id = c2.case_id
           WHERE c1.province != c2.province"""
    )
    return {"byType": by_type, "crossProvinceLinks": cross_province}


def top_linked_cases(db: LinkDatabase, limit: int = 10) -> list[dict]:
    rows = db.fetchall(
        """SELECT c.case_id, c.case_number, c.case_type, c.province, c.case_date,
                  COUNT(DISTINCT cl.link_id) AS link_count,
                  (SELECT COUNT(*) FROM samples s WHERE s.case_id = c.case_id) AS sample_count
           FROM cases c
           JOIN case_links cl ON c.case_id = cl.case1_id OR c.case_id = cl.case2_id
           GROUP BY c.case_id
           ORDER BY link_count DESC, c.case_number
           LIMIT ?""",
        (limit,),
    )
    return _rows(rows)
