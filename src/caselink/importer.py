"""Import cases from the national DNA database (NDDB) and derive case links.

The NDDB web service exposes three JSON endpoints under
``/webservice.asmx``:

- ``getCaseListFromDate`` - case numbers received in a date range
- ``getImportCase`` - one case with its samples
- ``getCaseMatch`` - DNA matches from one case's samples to other cases

Records are upserted under stable keys (``PFSC10_<CaseNumber>``,
``PFSC10_<ClientSampleNumber>``, ``PER_<IDNumber>``), so re-importing a
range updates rows in place. After an import, :func:`rebuild_links` turns
DNA matches and shared persons into ``case_links`` rows.
"""

import logging
import re
import sqlite3
import time
from dataclasses import dataclass, field

import httpx

from caselink.db import LinkDatabase
from caselink.errors import FetchError
from caselink.state import NDDB_SITE, NDDB_URL

logger = logging.getLogger(__name__)

KEY_PREFIX = "PFSC10"
MIN_ID_NUMBER_LENGTH = 10
FULL_MATCH_SCORE = 1.0
PARTIAL_MATCH_SCORE = 0.8
DEFAULT_DELAY = 0.5


def case_key(case_number: str) -> str:
    return f"{KEY_PREFIX}_{case_number}"


def sample_key(sample_number: str) -> str:
    return f"{KEY_PREFIX}_{sample_number}"


def person_key(id_number: str) -> str:
    return f"PER_{id_number}"


class NddbClient:
    """Client for the NDDB ``webservice.asmx`` JSON endpoints."""

    def __init__(self, base_url: str = NDDB_URL, site: str = NDDB_SITE,
                 timeout: float = 30.0, client: httpx.Client | None = None):
        self.site = site
        self.client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def _get(self, endpoint: str, params: dict):
        try:
            response = self.client.get(f"/webservice.asmx/{endpoint}",
                                       params={"site": self.site, **params})
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise FetchError(f"NDDB {endpoint} failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"NDDB {endpoint} returned invalid JSON: {e}") from e

    def case_list(self, from_date: str, to_date: str) -> list[dict]:
        return self._get("getCaseListFromDate", {"fromDate": from_date, "toDate": to_date}) or []

    def case_details(self, case_number: str) -> dict | None:
        return self._get("getImportCase", {"CaseNumber": case_number})

    def case_matches(self, case_number: str) -> list[dict]:
        return self._get("getCaseMatch", {"caseNumber": case_number}) or []

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


@dataclass
class ImportStats:
    cases_found: int = 0
    cases_processed: int = 0
    samples_imported: int = 0
    persons_imported: int = 0
    matches_imported: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "casesFound": self.cases_found,
            "casesProcessed": self.cases_processed,
            "samplesImported": self.samples_imported,
            "personsImported": self.persons_imported,
            "matchesImported": self.matches_imported,
            "errors": list(self.errors),
        }


def _province(raw: str | None) -> str | None:
    # NDDB sends "<province>-<district>"
    return raw.split("-")[0] if raw else None


def upsert_case(cur, record: dict) -> str:
    case_id = case_key(record["CaseNumber"])
    cur.execute(
        """INSERT INTO cases (case_id, case_number, case_type, case_category, province,
                              police_station, case_date, analyst_name, scene_address,
                              case_closed)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
           ON CONFLICT(case_id) DO UPDATE SET
               case_type = excluded.case_type,
               case_category = excluded.case_category,
               province = excluded.province,
               police_station = excluded.police_station,
               case_date = excluded.case_date,
               analyst_name = excluded.analyst_name,
               scene_address = excluded.scene_address,
               case_closed = excluded.case_closed,
               updated_at = datetime('now')""",
        (
            case_id,
            record["CaseNumber"],
            record.get("CaseType"),
            record.get("CaseCategory"),
            _province(record.get("Province")),
            record.get("PoliceStation"),
            record.get("CaseDate") or None,
            record.get("AnalystName"),
            record.get("SceneAddress"),
            1 if str(record.get("CaseClosed")) == "True" else 0,
        ),
    )
    return case_id


def upsert_sample(cur, case_id: str, record: dict) -> str:
    sample_id = sample_key(record["ClientSampleNumber"])
    cur.execute(
        """INSERT INTO samples (sample_id, lab_number, case_id, sample_type,
                                sample_source, sample_description)
           VALUES (?, ?, ?, ?, ?, ?)
           ON CONFLICT(sample_id) DO UPDATE SET
               sample_type = excluded.sample_type,
               sample_source = excluded.sample_source,
               sample_description = excluded.sample_description""",
        (
            sample_id,
            record["ClientSampleNumber"],
            case_id,
            record.get("SampleType"),
            record.get("SampleSource"),
            record.get("SampleDescription"),
        ),
    )
    return sample_id


def upsert_person(cur, case_id: str, record: dict) -> str | None:
    """Record the sample donor as a person when the sample carries a usable ID number."""
    raw = record.get("IDNumber") or ""
    if len(raw.strip()) < MIN_ID_NUMBER_LENGTH:
        return None
    id_number = re.sub(r"\s", "", raw)
    person_id = person_key(id_number)
    first, last = record.get("GivenName"), record.get("FamilyName")
    role = record.get("SampleSource") or "Unknown"
    cur.execute(
        """INSERT INTO persons (person_id, id_number, first_name, last_name,
                                full_name, gender, person_type)
           VALUES (?, ?, ?, ?, ?, ?, ?)
           ON CONFLICT(person_id) DO NOTHING""",
        (
            person_id,
            id_number,
            first,
            last,
            " ".join(part for part in (first, last) if part),
            record.get("Gender"),
            role,
        ),
    )
    cur.execute(
        """INSERT INTO person_case_links (person_id, case_id, role)
           VALUES (?, ?, ?)
           ON CONFLICT(person_id, case_id) DO NOTHING""",
        (person_id, case_id, role),
    )
    return person_id


def insert_match(cur, record: dict) -> str | None:
    """Store a cross-case DNA match; same-case and unmatched rows are skipped."""
    source_case, matched_case = record.get("SourceCase"), record.get("MatchedCase")
    if not matched_case or matched_case == source_case:
        return None
    matched_sample = record.get("MatchParentNo")
    match_id = f"MATCH_{record['ParentNo']}_{matched_sample or 'unknown'}"
    full = record.get("MatchResult") == "Full"
    cur.execute(
        """INSERT INTO dna_matches (match_id, sample1_id, sample2_id, case1_id, case2_id,
                                    match_result, match_score, source_system, verified)
           VALUES (?, ?, ?, ?, ?, ?, ?, 'NDDB', 1)
           ON CONFLICT(match_id) DO NOTHING""",
        (
            match_id,
            sample_key(record["ParentNo"]),
            sample_key(matched_sample) if matched_sample else None,
            case_key(source_case),
            case_key(matched_case),
            "MATCH" if full else "PARTIAL",
            FULL_MATCH_SCORE if full else PARTIAL_MATCH_SCORE,
        ),
    )
    return match_id


def _import_matches(db: LinkDatabase, client: NddbClient, case_number: str,
                    stats: ImportStats) -> None:
    try:
        matches = client.case_matches(case_number)
    except FetchError as e:
        logger.warning(f"No DNA matches for {case_number}: {e}")
        return
    for record in matches if isinstance(matches, list) else []:
        try:
            with db.transaction() as cur:
                if insert_match(cur, record):
                    stats.matches_imported += 1
        except sqlite3.IntegrityError as e:
            # Matched sample or case not imported yet
            logger.debug(f"Skipping match {record.get('ParentNo')} of {case_number}: {e}")


def import_case(db: LinkDatabase, client: NddbClient, case_number: str,
                stats: ImportStats) -> bool:
    """Upsert one case with its samples and donors; return False for an empty record."""
    record = client.case_details(case_number)
    if not record or not record.get("CaseNumber"):
        stats.errors.append(f"Empty response for {case_number}")
        return False

    with db.transaction() as cur:
        case_id = upsert_case(cur, record)
        for sample in record.get("Samples") or []:
            if not sample.get("ClientSampleNumber"):
                continue
            upsert_sample(cur, case_id, sample)
            stats.samples_imported += 1
            if upsert_person(cur, case_id, sample):
                stats.persons_imported += 1
    stats.cases_processed += 1
    return True


def import_cases(db: LinkDatabase, client: NddbClient, from_date: str, to_date: str,
                 delay: float = DEFAULT_DELAY, progress=None) -> ImportStats:
    """Import every case NDDB lists between ``from_date`` and ``to_date``.

    Cases and samples are imported first and DNA matches afterwards, so a
    match between two cases of the same range finds both samples present.
    A failure on one case is recorded in ``ImportStats.errors`` and the
    import moves on; only a failure to fetch the case list itself raises.
    ``progress`` is called with ``(done, total)`` after each case.
    """
    stats = ImportStats()
    case_list = client.case_list(from_date, to_date)
    stats.cases_found = len(case_list)
    logger.info(f"NDDB lists {len(case_list)} cases between {from_date} and {to_date}")

    imported: list[str] = []
    for index, item in enumerate(case_list, start=1):
        case_number = item.get("CaseNumber") if isinstance(item, dict) else None
        if not case_number:
            stats.errors.append(f"Case list entry {index} has no CaseNumber")
            continue
        try:
            if import_case(db, client, case_number, stats):
                imported.append(case_number)
        except (FetchError, sqlite3.Error) as e:
            logger.warning(f"Import of {case_number} failed: {e}")
            stats.errors.append(f"{case_number}: {e}")
        if progress is not None:
            progress(index, len(case_list))
        if delay and index < len(case_list):
            time.sleep(delay)

    for case_number in imported:
        _import_matches(db, client, case_number, stats)
        if delay:
            time.sleep(delay)

    logger.info(
        f"Imported {stats.cases_processed}/{stats.cases_found} cases, "
        f"{stats.samples_imported} samples, {stats.matches_imported} matches, "
        f"{len(stats.errors)} errors"
    )
    return stats


_DNA_LINKS_SQL = """
INSERT INTO case_links (case1_id, case2_id, link_type, link_strength,
                        evidence_details, verified)
SELECT MIN(dm.case1_id, dm.case2_id),
       MAX(dm.case1_id, dm.case2_id),
       'DNA_MATCH',
       MAX(COALESCE(dm.match_score, 0)),
       COUNT(*) || ' DNA match(es)',
       1
FROM dna_matches dm
JOIN cases c1 ON c1.case_id = dm.case1_id
JOIN cases c2 ON c2.case_id = dm.case2_id
WHERE dm.case1_id != dm.case2_id
GROUP BY MIN(dm.case1_id, dm.case2_id), MAX(dm.case1_id, dm.case2_id)
ON CONFLICT(case1_id, case2_id, link_type) DO UPDATE SET
    link_strength = excluded.link_strength,
    evidence_details = excluded.evidence_details,
    verified = 1
"""

_ID_LINKS_SQL = """
INSERT INTO case_links (case1_id, case2_id, link_type, link_strength,
                        evidence_details, verified)
SELECT a.case_id,
       b.case_id,
       'ID_NUMBER',
       1.0,
       'Shared ID: ' || GROUP_CONCAT(DISTINCT p.id_number),
       1
FROM person_case_links a
JOIN person_case_links b ON a.person_id = b.person_id AND a.case_id < b.case_id
JOIN persons p ON p.person_id = a.person_id
WHERE p.id_number IS NOT NULL
GROUP BY a.case_id, b.case_id
ON CONFLICT(case1_id, case2_id, link_type) DO UPDATE SET
    evidence_details = excluded.evidence_details,
    verified = 1
"""


def rebuild_links(db: LinkDatabase) -> dict:
    """Derive DNA_MATCH and ID_NUMBER case links from matches and shared persons.

    Pairs are stored with ``case1_id < case2_id``; running it again updates
    existing rows rather than adding new ones.
    """
    with db.transaction() as cur:
        cur.execute(_DNA_LINKS_SQL)
        cur.execute(_ID_LINKS_SQL)
    counts = {
        row["link_type"]: row["count"]
        for row in db.fetchall(
            "SELECT link_type, COUNT(*) AS count FROM case_links GROUP BY link_type"
        )
    }
    logger.info(f"Case links rebuilt: {counts}")
    return {"dnaLinks": counts.get("DNA_MATCH", 0), "idLinks": counts.get("ID_NUMBER", 0)}
