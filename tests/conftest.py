"""Shared fixtures: temporary databases, a seeded case network and the Flask app."""

import pytest
from typer.testing import CliRunner

from caselink.dashboard import create_app
from caselink.db import LinkDatabase

# Three linked cases and one isolated case:
#
#   10-67-00123 (murder) --DNA 1.0 / ID--> 10-67-00456 (theft) --DNA 0.8--> 10-67-00789 (robbery)
#   Somchai is a suspect in 00123 and 00456, Anan was arrested in 00456 and 00789.
CASES = [
    ("PFSC10_10-67-00123", "10-67-00123", "ฆ่าผู้อื่น", "Bangkok", "Lumphini", "2024-01-15"),
    ("PFSC10_10-67-00456", "10-67-00456", "ลักทรัพย์", "Chiang Mai", "Mueang", "2024-02-10"),
    ("PFSC10_10-67-00789", "10-67-00789", "ปล้นทรัพย์", "Bangkok", "Bang Rak", "2024-03-05"),
    ("PFSC10_10-66-00999", "10-66-00999", "ยาเสพติด", "Phuket", "Kathu", "2023-11-20"),
]

SAMPLES = [
    ("PFSC10_S001", "S001", "PFSC10_10-67-00123", "Blood", "Suspect", "D8S1179:13,14", "2024-01-16 09:00:00"),
    ("PFSC10_S002", "S002", "PFSC10_10-67-00123", "Swab", "Victim", None, "2024-01-16 10:00:00"),
    ("PFSC10_S003", "S003", "PFSC10_10-67-00456", "Blood", "Suspect", "D8S1179:13,14", "2024-02-11 09:00:00"),
    ("PFSC10_S004", "S004", "PFSC10_10-67-00789", "Hair", "Suspect", None, "2024-03-06 09:00:00"),
]

PERSONS = [
    ("PER_1234567890123", "1234567890123", "Somchai", "Jaidee", "Suspect"),
    ("PER_9876543210987", "9876543210987", "Malee", "Sukjai", "Victim"),
    ("PER_1111111111111", "1111111111111", "Anan", "Rakdee", "Arrested"),
]

PERSON_CASES = [
    ("PER_1234567890123", "PFSC10_10-67-00123", "Suspect"),
    ("PER_9876543210987", "PFSC10_10-67-00123", "Victim"),
    ("PER_1234567890123", "PFSC10_10-67-00456", "Suspect"),
    ("PER_1111111111111", "PFSC10_10-67-00456", "Arrested"),
    ("PER_1111111111111", "PFSC10_10-67-00789", "Arrested"),
]

CASE_LINKS = [
    ("PFSC10_10-67-00123", "PFSC10_10-67-00456", "DNA_MATCH", 1.0, "1 DNA match(es)", 1),
    ("PFSC10_10-67-00456", "PFSC10_10-67-00789", "DNA_MATCH", 0.8, "1 DNA match(es)", 0),
    ("PFSC10_10-67-00123", "PFSC10_10-67-00456", "ID_NUMBER", 1.0, "Shared ID: 1234567890123", 1),
]

DNA_MATCHES = [
    ("MATCH_S001_S003", "PFSC10_S001", "PFSC10_S003", "PFSC10_10-67-00123",
     "PFSC10_10-67-00456", "MATCH", 1.0),
    ("MATCH_S003_S004", "PFSC10_S003", "PFSC10_S004", "PFSC10_10-67-00456",
     "PFSC10_10-67-00789", "PARTIAL", 0.8),
]


def seed(db: LinkDatabase) -> None:
    with db.transaction() as cur:
        cur.executemany(
            "INSERT INTO cases (case_id, case_number, case_type, province, police_station, case_date) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            CASES,
        )
        cur.executemany(
            "INSERT INTO samples (sample_id, lab_number, case_id, sample_type, sample_source, "
            "dna_profile, created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            SAMPLES,
        )
        cur.executemany(
            "INSERT INTO persons (person_id, id_number, first_name, last_name, full_name, person_type) "
            "VALUES (?, ?, ?, ?, ? || ' ' || ?, ?)",
            [(pid, idn, first, last, first, last, ptype) for pid, idn, first, last, ptype in PERSONS],
        )
        cur.executemany(
            "INSERT INTO person_case_links (person_id, case_id, role) VALUES (?, ?, ?)",
            PERSON_CASES,
        )
        cur.executemany(
            "INSERT INTO case_links (case1_id, case2_id, link_type, link_strength, "
            "evidence_details, verified) VALUES (?, ?, ?, ?, ?, ?)",
            CASE_LINKS,
        )
        cur.executemany(
            "INSERT INTO dna_matches (match_id, sample1_id, sample2_id, case1_id, case2_id, "
            "match_result, match_score, source_system, verified) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, 'NDDB', 1)",
            DNA_MATCHES,
        )


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def db_path(tmp_path):
    """Path to a fresh database with the schema but no rows."""
    path = tmp_path / "caselink.db"
    with LinkDatabase(path) as db:
        db.initialize_schema()
    return path


@pytest.fixture
def seeded_db_path(db_path):
    with LinkDatabase(db_path) as db:
        seed(db)
    return db_path


@pytest.fixture
def db(seeded_db_path):
    d = LinkDatabase(seeded_db_path)
    d.open()
    yield d
    d.close()


@pytest.fixture
def empty_db(db_path):
    d = LinkDatabase(db_path)
    d.open()
    yield d
    d.close()


@pytest.fixture
def app(seeded_db_path):
    app = create_app(seeded_db_path)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def empty_client(db_path):
    app = create_app(db_path)
    app.config["TESTING"] = True
    return app.test_client()
