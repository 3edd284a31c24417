"""SQLite database manager for the case-linkage store."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path

SCHEMA_VERSION = 1

LINK_TYPES = ("DNA_MATCH", "ID_NUMBER", "EVIDENCE", "NAME", "PHONE")
_LINK_TYPE_LIST = ", ".join(f"'{link_type}'" for link_type in LINK_TYPES)

# Table creation order matters for foreign key references:
# 1. schema_version (no FK)
# 2. cases (no FK)
# 3. samples (FK -> cases)
# 4. persons (no FK)
# 5. person_case_links (FK -> persons, cases)
# 6. case_links (FK -> cases)
# 7. dna_matches (FK -> samples, cases)

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS cases (
    case_id TEXT PRIMARY KEY,
    case_number TEXT NOT NULL UNIQUE,
    case_type TEXT,
    case_category TEXT,
    province TEXT,
    police_station TEXT,
    case_date TEXT,
    analyst_name TEXT,
    scene_address TEXT,
    case_closed INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS samples (
    sample_id TEXT PRIMARY KEY,
    lab_number TEXT,
    case_id TEXT NOT NULL REFERENCES cases(case_id),
    sample_type TEXT,
    sample_source TEXT,
    sample_description TEXT,
    dna_profile TEXT,
    status TEXT NOT NULL DEFAULT 'completed',
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS persons (
    person_id TEXT PRIMARY KEY,
    id_number TEXT,
    first_name TEXT,
    last_name TEXT,
    full_name TEXT,
    gender TEXT,
    person_type TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS person_case_links (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    person_id TEXT NOT NULL REFERENCES persons(person_id),
    case_id TEXT NOT NULL REFERENCES cases(case_id),
    role TEXT NOT NULL DEFAULT 'Unknown',
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE(person_id, case_id)
);

CREATE TABLE IF NOT EXISTS case_links (
    link_id INTEGER PRIMARY KEY AUTOINCREMENT,
    case1_id TEXT NOT NULL REFERENCES cases(case_id),
    case2_id TEXT NOT NULL REFERENCES cases(case_id),
    link_type TEXT NOT NULL
        CHECK(link_type IN ({_LINK_TYPE_LIST})),
    link_strength REAL NOT NULL DEFAULT 1.0
        CHECK(link_strength >= 0 AND link_strength <= 1),
    evidence_details TEXT,
    verified INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE(case1_id, case2_id, link_type)
);

CREATE TABLE IF NOT EXISTS dna_matches (
    match_id TEXT PRIMARY KEY,
    sample1_id TEXT NOT NULL REFERENCES samples(sample_id),
    sample2_id TEXT REFERENCES samples(sample_id),
    case1_id TEXT REFERENCES cases(case_id),
    case2_id TEXT REFERENCES cases(case_id),
    match_result TEXT,
    match_score REAL,
    source_system TEXT,
    verified INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_cases_date ON cases(case_date);
CREATE INDEX IF NOT EXISTS idx_cases_province ON cases(province);
CREATE INDEX IF NOT EXISTS idx_samples_case ON samples(case_id);
CREATE INDEX IF NOT EXISTS idx_persons_id_number ON persons(id_number);
CREATE INDEX IF NOT EXISTS idx_pcl_person ON person_case_links(person_id);
CREATE INDEX IF NOT EXISTS idx_pcl_case ON person_case_links(case_id);
CREATE INDEX IF NOT EXISTS idx_links_case1 ON case_links(case1_id);
CREATE INDEX IF NOT EXISTS idx_links_case2 ON case_links(case2_id);
CREATE INDEX IF NOT EXISTS idx_links_type ON case_links(link_type);
CREATE INDEX IF NOT EXISTS idx_matches_sample1 ON dna_matches(sample1_id);
CREATE INDEX IF NOT EXISTS idx_matches_sample2 ON dna_matches(sample2_id);
"""


class LinkDatabase:
    """Manages the SQLite database holding cases, samples, persons and links."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn: sqlite3.Connection | None = None

    def open(self) -> "LinkDatabase":
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA foreign_keys=ON")
        return self

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "LinkDatabase":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def initialize_schema(self) -> None:
        with self.conn:
            self.conn.executescript(SCHEMA_SQL)
            if self.conn.execute("SELECT 1 FROM schema_version").fetchone() is None:
                self.conn.execute(
                    "INSERT INTO schema_version (version) VALUES (?)",
                    (SCHEMA_VERSION,),
                )

    @contextmanager
    def transaction(self):
        cursor = self.conn.cursor()
        try:
            yield cursor
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        finally:
            cursor.close()

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        return self.conn.execute(sql, params)

    def fetchone(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        return self.conn.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        return self.conn.execute(sql, params).fetchall()

    def scalar(self, sql: str, params: tuple = ()):
        row = self.conn.execute(sql, params).fetchone()
        return row[0] if row is not None else None
