"""Application configuration and state."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from caselink.db import LinkDatabase

load_dotenv()

# Allow deployments to override the database location via environment variable
_db_path_env = os.environ.get("CASELINK_DB_PATH")
DB_PATH = Path(_db_path_env) if _db_path_env else Path.home() / ".caselink" / "caselink.db"

API_PREFIX = os.environ.get("CASELINK_API_PREFIX", "/api/v1")
API_URL = os.environ.get("CASELINK_API_URL", "http://localhost:8080/api/v1")
NDDB_URL = os.environ.get("CASELINK_NDDB_URL", "http://nddb:809")
NDDB_SITE = os.environ.get("CASELINK_NDDB_SITE", "RTP10")
LOG_LEVEL = os.environ.get("CASELINK_LOG_LEVEL", "INFO")


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class AppState:
    db_path: Path = field(default_factory=lambda: DB_PATH)

    def database_exists(self) -> bool:
        return self.db_path.exists()

    def create_database(self) -> Path:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with LinkDatabase(self.db_path) as db:
            db.initialize_schema()
        return self.db_path

    def open_db(self) -> LinkDatabase:
        if not self.database_exists():
            raise FileNotFoundError(
                f"Database '{self.db_path}' not found. Run 'caselink init' first."
            )
        return LinkDatabase(self.db_path).open()
