"""Application persistence in SQLite."""

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .exceptions import DuplicateApplicationError, RepositoryError
from .models import Application

logger = logging.getLogger(__name__)

COLUMNS = (
    "id",
    "user_id",
    "company",
    "role",
    "location",
    "date_applied",
    "last_update",
    "created_at",
    "status",
    "source",
    "salary",
    "remote_policy",
    "notes",
    "email_id",
    "confidence_score",
    "is_duplicate",
)


class ApplicationRepository(ABC):
    """Storage operations the pipeline relies on."""

    @abstractmethod
    def create(self, application: Application) -> Application:
        """Persist a new application."""

    @abstractmethod
    def find_by_natural_key(
        self, user_id: Optional[str], company: str, role: str, date_applied: str
    ) -> Optional[Application]:
        """Return the application with exactly this natural key, if any."""

    @abstractmethod
    def list_by_user(self, user_id: str) -> list[Application]:
        """Return every application belonging to a user."""


class SQLiteApplicationRepository(ApplicationRepository):
    """Repository backed by a local SQLite file."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def get_connection(self) -> sqlite3.Connection:
        """Get SQLite database connection."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Initialize database schema."""
        try:
            conn = self.get_connection()
            try:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS applications (
                        id TEXT PRIMARY KEY,
                        user_id TEXT,
                        company TEXT NOT NULL,
                        role TEXT NOT NULL,
                        location TEXT,
                        date_applied TEXT NOT NULL,
                        last_update TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        status TEXT NOT NULL
                            CHECK (status IN ('Applied', 'Interview', 'Offer', 'Rejected')),
                        source TEXT,
                        salary TEXT,
                        remote_policy TEXT,
                        notes TEXT,
                        email_id TEXT,
                        confidence_score INTEGER NOT NULL DEFAULT 0,
                        is_duplicate INTEGER NOT NULL DEFAULT 0
                    )
                """)
                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_user_company_role_date
                    ON applications (user_id, company, role, date_applied)
                """)
                conn.commit()
                logger.debug("Database initialized")
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to initialize database: {e}") from e

    def create(self, application: Application) -> Application:
        record = application.model_dump(include=set(COLUMNS))
        placeholders = ", ".join("?" for _ in COLUMNS)
        try:
            conn = self.get_connection()
            try:
                conn.execute(
                    f"INSERT INTO applications ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                    tuple(record[column] for column in COLUMNS),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateApplicationError(
                    f"Application with id '{application.id}' already exists"
                ) from e
            raise RepositoryError(f"Failed to create application: {e}") from e
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to create application: {e}") from e

        logger.debug(f"Stored application {application.id}")
        return application

    def find_by_natural_key(
        self, user_id: Optional[str], company: str, role: str, date_applied: str
    ) -> Optional[Application]:
        try:
            conn = self.get_connection()
            try:
                cursor = conn.execute(
                    """
                    SELECT * FROM applications
                    WHERE user_id IS ? AND company = ? AND role = ? AND date_applied = ?
                    LIMIT 1
                    """,
                    (user_id, company, role, date_applied),
                )
                row = cursor.fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to check for duplicates: {e}") from e

        return Application(**dict(row)) if row is not None else None

    def list_by_user(self, user_id: str) -> list[Application]:
        try:
            conn = self.get_connection()
            try:
                cursor = conn.execute(
                    """
                    SELECT * FROM applications
                    WHERE user_id = ?
                    ORDER BY date_applied DESC, rowid ASC
                    """,
                    (user_id,),
                )
                rows = cursor.fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to fetch applications: {e}") from e

        return [Application(**dict(row)) for row in rows]

    def count(self) -> int:
        """Get the total number of stored applications."""
        try:
            conn = self.get_connection()
            try:
                return conn.execute("SELECT COUNT(*) FROM applications").fetchone()[0]
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to count applications: {e}") from e
