import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

Connection = sqlite3.Connection

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

class DatabaseConfig:
    """Where the ledger database lives. The parent directory is created on demand."""

    def __init__(self, db_path: Path | str = "data/rosacash.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def connection_string(self) -> str:
        return str(self.db_path.absolute())


class DatabaseManager:
    """
    Owns the single SQLite connection of a ledger database.

    Rows come back as sqlite3.Row; dates and decimals are stored as text
    and converted by the repository.

    Usage:
        with DatabaseManager(DatabaseConfig("ledger.db")) as db:
            db.initialize_schema()
            with db.transaction() as conn:
                conn.execute("INSERT INTO cards ...")
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._connection: Connection | None = None

    def get_connection(self) -> Connection:
        """Open the connection on first use"""
        if self._connection is None:
            conn = sqlite3.connect(self.config.connection_string, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            self._connection = conn
        return self._connection

    def close(self) -> None:
        if self._connection:
            self._connection.close()
            self._connection = None

    @contextmanager
    def transaction(self) -> Generator[Connection, None, None]:
        """Commit on success, roll back and re-raise on any error"""
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize_schema(self, schema_path: Path = SCHEMA_PATH) -> Optional[sqlite3.Row]:
        """
        Create the ledger tables if they do not exist yet.

        The schema only uses IF NOT EXISTS / INSERT OR IGNORE, so running it
        against an existing ledger leaves the data alone.

        Returns:
            The current schema version row (see schema_version)
        """
        script = Path(schema_path).read_text()
        # executescript commits on its own
        self.get_connection().executescript(script)
        return self.schema_version()

    def schema_version(self) -> Optional[sqlite3.Row]:
        """Latest applied schema version (version, description), or None before init"""
        conn = self.get_connection()
        table = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
        ).fetchone()
        if table is None:
            return None
        return conn.execute(
            "SELECT version, description FROM schema_version ORDER BY version DESC LIMIT 1"
        ).fetchone()

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
