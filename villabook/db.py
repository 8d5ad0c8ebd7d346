import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, DeclarativeBase

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass


# Execution option marking connections that will write; set by Database.unit_of_work().
WRITE_INTENT = "villabook_write_intent"


def _install_sqlite_hooks(engine: Engine) -> None:
    """
    pysqlite defers BEGIN until the first write, which lets two transactions
    read the same rows and then race on insert. Units of work take the write
    lock up front instead so admissions against a SQLite file are serialized.
    Read-only sessions open a plain deferred transaction; in WAL mode they
    never wait on a writer.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(WRITE_INTENT):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


class Database:
    """Owns the engine and session factory for one application instance."""

    def __init__(self, url: str, busy_timeout: float = 30.0, echo: bool = False):
        self.url = url
        is_sqlite = url.startswith("sqlite")
        self.engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": busy_timeout} if is_sqlite else {},
        )
        if is_sqlite:
            _install_sqlite_hooks(self.engine)
        # Reservations are read back after commit to build responses and notifications
        self.session_factory = sessionmaker(bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def unit_of_work(self) -> Iterator[Session]:
        """Commit on clean exit, roll back on any exception."""
        db = self.session_factory()
        try:
            db.connection(execution_options={WRITE_INTENT: True})
            yield db
            if db.in_transaction():
                db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()

    def ensure_schema(self) -> None:
        """
        Create tables, then best-effort extras that plain create_all cannot express:
        - helpful indexes for overlap searches
        - a range exclusion constraint on booking_locks (PostgreSQL only)
        Never fails app startup for the extras.
        """
        from . import models  # noqa: F401  (register mappers)

        Base.metadata.create_all(self.engine)
        ddls = [
            "CREATE INDEX IF NOT EXISTS ix_bookings_resource_start_end ON bookings(resource_id, start_date, end_date);",
            "CREATE INDEX IF NOT EXISTS ix_bookings_configuration_start_end ON bookings(configuration_id, start_date, end_date);",
            "CREATE INDEX IF NOT EXISTS ix_booking_locks_resource_start_end ON booking_locks(resource_id, start_date, end_date);",
        ]
        if self.dialect == "postgresql":
            ddls += [
                "CREATE EXTENSION IF NOT EXISTS btree_gist;",
                "ALTER TABLE booking_locks ADD CONSTRAINT booking_locks_no_overlap "
                "EXCLUDE USING gist (resource_id WITH =, daterange(start_date, end_date, '[)') WITH &&);",
            ]
        for ddl in ddls:
            try:
                with self.engine.begin() as conn:
                    conn.exec_driver_sql(ddl)
            except Exception as exc:
                # Constraint already present, or missing privileges for the extension
                logger.debug("Schema extra skipped (%s): %s", ddl.split(" ON ")[0], exc)
