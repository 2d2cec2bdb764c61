"""Relational storage for ACARS messages."""

from __future__ import annotations

import logging
from typing import List, Protocol

from sqlalchemy import (
    CHAR,
    Column,
    Date,
    Index,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    Time,
    and_,
    create_engine,
    insert,
    literal,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import DuplicateMessageError, StorageError
from .models import DecodedMessage, StoredMessage

logger = logging.getLogger(__name__)

metadata = MetaData()

acars_table = Table(
    "acars",
    metadata,
    Column("date", Date, nullable=False),
    Column("time", Time, nullable=False),
    Column("frequency", CHAR(7)),
    Column("registration", String(7), nullable=False),
    Column("flight", CHAR(6), nullable=False),
    Column("mode", CHAR(1), nullable=False),
    Column("label", CHAR(2), nullable=False),
    Column("block_id", CHAR(1), nullable=False),
    Column("msg_id", CHAR(4), nullable=False),
    Column("text", Text),
    PrimaryKeyConstraint("date", "registration", "flight", "mode", "label", "block_id", "msg_id"),
    Index("datetime_idx", "date", "time"),
    Index("registration_idx", "registration"),
    Index("flight_idx", "flight"),
)


class StoragePort(Protocol):
    """Persistence operations required by the routing policy."""

    def setup(self) -> None:
        ...

    def insert(self, message: DecodedMessage) -> None:
        ...

    def insert_if_absent(self, message: DecodedMessage) -> int:
        ...

    def recent(self, limit: int) -> List[StoredMessage]:
        ...


def _row_values(message: DecodedMessage) -> dict:
    timestamp = message.timestamp
    return {
        "date": timestamp.date(),
        "time": timestamp.time().replace(microsecond=0),
        "frequency": message.frequency,
        "registration": message.registration,
        "flight": message.flight_id,
        "mode": message.mode,
        "label": message.label,
        "block_id": message.block_id,
        "msg_id": message.msg_id,
        "text": message.text,
    }


# SQLSTATE for unique violations, and the MySQL "Duplicate entry" error code.
UNIQUE_VIOLATION_SQLSTATE = "23505"
MYSQL_DUPLICATE_ENTRY = 1062
SQLITE_UNIQUE_ERRORS = ("SQLITE_CONSTRAINT_PRIMARYKEY", "SQLITE_CONSTRAINT_UNIQUE")


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell key collisions apart from other integrity failures (NOT NULL, CHECK...)."""

    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    args = getattr(orig, "args", ())
    if args and args[0] == MYSQL_DUPLICATE_ENTRY:
        return True
    errorname = getattr(orig, "sqlite_errorname", None)
    if errorname:
        return errorname in SQLITE_UNIQUE_ERRORS
    return "UNIQUE constraint failed" in str(orig)


def _write_error(exc: SQLAlchemyError) -> StorageError:
    if isinstance(exc, IntegrityError) and is_unique_violation(exc):
        return DuplicateMessageError(str(exc.orig))
    return StorageError(str(exc))


class SqlStorage:
    """SQLAlchemy Core wrapper that satisfies the StoragePort contract."""

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        # The UDP worker writes while API requests read from other threads.
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        try:
            self._engine: Engine = create_engine(
                database_url, echo=echo, pool_pre_ping=True, connect_args=connect_args
            )
        except (SQLAlchemyError, ImportError) as exc:
            raise StorageError(f"Cannot configure database {database_url!r}: {exc}") from exc

    def setup(self) -> None:
        """Create the ``acars`` table and its indexes if they do not exist."""

        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to set up schema: {exc}") from exc
        logger.info("Database schema ready (%s)", self._engine.url.render_as_string(hide_password=True))

    def insert(self, message: DecodedMessage) -> None:
        """Store the message; a primary key collision raises DuplicateMessageError."""

        try:
            with self._engine.begin() as conn:
                conn.execute(insert(acars_table).values(**_row_values(message)))
        except SQLAlchemyError as exc:
            raise _write_error(exc) from exc

    def insert_if_absent(self, message: DecodedMessage) -> int:
        """Store the message unless a row for the same date, flight and registration exists.

        Returns the number of inserted rows (0 or 1).
        """

        values = _row_values(message)
        columns = list(values)
        already_stored = (
            select(acars_table.c.date)
            .where(
                and_(
                    acars_table.c.date == values["date"],
                    acars_table.c.flight == values["flight"],
                    acars_table.c.registration == values["registration"],
                )
            )
            .correlate(None)
            .exists()
        )
        source = select(
            *[literal(values[name], type_=acars_table.c[name].type) for name in columns]
        ).where(~already_stored)
        statement = insert(acars_table).from_select(columns, source)
        try:
            with self._engine.begin() as conn:
                result = conn.execute(statement)
        except SQLAlchemyError as exc:
            raise _write_error(exc) from exc
        return max(result.rowcount, 0)

    def recent(self, limit: int) -> List[StoredMessage]:
        """Return the most recently received rows, newest first."""

        query = (
            select(acars_table)
            .order_by(acars_table.c.date.desc(), acars_table.c.time.desc())
            .limit(limit)
        )
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        return [StoredMessage.model_validate(dict(row._mapping)) for row in rows]

    def close(self) -> None:
        self._engine.dispose()
