from __future__ import annotations

import logging
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, List, Mapping, Optional, Sequence

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    create_engine,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, Engine, make_url

from .codec import to_canonical, to_remote_patch, to_remote_row
from .errors import RemoteUnavailableError
from .models import NoteEntity, RemoteRow
from .repositories import LocalProvider, Provider
from .results import StorageResult

logger = logging.getLogger(__name__)


class IsoTimestamp(TypeDecorator):
    """
    Timestamp column exchanged with Python as an ISO-8601 string.

    Stored as a timezone-aware timestamp; naive values coming back from the
    database (e.g. SQLite) are read as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        dt = datetime.fromisoformat(value) if isinstance(value, str) else value
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    def process_result_value(self, value: Any, dialect: Any) -> Optional[str]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="milliseconds")


metadata = MetaData()

notes_table = Table(
    "notes",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("title", Text, nullable=False, default=""),
    Column("content", Text, nullable=False, default=""),
    Column("updated_at", IsoTimestamp, nullable=True),
    Column("created_at", IsoTimestamp, nullable=True, server_default=func.now()),
)

_REPLACED_ON_CONFLICT = ("title", "content", "updated_at")


class RemoteClient:
    """
    Long-lived handle on the remote database engine.

    The engine is built on first use and at most once per instance. A failed
    construction (missing driver, malformed URL) is remembered and never retried.
    """

    def __init__(
        self,
        url: str,
        key: str,
        engine_factory: Callable[..., Engine] = create_engine,
    ) -> None:
        self._url = url
        self._key = key
        self._engine_factory = engine_factory
        self._lock = Lock()
        self._initialized = False
        self._engine: Optional[Engine] = None

    def _build_engine(self) -> Engine:
        url = make_url(self._url)
        # sqlite URLs carry no credentials
        if self._key and url.get_backend_name() != "sqlite":
            url = url.set(password=self._key)
        return self._engine_factory(url, pool_pre_ping=True)

    def acquire(self) -> Optional[Engine]:
        """Return the engine, constructing it on first call; None when unavailable."""
        if self._initialized:
            return self._engine
        with self._lock:
            if not self._initialized:
                try:
                    self._engine = self._build_engine()
                except Exception as exc:
                    logger.error(
                        "Remote client construction failed; using local storage for this process: %s",
                        exc,
                    )
                    self._engine = None
                self._initialized = True
        return self._engine

    def require(self) -> Engine:
        engine = self.acquire()
        if engine is None:
            raise RemoteUnavailableError("Remote client is unavailable")
        return engine

    @property
    def available(self) -> bool:
        return self.acquire() is not None

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()


def _fetch_row(conn: Connection, note_id: str) -> Optional[Mapping[str, Any]]:
    return conn.execute(select(notes_table).where(notes_table.c.id == note_id)).mappings().first()


def _upsert_rows(conn: Connection, rows: List[RemoteRow]) -> None:
    dialect_name = conn.dialect.name
    if dialect_name in ("postgresql", "sqlite"):
        dialect_insert = postgresql.insert if dialect_name == "postgresql" else sqlite.insert
        stmt = dialect_insert(notes_table)
        stmt = stmt.on_conflict_do_update(
            index_elements=[notes_table.c.id],
            set_={name: stmt.excluded[name] for name in _REPLACED_ON_CONFLICT},
        )
        conn.execute(stmt, rows)
        return

    for row in rows:
        replaced = {name: row[name] for name in _REPLACED_ON_CONFLICT}  # type: ignore[literal-required]
        result = conn.execute(update(notes_table).where(notes_table.c.id == row["id"]).values(**replaced))
        if result.rowcount == 0:
            conn.execute(insert(notes_table).values(**row))


class RemoteProvider(Provider):
    """
    Provider over the remote 'notes' table.

    `list` and `save_all` fall back to the local provider on any remote failure;
    the row-level operations report failure as None/False instead.
    """

    def __init__(self, client: RemoteClient, fallback: LocalProvider) -> None:
        self._client = client
        self._fallback = fallback

    def list(self) -> StorageResult[List[NoteEntity]]:
        try:
            engine = self._client.require()
            with engine.connect() as conn:
                rows = conn.execute(
                    select(notes_table).order_by(notes_table.c.updated_at.desc())
                ).mappings().all()
            notes = [to_canonical(row) for row in rows]
            return StorageResult([n for n in notes if n is not None])
        except Exception as exc:
            logger.error("Remote list failed; falling back to local storage: %s", exc)
            return self._fallback.list().with_fallback("list", str(exc))

    def create(self, note: NoteEntity) -> Optional[NoteEntity]:
        try:
            engine = self._client.require()
            with engine.begin() as conn:
                row = to_remote_row(note)
                conn.execute(insert(notes_table).values(**row))
                return to_canonical(_fetch_row(conn, row["id"]))
        except Exception as exc:
            logger.error("Remote create failed: %s", exc)
            return None

    def update(self, note_id: str, patch: Mapping[str, Any]) -> Optional[NoteEntity]:
        try:
            engine = self._client.require()
            with engine.begin() as conn:
                result = conn.execute(
                    update(notes_table).where(notes_table.c.id == note_id).values(**to_remote_patch(patch))
                )
                if result.rowcount == 0:
                    return None
                return to_canonical(_fetch_row(conn, note_id))
        except Exception as exc:
            logger.error("Remote update failed: %s", exc)
            return None

    def remove(self, note_id: str) -> bool:
        try:
            engine = self._client.require()
            with engine.begin() as conn:
                conn.execute(delete(notes_table).where(notes_table.c.id == note_id))
            return True
        except Exception as exc:
            logger.error("Remote delete failed: %s", exc)
            return False

    def save_all(self, notes: Sequence[NoteEntity]) -> StorageResult[bool]:
        """
        Reconcile the remote table with `notes`: upsert every note by id, then
        delete every row whose id is not in `notes`. Runs in one transaction.
        """
        try:
            engine = self._client.require()
            rows = [to_remote_row(n) for n in notes]
            incoming_ids = {row["id"] for row in rows}
            with engine.begin() as conn:
                if rows:
                    _upsert_rows(conn, rows)
                existing_ids = conn.execute(select(notes_table.c.id)).scalars().all()
                to_delete = [i for i in existing_ids if i not in incoming_ids]
                if to_delete:
                    conn.execute(delete(notes_table).where(notes_table.c.id.in_(to_delete)))
            return StorageResult(True)
        except Exception as exc:
            logger.error("Remote save_all failed; falling back to local storage: %s", exc)
            return self._fallback.save_all(notes).with_fallback("save_all", str(exc))
