"""SQL-backed durable lookup cache.

Persists resolved queries in a ``location_lookup_cache`` table through
SQLAlchemy Core. Writes use the dialect's native
``INSERT ... ON CONFLICT DO UPDATE`` so a rewrite of an existing query
increments its hit count atomically.

Supported dialects: SQLite (default, file or memory) and PostgreSQL.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    func,
    select,
    update,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from ...config import DurableCacheConfig, get_config
from ...domain.errors import ConfigurationError, TransientError
from ...domain.models import Alternative, DurableCacheEntry, LocationType

metadata = MetaData()

lookup_cache_table = Table(
    "location_lookup_cache",
    metadata,
    Column("query", String(255), primary_key=True),
    Column("result_type", String(20), nullable=False),
    Column("result_iata", String(3), nullable=False),
    Column("result_id", String(64)),
    Column("alternatives", Text, nullable=False, default="[]"),
    Column("confidence", Float, nullable=False),
    Column("hit_count", Integer, nullable=False, default=1),
    Column("last_accessed", DateTime, nullable=False),
    Column("created_at", DateTime, nullable=False),
    Index("ix_location_lookup_cache_last_accessed", "last_accessed"),
)

_SUPPORTED_DIALECTS = ("sqlite", "postgresql")


def _to_db_time(value: datetime) -> datetime:
    """Store naive UTC so SQLite and PostgreSQL compare the same way."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_time(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class SQLLookupCache:
    """Durable cache implementing LookupCachePort on a relational database.

    Attributes:
        config: Durable cache configuration (URL, SQL echo)
    """

    config: DurableCacheConfig = field(
        default_factory=lambda: get_config().durable_cache
    )

    _engine: Engine = field(init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        self._engine = self._create_engine(self.config.url)

        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise TransientError(
                "Could not initialize lookup cache table",
                tier="durable_cache",
                cause=e,
            )

        self._logger.info(
            "Durable lookup cache ready",
            extra={"dialect": self._engine.dialect.name},
        )

    def _create_engine(self, url: str) -> Engine:
        parsed = make_url(url)
        backend = parsed.get_backend_name()
        if backend not in _SUPPORTED_DIALECTS:
            raise ConfigurationError(
                f"Unsupported durable cache backend: {backend}",
                setting_name="durable_cache.url",
                expected_type=" or ".join(_SUPPORTED_DIALECTS),
            )

        kwargs: dict[str, Any] = {"echo": self.config.echo_sql}
        if backend == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            if parsed.database in (None, "", ":memory:"):
                # One shared connection, otherwise every checkout sees an empty DB
                kwargs["poolclass"] = StaticPool
            else:
                Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

        return create_engine(parsed, **kwargs)

    def _insert(self) -> Any:
        if self._engine.dialect.name == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            from sqlalchemy.dialects.postgresql import insert
        return insert(lookup_cache_table)

    def get(self, key: str) -> Optional[DurableCacheEntry]:
        """Fetch the entry stored under key.

        Raises:
            TransientError: If the database cannot be queried.
        """
        stmt = select(lookup_cache_table).where(lookup_cache_table.c.query == key)
        try:
            with self._engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as e:
            raise TransientError(
                "Lookup cache read failed", tier="durable_cache", cause=e
            )

        if row is None:
            return None

        return DurableCacheEntry(
            query=row["query"],
            result_type=LocationType(row["result_type"]),
            result_iata_code=row["result_iata"],
            result_id=row["result_id"],
            alternatives=tuple(
                Alternative.from_dict(item)
                for item in json.loads(row["alternatives"] or "[]")
            ),
            confidence=float(row["confidence"]),
            hit_count=int(row["hit_count"]),
            last_accessed=_from_db_time(row["last_accessed"]),
            created_at=_from_db_time(row["created_at"]),
        )

    def upsert(self, entry: DurableCacheEntry, now: datetime) -> None:
        """Insert the entry, or overwrite it and increment hit_count.

        Raises:
            TransientError: If the write fails.
        """
        db_now = _to_db_time(now)
        stmt = self._insert().values(
            query=entry.query,
            result_type=entry.result_type.value,
            result_iata=entry.result_iata_code,
            result_id=entry.result_id,
            alternatives=json.dumps([alt.as_dict() for alt in entry.alternatives]),
            confidence=entry.confidence,
            hit_count=1,
            last_accessed=db_now,
            created_at=db_now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[lookup_cache_table.c.query],
            set_={
                "result_type": stmt.excluded.result_type,
                "result_iata": stmt.excluded.result_iata,
                "result_id": stmt.excluded.result_id,
                "alternatives": stmt.excluded.alternatives,
                "confidence": stmt.excluded.confidence,
                "hit_count": lookup_cache_table.c.hit_count + 1,
                "last_accessed": stmt.excluded.last_accessed,
            },
        )

        try:
            with self._engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            raise TransientError(
                "Lookup cache write failed", tier="durable_cache", cause=e
            )

        self._logger.debug(
            "Lookup cache entry written",
            extra={"query": entry.query, "iata_code": entry.result_iata_code},
        )

    def record_hit(self, key: str, now: datetime) -> None:
        """Increment hit_count and refresh last_accessed.

        Raises:
            TransientError: If the update fails.
        """
        stmt = (
            update(lookup_cache_table)
            .where(lookup_cache_table.c.query == key)
            .values(
                hit_count=lookup_cache_table.c.hit_count + 1,
                last_accessed=_to_db_time(now),
            )
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            raise TransientError(
                "Lookup cache hit update failed", tier="durable_cache", cause=e
            )

    def purge_older_than(self, cutoff: datetime) -> int:
        """Delete entries last accessed before cutoff.

        Returns:
            Number of deleted rows.

        Raises:
            TransientError: If the delete fails.
        """
        stmt = delete(lookup_cache_table).where(
            lookup_cache_table.c.last_accessed < _to_db_time(cutoff)
        )
        try:
            with self._engine.begin() as conn:
                deleted = conn.execute(stmt).rowcount
        except SQLAlchemyError as e:
            raise TransientError(
                "Lookup cache purge failed", tier="durable_cache", cause=e
            )

        self._logger.info(
            "Purged old lookup cache entries",
            extra={"deleted": deleted, "cutoff": cutoff.isoformat()},
        )
        return deleted

    def clear(self) -> int:
        """Delete every entry.

        Returns:
            Number of deleted rows.
        """
        try:
            with self._engine.begin() as conn:
                deleted = conn.execute(delete(lookup_cache_table)).rowcount
        except SQLAlchemyError as e:
            raise TransientError(
                "Lookup cache clear failed", tier="durable_cache", cause=e
            )
        self._logger.info("Lookup cache cleared", extra={"deleted": deleted})
        return deleted

    def size(self) -> int:
        """Return the number of stored entries."""
        stmt = select(func.count()).select_from(lookup_cache_table)
        try:
            with self._engine.connect() as conn:
                return int(conn.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            raise TransientError(
                "Lookup cache count failed", tier="durable_cache", cause=e
            )

    def dispose(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()
