"""Issue ledger storage backends.

The ledger needs at most one record per resource name. The PostgreSQL
backend gets that from a UNIQUE constraint and a single upsert statement;
the in-memory backend serialises writes behind a lock.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, List, Optional

import asyncpg

from ..database import SCHEMA_SQL, get_pool
from ..exceptions import IssueNotFound, PersistenceError
from .models import IssueRecord, IssueStatus, ReportOutcome

logger = logging.getLogger(__name__)


class IssueStore(ABC):
    """Persistence interface for issue records."""

    async def ensure_schema(self) -> None:
        """Prepare backing storage. Backends without a schema do nothing."""

    @abstractmethod
    async def upsert(
        self,
        resource_name: str,
        cause: str,
        description: str,
        now: datetime,
    ) -> ReportOutcome:
        """Create the record or count one more occurrence.

        An existing record keeps its cause, description and status.
        """

    @abstractmethod
    async def get(self, resource_name: str) -> Optional[IssueRecord]:
        """Get a record by exact resource name."""

    @abstractmethod
    async def list_issues(
        self,
        status: Optional[IssueStatus] = None,
        limit: Optional[int] = None,
    ) -> List[IssueRecord]:
        """List records, most reported first."""

    @abstractmethod
    async def mark_fixed(self, resource_name: str, fixed_by: str, now: datetime) -> IssueRecord:
        """Mark a record fixed.

        Raises:
            IssueNotFound: If no record exists for resource_name
        """


class MemoryIssueStore(IssueStore):
    """In-process store for development and tests."""

    def __init__(self):
        self._records: Dict[str, IssueRecord] = {}
        self._lock = asyncio.Lock()

    async def upsert(self, resource_name, cause, description, now):
        async with self._lock:
            record = self._records.get(resource_name)
            if record:
                record.occurrence_count += 1
                record.last_reported_at = now
                return ReportOutcome(record=record.copy(), is_new=False)

            record = IssueRecord(
                resource_name=resource_name,
                cause=cause,
                description=description,
                occurrence_count=1,
                status=IssueStatus.PENDING,
                created_at=now,
                last_reported_at=now,
            )
            self._records[resource_name] = record
            return ReportOutcome(record=record.copy(), is_new=True)

    async def get(self, resource_name):
        record = self._records.get(resource_name)
        return record.copy() if record else None

    async def list_issues(self, status=None, limit=None):
        records = [
            r.copy() for r in self._records.values()
            if status is None or r.status == status
        ]
        records.sort(key=lambda r: r.occurrence_count, reverse=True)
        if limit is not None:
            records = records[:limit]
        return records

    async def mark_fixed(self, resource_name, fixed_by, now):
        async with self._lock:
            record = self._records.get(resource_name)
            if record is None:
                raise IssueNotFound(resource_name)
            if not record.is_fixed:
                record.status = IssueStatus.FIXED
                record.fixed_at = now
                record.fixed_by = fixed_by
            return record.copy()


class PostgresIssueStore(IssueStore):
    """Issue records in the crashbot.crash_reports table."""

    def __init__(self, pool: Optional[asyncpg.Pool] = None, config=None):
        self._pool = pool
        self._config = config

    async def _get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            self._pool = await get_pool(self._config)
        return self._pool

    @asynccontextmanager
    async def _connection(self, action: str):
        try:
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                yield conn
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Issue store {action} failed: {e}")
            raise PersistenceError(f"Could not {action}: {e}") from e

    async def ensure_schema(self):
        async with self._connection("create schema") as conn:
            await conn.execute(SCHEMA_SQL)
        logger.info("crashbot schema ready")

    async def upsert(self, resource_name, cause, description, now):
        async with self._connection("record issue") as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO crashbot.crash_reports (
                    resource_name, cause, description, occurrence_count,
                    status, created_at, last_reported_at
                ) VALUES ($1, $2, $3, 1, $4, $5, $5)
                ON CONFLICT (resource_name) DO UPDATE SET
                    occurrence_count = crashbot.crash_reports.occurrence_count + 1,
                    last_reported_at = EXCLUDED.last_reported_at
                RETURNING *, (xmax = 0) AS inserted
                """,
                resource_name, cause, description, IssueStatus.PENDING.value, now
            )
        return ReportOutcome(record=IssueRecord.from_row(row), is_new=row["inserted"])

    async def get(self, resource_name):
        async with self._connection("load issue") as conn:
            row = await conn.fetchrow(
                "SELECT * FROM crashbot.crash_reports WHERE resource_name = $1",
                resource_name
            )
        return IssueRecord.from_row(row) if row else None

    async def list_issues(self, status=None, limit=None):
        query = "SELECT * FROM crashbot.crash_reports"
        params = []

        if status is not None:
            params.append(IssueStatus(status).value)
            query += f" WHERE status = ${len(params)}"

        query += " ORDER BY occurrence_count DESC, last_reported_at DESC"

        if limit is not None:
            params.append(limit)
            query += f" LIMIT ${len(params)}"

        async with self._connection("list issues") as conn:
            rows = await conn.fetch(query, *params)
        return [IssueRecord.from_row(row) for row in rows]

    async def mark_fixed(self, resource_name, fixed_by, now):
        async with self._connection("mark issue fixed") as conn:
            row = await conn.fetchrow(
                """
                UPDATE crashbot.crash_reports SET
                    status = $2,
                    fixed_at = COALESCE(fixed_at, $3),
                    fixed_by = COALESCE(fixed_by, $4)
                WHERE resource_name = $1
                RETURNING *
                """,
                resource_name, IssueStatus.FIXED.value, now, fixed_by
            )
        if row is None:
            raise IssueNotFound(resource_name)
        return IssueRecord.from_row(row)


def create_store(config) -> IssueStore:
    """Create the issue store selected by config.store_backend."""
    backend = (config.store_backend or "postgres").lower()
    if backend == "memory":
        logger.warning("Using in-memory issue store, reports will not survive a restart")
        return MemoryIssueStore()
    if backend in ("postgres", "postgresql"):
        return PostgresIssueStore(config=config)
    raise ValueError(f"Unsupported issue store: {config.store_backend}. Must be 'postgres' or 'memory'")
