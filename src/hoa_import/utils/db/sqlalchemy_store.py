"""
Relational import store on SQLAlchemy's asyncio extension.

PostgreSQL (asyncpg) is the production target; SQLite (aiosqlite) backs
local runs and the test suite.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from sqlalchemy import delete, event, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from hoa_import.models.records import (
    Apartment,
    Charge,
    ChargeNotification,
    HomeownersAssociation,
    Payment,
    RecordModel,
)
from hoa_import.models.tables import (
    ApartmentRow,
    Base,
    ChargeNotificationRow,
    ChargeRow,
    HomeownersAssociationRow,
    PaymentRow,
    new_record_id,
)
from hoa_import.utils.db.base import (
    DuplicateEntityError,
    EntityKind,
    ImportStore,
    ImportUnitOfWork,
    StoreError,
    store_operation,
)
from hoa_import.utils.import_config import ImportConfig

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Rows per statement; keeps bound parameters under the SQLite and asyncpg limits.
CHUNK_SIZE = 500

ROW_TYPES: Dict[EntityKind, type] = {
    EntityKind.APARTMENT: ApartmentRow,
    EntityKind.CHARGE: ChargeRow,
    EntityKind.NOTIFICATION: ChargeNotificationRow,
    EntityKind.PAYMENT: PaymentRow,
}


def chunked(items: Sequence[T], size: int = CHUNK_SIZE) -> Iterable[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def insert_for_dialect(dialect_name: str) -> Callable[..., Any]:
    """Dialect-specific INSERT construct supporting ``on_conflict_do_nothing``."""
    if dialect_name == 'postgresql':
        return pg_insert
    if dialect_name == 'sqlite':
        return sqlite_insert
    raise StoreError(f"Unsupported database dialect: {dialect_name}")


def create_engine_from_config(config: ImportConfig) -> AsyncEngine:
    url = config.database_url
    is_sqlite = url.startswith('sqlite')
    options: Dict[str, Any] = {'echo': config.echo_sql, 'future': True}
    if not is_sqlite:
        options.update(pool_size=config.pool_size, pool_pre_ping=True)

    engine = create_async_engine(url, **options)

    if is_sqlite:
        # Driver-level transaction handling breaks SAVEPOINT; BEGIN IMMEDIATE serializes writers.
        @event.listens_for(engine.sync_engine, "connect")
        def _configure_sqlite(dbapi_conn, conn_record):
            dbapi_conn.isolation_level = None
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_sqlite(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


class SqlAlchemyUnitOfWork(ImportUnitOfWork):
    """Unit of work bound to one ``AsyncSession`` inside an open transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._insert = insert_for_dialect(session.bind.dialect.name)

    @store_operation("upsert_hoa")
    async def upsert_hoa(self, external_id: str) -> HomeownersAssociation:
        now = datetime.now(timezone.utc)
        stmt = self._insert(HomeownersAssociationRow).values(
            id=new_record_id(),
            external_id=external_id,
            name=external_id,
            created_at=now,
            updated_at=now,
        ).on_conflict_do_nothing(index_elements=['external_id'])
        await self.session.execute(stmt)

        result = await self.session.execute(
            select(HomeownersAssociationRow)
            .where(HomeownersAssociationRow.external_id == external_id)
            .execution_options(populate_existing=True)
        )
        return HomeownersAssociation.from_row(result.scalar_one())

    @store_operation("find_apartments")
    async def find_apartments(self, hoa_id: str) -> List[Apartment]:
        result = await self.session.execute(
            select(ApartmentRow)
            .where(ApartmentRow.hoa_id == hoa_id)
            .execution_options(populate_existing=True)
        )
        return [Apartment.from_row(row) for row in result.scalars()]

    @store_operation("find_charges")
    async def find_charges(self, apartment_ids: Sequence[str], periods: Sequence[str]) -> List[Charge]:
        if not apartment_ids or not periods:
            return []
        charges: List[Charge] = []
        for ids in chunked(list(apartment_ids)):
            result = await self.session.execute(
                select(ChargeRow)
                .where(ChargeRow.apartment_id.in_(ids), ChargeRow.period.in_(list(periods)))
                .execution_options(populate_existing=True)
            )
            charges.extend(Charge.from_row(row) for row in result.scalars())
        return charges

    @store_operation("find_notifications")
    async def find_notifications(self, hoa_id: str) -> List[ChargeNotification]:
        result = await self.session.execute(
            select(ChargeNotificationRow)
            .join(ApartmentRow, ApartmentRow.id == ChargeNotificationRow.apartment_id)
            .where(ApartmentRow.hoa_id == hoa_id)
            .execution_options(populate_existing=True)
        )
        return [ChargeNotification.from_row(row) for row in result.scalars()]

    @store_operation("find_payments")
    async def find_payments(self, apartment_ids: Sequence[str], years: Sequence[int]) -> List[Payment]:
        if not apartment_ids or not years:
            return []
        payments: List[Payment] = []
        for ids in chunked(list(apartment_ids)):
            result = await self.session.execute(
                select(PaymentRow)
                .where(PaymentRow.apartment_id.in_(ids), PaymentRow.year.in_(list(years)))
                .execution_options(populate_existing=True)
            )
            payments.extend(Payment.from_row(row) for row in result.scalars())
        return payments

    @store_operation("bulk_insert")
    async def bulk_insert(self, kind: EntityKind, rows: Sequence[RecordModel]) -> int:
        if not rows:
            return 0
        table = ROW_TYPES[kind].__table__
        now = datetime.now(timezone.utc)

        inserted = 0
        for chunk in chunked(list(rows)):
            values = [
                {**row.to_row(), 'id': new_record_id(), 'created_at': now, 'updated_at': now}
                for row in chunk
            ]
            stmt = self._insert(table).values(values).on_conflict_do_nothing()
            result = await self.session.execute(stmt)
            inserted += max(result.rowcount, 0)
        logger.debug(f"Inserted {inserted} of {len(rows)} {kind.value} rows")
        return inserted

    @store_operation("update")
    async def update(self, kind: EntityKind, record_id: str, data: RecordModel, fields: Iterable[str]) -> None:
        values = data.to_row(fields)
        if not values:
            return
        model = ROW_TYPES[kind]
        try:
            await self.session.execute(
                update(model)
                .where(model.id == record_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as e:
            raise DuplicateEntityError(f"Update of {kind.value} {record_id} collides with an existing record") from e

    @store_operation("set_apartments_active")
    async def set_apartments_active(self, apartment_ids: Sequence[str], is_active: bool) -> int:
        changed = 0
        for ids in chunked(list(apartment_ids)):
            result = await self.session.execute(
                update(ApartmentRow)
                .where(ApartmentRow.id.in_(ids))
                .values(is_active=is_active)
                .execution_options(synchronize_session=False)
            )
            changed += result.rowcount
        return changed

    @store_operation("delete")
    async def delete(self, kind: EntityKind, record_ids: Sequence[str]) -> int:
        model = ROW_TYPES[kind]
        deleted = 0
        for ids in chunked(list(record_ids)):
            result = await self.session.execute(
                delete(model)
                .where(model.id.in_(ids))
                .execution_options(synchronize_session=False)
            )
            deleted += result.rowcount
        return deleted

    def savepoint(self):
        return self.session.begin_nested()


class SqlAlchemyImportStore(ImportStore):
    """Import store opening one session and transaction per HOA."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
            class_=AsyncSession,
        )

    @classmethod
    def from_config(cls, config: Optional[ImportConfig] = None) -> 'SqlAlchemyImportStore':
        return cls(create_engine_from_config(config or ImportConfig.from_environment()))

    async def create_schema(self) -> None:
        """Create all import tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Import schema is in place")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlAlchemyUnitOfWork]:
        async with self._session_factory() as session:
            async with session.begin():
                yield SqlAlchemyUnitOfWork(session)

    async def dispose(self) -> None:
        await self.engine.dispose()
