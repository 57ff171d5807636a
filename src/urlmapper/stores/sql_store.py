from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import MetaData, insert, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from urlmapper.core.errors import RecordNotFoundError, ShortCodeConflict, StoreError
from urlmapper.core.records import MappingRecord
from urlmapper.db.models import mapping_table
from urlmapper.stores.base import MappingStore, check_counter_field


class SqlMappingStore(MappingStore):
    """
    Mapping records in a relational table.

    The primary key on short_url makes inserts conditional; increments are a
    single UPDATE so the database serializes concurrent hits.
    """

    def __init__(self, engine: Engine, table_name: str, create_tables: bool = True):
        self.engine = engine
        self.metadata = MetaData()
        self.table = mapping_table(table_name, self.metadata)
        if create_tables:
            self.metadata.create_all(bind=engine)

    def put_if_absent(self, record: MappingRecord) -> None:
        stmt = insert(self.table).values(
            short_url=record.short_url,
            long_url=record.long_url,
            created_at=record.created_at,
            access_count=record.access_count,
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except IntegrityError as exc:
            raise ShortCodeConflict(record.short_url) from exc
        except SQLAlchemyError as exc:
            raise StoreError(f"database write failed: {exc}") from exc

    def get(self, short_url: str) -> Optional[MappingRecord]:
        stmt = select(self.table).where(self.table.c.short_url == short_url)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as exc:
            raise StoreError(f"database read failed: {exc}") from exc

        if row is None:
            return None

        created_at: datetime = row["created_at"]
        # SQLite drops tzinfo on the way back
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return MappingRecord(
            short_url=row["short_url"],
            long_url=row["long_url"],
            created_at=created_at,
            access_count=row["access_count"],
        )

    def increment(self, short_url: str, field: str = "access_count", delta: int = 1) -> int:
        check_counter_field(field)
        column = self.table.c[field]
        stmt = (
            update(self.table)
            .where(self.table.c.short_url == short_url)
            .values({field: column + delta})
        )
        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
                if result.rowcount == 0:
                    raise RecordNotFoundError(short_url)
                value = conn.execute(
                    select(column).where(self.table.c.short_url == short_url)
                ).scalar_one()
        except SQLAlchemyError as exc:
            raise StoreError(f"database increment failed: {exc}") from exc

        return int(value)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()
