"""Async SQLAlchemy collaborators: session store and in-app alerts."""

from typing import Any

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from calendar_sync.adapters.orm import NotificationRow, SessionRow
from calendar_sync.conflict.models import LocalRecord, SyncMode
from calendar_sync.core.errors import RecordStoreError
from calendar_sync.ports import AlertSink, RecordStore

# Engine field name -> sessions column
SESSION_COLUMNS = {
    "date": "data",
    "time": "horario",
    "notes": "anotacoes",
    "location": "google_location",
    "last_synced_at": "google_last_synced",
}

MIRRORED_STORED_VALUES = ("espelhado", SyncMode.MIRRORED.value)


def to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """Translate engine field names to ``sessions`` columns."""
    unknown = set(fields) - set(SESSION_COLUMNS)
    if unknown:
        raise ValueError(f"Unsupported session fields: {sorted(unknown)}")
    return {SESSION_COLUMNS[name]: value for name, value in fields.items()}


def row_to_record(row: SessionRow, client_name: str | None = None) -> LocalRecord:
    return LocalRecord(
        id=row.id,
        mirror_event_id=row.google_event_id,
        mirror_mode=row.google_sync_type or SyncMode.NONE,
        date=row.data,
        time=row.horario,
        notes=row.anotacoes,
        location=row.google_location,
        client_name=client_name,
        last_synced_at=row.google_last_synced,
    )


class SqlAlchemyRecordStore(RecordStore):
    """Writes session updates to the ``sessions`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def update_record(self, record_id: str, fields: dict[str, Any]) -> None:
        values = to_columns(fields)

        async with self._session_maker() as session:
            try:
                result = await session.execute(
                    update(SessionRow).where(SessionRow.id == record_id).values(**values)
                )
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise RecordStoreError(record_id, str(e)) from e

        if result.rowcount == 0:
            raise RecordStoreError(record_id, "no such session")

        logger.debug(f"Updated session {record_id}: {', '.join(values)}")

    async def load_mirrored(self, user_id: str) -> list[LocalRecord]:
        """Load every mirrored session of a user."""
        async with self._session_maker() as session:
            result = await session.execute(
                select(SessionRow).where(
                    SessionRow.user_id == user_id,
                    SessionRow.google_sync_type.in_(MIRRORED_STORED_VALUES),
                )
            )
            rows = result.scalars().all()

        return [row_to_record(row) for row in rows]


class SqlAlchemyAlertSink(AlertSink):
    """Stores alerts in the ``notifications`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def create_alert(self, user_id: str, title: str, body: str) -> None:
        async with self._session_maker() as session:
            session.add(NotificationRow(user_id=user_id, titulo=title, conteudo=body))
            await session.commit()
