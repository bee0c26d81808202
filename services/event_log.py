"""Access to the multi-writer event log.

The log is read one writer at a time; no ordering or de-duplication is
guaranteed for the rows a writer returns. ``fetch_from_writers`` queries all
writers concurrently and turns a failing writer into an empty contribution.
"""

import asyncio
from typing import Any, Iterable, List, Protocol, Sequence

import structlog
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from core.exceptions import WriterFetchFailure
from core.metrics import writer_fetch_failures_total
from models import RawRecord

logger = structlog.get_logger(__name__)

Row = List[Any]


class EventLogReader(Protocol):
    async def fetch_records(self, schema_id: str, writer: str) -> List[Row]:
        ...


class SqlEventLog:
    """Event log stored in a single SQL table, one row per published record."""

    def __init__(self, engine: Engine):
        self.engine = engine

    async def fetch_records(self, schema_id: str, writer: str) -> List[Row]:
        with Session(self.engine) as session:
            records = session.exec(
                select(RawRecord)
                .where(RawRecord.schema_id == schema_id)
                .where(RawRecord.writer == writer.lower())
            ).all()
            return [list(record.row) for record in records]

    def append(self, schema_id: str, writer: str, row: Sequence[Any]) -> RawRecord:
        record = RawRecord(schema_id=schema_id, writer=writer.lower(), row=list(row))
        with Session(self.engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
        return record

    def writers(self) -> List[str]:
        with Session(self.engine) as session:
            return sorted(set(session.exec(select(RawRecord.writer)).all()))


async def _fetch_one(reader: EventLogReader, schema_id: str, writer: str, timeout: float) -> List[Row]:
    try:
        rows = await asyncio.wait_for(reader.fetch_records(schema_id, writer), timeout=timeout)
    except asyncio.TimeoutError:
        raise WriterFetchFailure(writer, f"timed out after {timeout}s")
    except WriterFetchFailure:
        raise
    except Exception as e:
        raise WriterFetchFailure(writer, str(e)) from e
    return list(rows or [])


async def fetch_from_writers(
    reader: EventLogReader,
    schema_id: str,
    writers: Iterable[str],
    timeout: float = 10.0,
    schema_name: str = "",
) -> List[Row]:
    """Rows of every writer concatenated; a writer whose fetch fails contributes nothing."""
    writers = list(dict.fromkeys(w.lower() for w in writers))
    if not writers:
        return []

    results = await asyncio.gather(
        *(_fetch_one(reader, schema_id, writer, timeout) for writer in writers),
        return_exceptions=True,
    )

    rows: List[Row] = []
    for writer, result in zip(writers, results):
        if isinstance(result, WriterFetchFailure):
            logger.warning("writer_fetch_failed", schema=schema_name or schema_id, writer=writer, reason=result.details["reason"])
            writer_fetch_failures_total.labels(schema=schema_name or schema_id).inc()
            continue
        if isinstance(result, BaseException):
            raise result
        rows.extend(result)
    return rows
