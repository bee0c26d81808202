from typing import Any, List, Optional
from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON


class RawRecord(SQLModel, table=True):
    """One positional row appended to the event log by a writer."""
    seq: Optional[int] = Field(default=None, primary_key=True)
    schema_id: str = Field(index=True)
    writer: str = Field(index=True)  # lower-cased writer address
    row: List[Any] = Field(sa_column=Column(JSON, nullable=False))
