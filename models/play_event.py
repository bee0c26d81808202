from sqlmodel import SQLModel, Field


class PlayEvent(SQLModel):
    id: int
    timestamp: int  # milliseconds
    token_id: int
    listener: str
    duration: int  # seconds
    source: str = ""


class PlayEventCreate(SQLModel):
    token_id: int
    listener: str
    duration: int = Field(ge=0)
    source: str = "app"
    publisher: str | None = None  # writer identity, defaults to listener


class TrendingEntry(SQLModel):
    token_id: int
    score: float
    plays: int
    unique_listeners: int


class PlayRecordResult(SQLModel):
    recorded: bool
    event_id: int | None = None
    message: str
