from pydantic import BaseModel


class BasicResponse(BaseModel):
    message: str


class RecordWriteResponse(BasicResponse):
    record_id: int
    schema_id: str
    writer: str


class AddressListResponse(BaseModel):
    address: str
    count: int
    addresses: list[str]
