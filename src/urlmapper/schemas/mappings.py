from datetime import datetime

from pydantic import BaseModel, Field

from urlmapper.core.records import MappingRecord


class CreateMappingRequest(BaseModel):
    # deliberately not a URL type; any non-empty string is stored as given
    long_url: str = Field(min_length=1)


class MappingResponse(BaseModel):
    short_url: str
    long_url: str
    created_at: datetime
    access_count: int

    @classmethod
    def from_record(cls, record: MappingRecord) -> "MappingResponse":
        return cls(
            short_url=record.short_url,
            long_url=record.long_url,
            created_at=record.created_at,
            access_count=record.access_count,
        )


class HealthResponse(BaseModel):
    status: str
    store: bool
