"""Feeding schedule Pydantic schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ScheduleRecord(BaseModel):
    """Per-account feeding preferences. At most one per account."""

    account_id: str
    portion: float = 0
    schedule: dict[str, Any] = Field(default_factory=dict)
    unique_date_times: list[str] = Field(default_factory=list)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class PortionUpdate(BaseModel):
    """Body of PUT /api/portion/{account_id}."""

    portion: float = Field(..., ge=0)


class PortionScheduleUpdate(BaseModel):
    """Body of PUT /api/PortionSchedule/{account_id}."""

    schedule: dict[str, Any]
    portion: float = Field(..., ge=0)
