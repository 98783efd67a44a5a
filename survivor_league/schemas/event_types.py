from pydantic import BaseModel
from datetime import datetime


class EventTypeResponse(BaseModel):
    id: int
    name: str
    display_name: str
    category: str
    point_value: int
    description: str | None
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class EventTypeCatalogResponse(BaseModel):
    basic: list[EventTypeResponse]
    penalty: list[EventTypeResponse]
    bonus: list[EventTypeResponse]


class EventTypeUpdate(BaseModel):
    point_value: int | None = None
    is_active: bool | None = None
