"""
API Schemas
Pydantic models shared by the routers. Field names are snake_case in Python
and camelCase on the wire.
"""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def to_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored naive in UTC; convert offset-aware input"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


NaiveDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]


class CamelModel(BaseModel):
    """Base schema: accepts camelCase or snake_case, serializes camelCase"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str


__all__ = ["CamelModel", "MessageResponse", "NaiveDatetime", "to_naive_utc"]
