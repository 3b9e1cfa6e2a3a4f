"""
Shared schema plumbing and the response envelope.

Every model speaks camelCase on the wire and accepts snake_case in Python.
Timestamps are stored as naive UTC and leave the API as ISO 8601 with a
trailing "Z", e.g. 2024-05-01T08:30:00.000Z.
"""
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive values; convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_utc(value: datetime) -> str:
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


UtcDatetime = Annotated[
    datetime,
    AfterValidator(as_utc),
    PlainSerializer(isoformat_utc, return_type=str, when_used="json"),
]


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def to_payload(value: Any) -> Any:
    """Convert models (or lists of models) into JSON-ready structures."""
    if isinstance(value, datetime):
        return isoformat_utc(value)
    if isinstance(value, CamelModel):
        return value.to_api()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items()}
    return value


def success(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """
    Build the {success: true, data: ...} envelope.

    Extra keyword arguments (e.g. cached=True) are added at top level.
    """
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = to_payload(data)
    if message is not None:
        body["message"] = message
    body.update(extra)
    return body
