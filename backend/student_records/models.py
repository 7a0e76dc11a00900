"""Stored document shapes for the ``students`` and ``courses`` collections.

Documents are plain dicts when they go to and come back from pymongo. The
pydantic models here describe what a freshly inserted document contains
and stamp the system-managed timestamps. `serialize_document` turns a
stored document into the JSON shape returned by the API.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Union

from bson import ObjectId
from pydantic import BaseModel, Field

STUDENT_COLLECTION = "students"
COURSE_COLLECTION = "courses"

Status = Literal["active", "inactive"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampedDocument(BaseModel):
    createdAt: datetime = Field(default_factory=utcnow)
    updatedAt: datetime = Field(default_factory=utcnow)


class StudentDocument(TimestampedDocument):
    """A student record.

    `course` holds a course identifier (or name) as free text; it is not
    checked against the ``courses`` collection.
    """
    name: str
    email: str
    course: str
    enrollmentDate: datetime
    status: Status = "active"


class CourseDocument(TimestampedDocument):
    """A course record; `name` is unique across the collection."""
    name: str
    description: str
    duration: Union[int, float]
    status: Status = "active"


def format_datetime(value: datetime) -> str:
    """Render as ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value


def serialize_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Return a JSON-safe copy of a stored document with `_id` as a string."""
    return _serialize_value(dict(doc))
