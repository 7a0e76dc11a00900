"""Pydantic request schemas used by the API.

Each write route has its own payload model. Unknown fields are rejected
so a typo in a field name surfaces as a 400 instead of being stored.
Update payloads accept any subset of fields but refuse explicit ``null``
for fields the stored document requires.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, field_validator

from .models import Status


class StudentCreate(BaseModel):
    """Payload for ``POST /api/students``."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    course: str = Field(..., min_length=1)
    enrollmentDate: datetime
    status: Status = "active"


class StudentUpdate(BaseModel):
    """Partial payload for ``PUT /api/students/{id}``."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=1)
    course: Optional[str] = Field(None, min_length=1)
    enrollmentDate: Optional[datetime] = None
    status: Optional[Status] = None

    @field_validator("name", "email", "course", "enrollmentDate", "status")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class CourseCreate(BaseModel):
    """Payload for ``POST /api/courses``."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    duration: Union[int, FiniteFloat]
    status: Status = "active"


class CourseUpdate(BaseModel):
    """Partial payload for ``PUT /api/courses/{id}``."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    duration: Optional[Union[int, FiniteFloat]] = None
    status: Optional[Status] = None

    @field_validator("name", "description", "duration", "status")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value
