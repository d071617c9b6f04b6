"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. Response models never expose
`password_hash`. Update payloads are partial: unset fields are left
unchanged.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ids and positions are stored as signed 64-bit integers
MAX_DB_INT = 2**63 - 1
MIN_DB_INT = -(2**63)


class AuditOut(BaseModel):
    """Audit block shared by every response."""
    model_config = ConfigDict(from_attributes=True)

    created_at: datetime
    created_by: int
    updated_at: datetime
    updated_by: int
    deleted_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", "deleted_at")
    @classmethod
    def assume_utc(cls, v):
        # timestamps are written as UTC; SQLite hands them back naive
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class RegisterIn(BaseModel):
    """Payload for self-registration."""
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    """Authentication response containing an access token."""
    access_token: str


class UserIn(BaseModel):
    """Payload for creating a user on behalf of someone else."""
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    password: Optional[str] = None


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=1)


class UserOut(AuditOut):
    id: int
    name: str
    email: str


class RegisterOut(BaseModel):
    user: UserOut
    access_token: str


class ProjectIn(BaseModel):
    """Payload for creating a project.

    When `default_list_name` is given a first list is created at
    position 1 in the same transaction.
    """
    name: str = Field(min_length=1)
    description: str = ""
    default_list_name: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class ProjectOut(AuditOut):
    id: int
    name: str
    description: str


class ListIn(BaseModel):
    project_id: int = Field(ge=1, le=MAX_DB_INT)
    name: str = Field(min_length=1)
    position: int = Field(default=0, ge=MIN_DB_INT, le=MAX_DB_INT)


class ListUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    position: Optional[int] = Field(default=None, ge=MIN_DB_INT, le=MAX_DB_INT)


class ListOut(AuditOut):
    id: int
    project_id: int
    name: str
    position: int


class CardIn(BaseModel):
    list_id: int = Field(ge=1, le=MAX_DB_INT)
    title: str = Field(min_length=1)
    content: str = ""
    position: int = Field(default=0, ge=MIN_DB_INT, le=MAX_DB_INT)


class CardUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=MIN_DB_INT, le=MAX_DB_INT)


class CardOut(AuditOut):
    id: int
    list_id: int
    title: str
    content: str
    position: int


def changes_of(payload: BaseModel) -> dict:
    """Return only the fields a client actually sent, dropping nulls."""
    return payload.model_dump(exclude_unset=True, exclude_none=True)
