"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Every table embeds the same audit block through `AuditFields`; a row is
live while `deleted_at` is null and rows are never physically removed.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, text
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditFields(SQLModel):
    """Audit columns shared by every table.

    `created_by` and `updated_by` hold the id of the acting user.
    """
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), nullable=False)
    created_by: int = Field(default=0, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), nullable=False)
    updated_by: int = Field(default=0, nullable=False)
    deleted_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True), index=True)


class User(AuditFields, table=True):
    """A registered user.

    Fields:
    - `email`: login name, unique among live users
      (enforced by the partial index `ux_users_live_email`)
    - `password_hash`: hashed password string, `None` for users created
      without a password (they cannot log in)
    """
    __tablename__ = "users"
    __table_args__ = (
        Index(
            "ux_users_live_email",
            "email",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False)
    email: str = Field(index=True, nullable=False)
    password_hash: Optional[str] = None


class Project(AuditFields, table=True):
    """A project grouping ordered lists."""
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False)
    description: str = ""


class TaskList(AuditFields, table=True):
    """A column of cards inside a `Project`, ordered by `position`."""
    __tablename__ = "lists"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    name: str = Field(nullable=False)
    position: int = 0


class Card(AuditFields, table=True):
    """A single card inside a `TaskList`."""
    __tablename__ = "cards"

    id: Optional[int] = Field(default=None, primary_key=True)
    list_id: int = Field(foreign_key="lists.id", index=True)
    title: str = Field(nullable=False)
    content: str = ""
    position: int = 0
