"""Repository classes encapsulating database operations.

Each repository is small and focused on a single table (users,
projects, lists, cards). Repositories return SQLModel objects, only
ever see live rows (`deleted_at IS NULL`) and never commit: the
calling service owns the transaction.
"""

from typing import Iterable, List, Optional

from sqlmodel import Session, col, select

from . import models


class _AuditedRepository:
    """Shared soft-delete plumbing for tables embedding `AuditFields`."""
    model = None
    updatable: tuple = ()

    def __init__(self, session: Session):
        self.session = session

    def _live(self):
        return select(self.model).where(col(self.model.deleted_at).is_(None))

    def create(self, row, actor_id: int):
        """Insert `row` stamped with `actor_id` and return it with its new id."""
        now = models.utc_now()
        row.created_at = now
        row.updated_at = now
        row.created_by = actor_id
        row.updated_by = actor_id
        row.deleted_at = None
        self.session.add(row)
        self.session.flush()
        return row

    def get_by_id(self, row_id: int):
        """Return the live row with primary key `row_id` or `None`."""
        stmt = self._live().where(self.model.id == row_id)
        return self.session.exec(stmt).first()

    def update(self, row_id: int, changes: dict, actor_id: int):
        """Apply `changes` to a live row.

        Only the columns listed in `updatable` are touched. Returns the
        updated row, or `None` when no live row matched.
        """
        row = self.get_by_id(row_id)
        if row is None:
            return None
        for key, value in changes.items():
            if key in self.updatable:
                setattr(row, key, value)
        row.updated_at = models.utc_now()
        row.updated_by = actor_id
        self.session.add(row)
        self.session.flush()
        return row

    def delete(self, row_id: int, actor_id: int):
        """Soft-delete a live row; returns it, or `None` when nothing matched."""
        row = self.get_by_id(row_id)
        if row is None:
            return None
        self._mark_deleted([row], actor_id)
        return row

    def _mark_deleted(self, rows: Iterable, actor_id: int) -> list:
        now = models.utc_now()
        marked = []
        for row in rows:
            row.deleted_at = now
            row.updated_at = now
            row.updated_by = actor_id
            self.session.add(row)
            marked.append(row)
        self.session.flush()
        return marked


class UserRepository(_AuditedRepository):
    """CRUD operations for `User` objects."""
    model = models.User
    updatable = ("name", "email")

    def create_self_registered(self, user: models.User) -> models.User:
        """Insert a user who is their own creator.

        The row is flushed first to obtain its id, which is then stamped
        into `created_by`/`updated_by`.
        """
        self.create(user, actor_id=0)
        user.created_by = user.id
        user.updated_by = user.id
        self.session.add(user)
        self.session.flush()
        return user

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return the live `User` with `email` or `None` if not found."""
        stmt = self._live().where(models.User.email == email)
        return self.session.exec(stmt).first()

    def get_all(self) -> List[models.User]:
        return list(self.session.exec(self._live().order_by(models.User.id)).all())


class ProjectRepository(_AuditedRepository):
    """CRUD operations for `Project` objects."""
    model = models.Project
    updatable = ("name", "description")

    def get_all(self) -> List[models.Project]:
        return list(self.session.exec(self._live().order_by(models.Project.id)).all())


class ListRepository(_AuditedRepository):
    """CRUD operations for `TaskList` objects."""
    model = models.TaskList
    updatable = ("name", "position")

    def get_by_project_id(self, project_id: int) -> List[models.TaskList]:
        """Return the live lists of a project ordered by position."""
        stmt = (
            self._live()
            .where(models.TaskList.project_id == project_id)
            .order_by(models.TaskList.position, models.TaskList.id)
        )
        return list(self.session.exec(stmt).all())

    def delete_by_project_id(self, project_id: int, actor_id: int) -> List[models.TaskList]:
        """Soft-delete every live list of a project and return them."""
        return self._mark_deleted(self.get_by_project_id(project_id), actor_id)


class CardRepository(_AuditedRepository):
    """CRUD operations for `Card` objects."""
    model = models.Card
    updatable = ("title", "content", "position")

    def get_by_list_id(self, list_id: int) -> List[models.Card]:
        """Return the live cards of a list ordered by position."""
        stmt = (
            self._live()
            .where(models.Card.list_id == list_id)
            .order_by(models.Card.position, models.Card.id)
        )
        return list(self.session.exec(stmt).all())

    def delete_by_list_ids(self, list_ids: List[int], actor_id: int) -> List[models.Card]:
        """Soft-delete every live card belonging to any of `list_ids`."""
        if not list_ids:
            return []
        stmt = self._live().where(col(models.Card.list_id).in_(list_ids))
        return self._mark_deleted(self.session.exec(stmt).all(), actor_id)
