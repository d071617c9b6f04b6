"""Business logic services used by HTTP controllers.

Each service method is one usecase: it opens a transaction on the
session, coordinates one or more repository calls and commits, or rolls
back when anything raises. Reads run in a read-only transaction. Missing
or soft-deleted rows surface as `NotFoundError`.
"""

import logging
from contextlib import contextmanager
from datetime import timedelta
from typing import List, Optional, Tuple

import jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from . import models, repositories
from .config import settings
from .database import transaction
from .errors import ConflictError, NotFoundError

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

logger = logging.getLogger("taskboard.services")


@contextmanager
def _unique_email(email: str):
    """Turn a violation of the live-email index into `ConflictError`.

    The lookup before each write only reports the common case; two
    concurrent writers can both pass it and the index decides.
    """
    try:
        yield
    except IntegrityError as exc:
        raise ConflictError(f"email already registered: {email}") from exc


class JWTService:
    """Issue and validate HS256 access tokens carrying a `user_id` claim."""

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        expiration_seconds: Optional[int] = None,
    ):
        self.secret = secret or settings.JWT_SECRET
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.expiration_seconds = expiration_seconds or settings.JWT_EXPIRATION_SECONDS

    def generate_token(self, user_id: int, email: str) -> str:
        """Return a signed token expiring `expiration_seconds` from now."""
        now = models.utc_now()
        payload = {
            "user_id": user_id,
            "email": email,
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.expiration_seconds)).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def validate_token(self, token: str) -> int:
        """Verify `token` and return its `user_id`.

        Raises `jwt.ExpiredSignatureError` for expired tokens and
        `jwt.InvalidTokenError` for anything else that fails.
        """
        payload = jwt.decode(
            token, self.secret, algorithms=[self.algorithm], options={"require": ["exp"]}
        )
        user_id = payload.get("user_id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise jwt.InvalidTokenError("user_id not found in token")
        return user_id


class AuthService:
    """Authentication related operations (register + authenticate)."""
    def __init__(self, session: Session, jwt_service: Optional[JWTService] = None):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.jwt_service = jwt_service or JWTService()

    def register(self, name: str, email: str, password: str) -> Tuple[models.User, str]:
        """Create a self-registered user and return it with an access token.

        Raises `ConflictError` when a live user already holds `email`.
        """
        with transaction(self.session):
            if self.user_repo.get_by_email(email):
                raise ConflictError(f"email already registered: {email}")
            user = models.User(name=name, email=email, password_hash=PWD_CTX.hash(password))
            with _unique_email(email):
                self.user_repo.create_self_registered(user)
        logger.info("user_registered id=%s", user.id)
        return user, self.jwt_service.generate_token(user.id, user.email)

    def authenticate(self, email: str, password: str) -> Optional[str]:
        """Verify credentials and return a signed JWT token on success.

        Returns `None` if authentication fails.
        """
        with transaction(self.session, read_only=True):
            user = self.user_repo.get_by_email(email)
        if not user or not user.password_hash:
            return None
        if not PWD_CTX.verify(password, user.password_hash):
            return None
        return self.jwt_service.generate_token(user.id, user.email)


class UserService:
    """Transactional CRUD for users."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def create_user(self, name: str, email: str, password: Optional[str], actor_id: int) -> models.User:
        with transaction(self.session):
            if self.user_repo.get_by_email(email):
                raise ConflictError(f"email already registered: {email}")
            password_hash = PWD_CTX.hash(password) if password else None
            user = models.User(name=name, email=email, password_hash=password_hash)
            with _unique_email(email):
                self.user_repo.create(user, actor_id)
        logger.info("user_created id=%s by=%s", user.id, actor_id)
        return user

    def get_user(self, user_id: int) -> models.User:
        with transaction(self.session, read_only=True):
            user = self.user_repo.get_by_id(user_id)
            if user is None:
                raise NotFoundError("user", user_id)
        return user

    def list_users(self) -> List[models.User]:
        with transaction(self.session, read_only=True):
            return self.user_repo.get_all()

    def update_user(self, user_id: int, changes: dict, actor_id: int) -> models.User:
        """Update name/email of a live user.

        A new email must not belong to another live user.
        """
        with transaction(self.session):
            if self.user_repo.get_by_id(user_id) is None:
                raise NotFoundError("user", user_id)
            email = changes.get("email")
            if email is not None:
                holder = self.user_repo.get_by_email(email)
                if holder is not None and holder.id != user_id:
                    raise ConflictError(f"email already registered: {email}")
            with _unique_email(email):
                user = self.user_repo.update(user_id, changes, actor_id)
        return user

    def delete_user(self, user_id: int, actor_id: int) -> None:
        with transaction(self.session):
            if self.user_repo.delete(user_id, actor_id) is None:
                raise NotFoundError("user", user_id)
        logger.info("user_deleted id=%s by=%s", user_id, actor_id)


class ProjectService:
    """Transactional CRUD for projects, cascading soft deletes to lists and cards."""
    def __init__(self, session: Session):
        self.session = session
        self.project_repo = repositories.ProjectRepository(session)
        self.list_repo = repositories.ListRepository(session)
        self.card_repo = repositories.CardRepository(session)

    def create_project(
        self,
        name: str,
        description: str,
        actor_id: int,
        default_list_name: Optional[str] = None,
    ) -> models.Project:
        """Create a project, optionally with a first list at position 1.

        Both inserts share one transaction: if the list cannot be created
        the project is rolled back too.
        """
        with transaction(self.session):
            project = self.project_repo.create(
                models.Project(name=name, description=description), actor_id
            )
            if default_list_name:
                self.list_repo.create(
                    models.TaskList(project_id=project.id, name=default_list_name, position=1),
                    actor_id,
                )
        logger.info("project_created id=%s by=%s", project.id, actor_id)
        return project

    def get_project(self, project_id: int) -> models.Project:
        with transaction(self.session, read_only=True):
            project = self.project_repo.get_by_id(project_id)
            if project is None:
                raise NotFoundError("project", project_id)
        return project

    def list_projects(self) -> List[models.Project]:
        with transaction(self.session, read_only=True):
            return self.project_repo.get_all()

    def update_project(self, project_id: int, changes: dict, actor_id: int) -> models.Project:
        with transaction(self.session):
            project = self.project_repo.update(project_id, changes, actor_id)
            if project is None:
                raise NotFoundError("project", project_id)
        return project

    def delete_project(self, project_id: int, actor_id: int) -> None:
        """Soft-delete a project together with its live lists and their cards."""
        with transaction(self.session):
            if self.project_repo.delete(project_id, actor_id) is None:
                raise NotFoundError("project", project_id)
            lists = self.list_repo.delete_by_project_id(project_id, actor_id)
            cards = self.card_repo.delete_by_list_ids([lst.id for lst in lists], actor_id)
        logger.info(
            "project_deleted id=%s by=%s lists=%d cards=%d", project_id, actor_id, len(lists), len(cards)
        )


class ListService:
    """Transactional CRUD for lists."""
    def __init__(self, session: Session):
        self.session = session
        self.project_repo = repositories.ProjectRepository(session)
        self.list_repo = repositories.ListRepository(session)
        self.card_repo = repositories.CardRepository(session)

    def create_list(self, project_id: int, name: str, position: int, actor_id: int) -> models.TaskList:
        with transaction(self.session):
            if self.project_repo.get_by_id(project_id) is None:
                raise NotFoundError("project", project_id)
            task_list = self.list_repo.create(
                models.TaskList(project_id=project_id, name=name, position=position), actor_id
            )
        logger.info("list_created id=%s project=%s by=%s", task_list.id, project_id, actor_id)
        return task_list

    def get_lists_by_project(self, project_id: int) -> List[models.TaskList]:
        with transaction(self.session, read_only=True):
            if self.project_repo.get_by_id(project_id) is None:
                raise NotFoundError("project", project_id)
            return self.list_repo.get_by_project_id(project_id)

    def get_list(self, list_id: int) -> models.TaskList:
        with transaction(self.session, read_only=True):
            task_list = self.list_repo.get_by_id(list_id)
            if task_list is None:
                raise NotFoundError("list", list_id)
        return task_list

    def update_list(self, list_id: int, changes: dict, actor_id: int) -> models.TaskList:
        with transaction(self.session):
            task_list = self.list_repo.update(list_id, changes, actor_id)
            if task_list is None:
                raise NotFoundError("list", list_id)
        return task_list

    def delete_list(self, list_id: int, actor_id: int) -> None:
        """Soft-delete a list and its live cards."""
        with transaction(self.session):
            if self.list_repo.delete(list_id, actor_id) is None:
                raise NotFoundError("list", list_id)
            cards = self.card_repo.delete_by_list_ids([list_id], actor_id)
        logger.info("list_deleted id=%s by=%s cards=%d", list_id, actor_id, len(cards))


class CardService:
    """Transactional CRUD for cards."""
    def __init__(self, session: Session):
        self.session = session
        self.list_repo = repositories.ListRepository(session)
        self.card_repo = repositories.CardRepository(session)

    def create_card(
        self, list_id: int, title: str, content: str, position: int, actor_id: int
    ) -> models.Card:
        with transaction(self.session):
            if self.list_repo.get_by_id(list_id) is None:
                raise NotFoundError("list", list_id)
            card = self.card_repo.create(
                models.Card(list_id=list_id, title=title, content=content, position=position),
                actor_id,
            )
        logger.info("card_created id=%s list=%s by=%s", card.id, list_id, actor_id)
        return card

    def get_cards_by_list(self, list_id: int) -> List[models.Card]:
        with transaction(self.session, read_only=True):
            if self.list_repo.get_by_id(list_id) is None:
                raise NotFoundError("list", list_id)
            return self.card_repo.get_by_list_id(list_id)

    def get_card(self, card_id: int) -> models.Card:
        with transaction(self.session, read_only=True):
            card = self.card_repo.get_by_id(card_id)
            if card is None:
                raise NotFoundError("card", card_id)
        return card

    def update_card(self, card_id: int, changes: dict, actor_id: int) -> models.Card:
        with transaction(self.session):
            card = self.card_repo.update(card_id, changes, actor_id)
            if card is None:
                raise NotFoundError("card", card_id)
        return card

    def delete_card(self, card_id: int, actor_id: int) -> None:
        with transaction(self.session):
            if self.card_repo.delete(card_id, actor_id) is None:
                raise NotFoundError("card", card_id)
        logger.info("card_deleted id=%s by=%s", card_id, actor_id)
