"""Authentication helpers and FastAPI security dependency.

This module provides `decode_token`, which maps token failures to
HTTP 401 errors, and the `get_current_user` dependency that validates
the bearer token and returns the live `User` it belongs to. The user's
id is the actor recorded in the audit fields of every change.
"""

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from . import models, repositories
from .database import get_session, transaction
from .services import JWTService

bearer_scheme = HTTPBearer()


def decode_token(token: str, jwt_service: JWTService = None) -> int:
    """Verify a JWT token and return the `user_id` it carries.

    Raises an HTTPException with status 401 on failure.
    """
    jwt_service = jwt_service or JWTService()
    try:
        return jwt_service.validate_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail='token expired')
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail='invalid token')


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
    db: Session = Depends(get_session),
) -> models.User:
    """FastAPI dependency that returns the authenticated user.

    Tokens belonging to users that have since been soft-deleted are
    rejected.
    """
    user_id = decode_token(credentials.credentials)
    with transaction(db, read_only=True):
        user = repositories.UserRepository(db).get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=401, detail='user not found')
    return user
