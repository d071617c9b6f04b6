"""FastAPI application entrypoint and HTTP controllers.

Controllers are intentionally thin: they validate the request body,
delegate to a service (one transaction per call) and return the
resulting rows. Every route except registration, login and health
requires a bearer token; the authenticated user is the actor stamped
into the audit fields.

Endpoints implemented:
- POST /auth/register, POST /auth/login
- /users, /projects, /lists, /cards: create, list/read, update, soft delete
- GET /lists/project/{project_id}
- GET /cards/list/{list_id}
- GET /health
"""

import json
import logging
import time
import uuid
from typing import Annotated, List

from fastapi import Depends, FastAPI, HTTPException, Path, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlmodel import Session

from . import models, services
from .auth import get_current_user
from .config import settings
from .database import create_db_and_tables, get_session, wait_for_database
from .errors import ConflictError, NotFoundError
from .schemas import (
    CardIn, CardOut, CardUpdate, ListIn, ListOut, ListUpdate, LoginIn,
    ProjectIn, ProjectOut, ProjectUpdate, RegisterIn, RegisterOut, TokenOut,
    UserIn, UserOut, UserUpdate, MAX_DB_INT, changes_of,
)

app = FastAPI(title=settings.APP_NAME)
RowId = Annotated[int, Path(ge=1, le=MAX_DB_INT)]
logger = logging.getLogger("taskboard.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

wait_for_database()
create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    context = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        "client": request.client.host if request.client else "unknown",
    }
    try:
        response = await call_next(request)
    except Exception:
        context["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception("request_failed %s", json.dumps(context, ensure_ascii=True))
        raise
    response.headers["X-Request-ID"] = req_id
    context["status_code"] = response.status_code
    context["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info("request_done %s", json.dumps(context, ensure_ascii=True))
    return response


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}


# --- auth ---

@app.post('/auth/register', response_model=RegisterOut, status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_session)):
    """Register a new user and return it together with an access token.

    Returns 409 when a live user already uses the email.
    """
    user, token = services.AuthService(db).register(payload.name, payload.email, payload.password)
    return {'user': user, 'access_token': token}


@app.post('/auth/login', response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_session)):
    """Authenticate a user and return a signed JWT token.

    The token carries `user_id` and expires after
    `JWT_EXPIRATION_SECONDS`.
    """
    token = services.AuthService(db).authenticate(payload.email, payload.password)
    if not token:
        raise HTTPException(status_code=401, detail='invalid credentials')
    return {'access_token': token}


# --- users ---

@app.post('/users', response_model=UserOut, status_code=201)
def create_user(payload: UserIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.UserService(db).create_user(payload.name, payload.email, payload.password, user.id)


@app.get('/users', response_model=List[UserOut])
def list_users(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.UserService(db).list_users()


@app.get('/users/{user_id}', response_model=UserOut)
def get_user(user_id: RowId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.UserService(db).get_user(user_id)


@app.put('/users/{user_id}', response_model=UserOut)
def update_user(user_id: RowId, payload: UserUpdate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.UserService(db).update_user(user_id, changes_of(payload), user.id)


@app.delete('/users/{user_id}', status_code=204)
def delete_user(user_id: RowId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.UserService(db).delete_user(user_id, user.id)
    return Response(status_code=204)


# --- projects ---

@app.post('/projects', response_model=ProjectOut, status_code=201)
def create_project(payload: ProjectIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Create a project; `default_list_name` also creates its first list."""
    return services.ProjectService(db).create_project(
        payload.name, payload.description, user.id, default_list_name=payload.default_list_name
    )


@app.get('/projects', response_model=List[ProjectOut])
def list_projects(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.ProjectService(db).list_projects()


@app.get('/projects/{project_id}', response_model=ProjectOut)
def get_project(project_id: RowId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.ProjectService(db).get_project(project_id)


@app.put('/projects/{project_id}', response_model=ProjectOut)
def update_project(project_id: RowId, payload: ProjectUpdate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.ProjectService(db).update_project(project_id, changes_of(payload), user.id)


@app.delete('/projects/{project_id}', status_code=204)
def delete_project(project_id: RowId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Soft-delete a project along with its lists and cards."""
    services.ProjectService(db).delete_project(project_id, user.id)
    return Response(status_code=204)


# --- lists ---

@app.post('/lists', response_model=ListOut, status_code=201)
def create_list(payload: ListIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.ListService(db).create_list(payload.project_id, payload.name, payload.position, user.id)


@app.get('/lists/project/{project_id}', response_model=List[ListOut])
def get_lists_by_project(project_id: RowId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Return the live lists of a live project ordered by position."""
    return services.ListService(db).get_lists_by_project(project_id)


@app.get('/lists/{list_id}', response_model=ListOut)
def get_list(list_id: RowId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.ListService(db).get_list(list_id)


@app.put('/lists/{list_id}', response_model=ListOut)
def update_list(list_id: RowId, payload: ListUpdate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.ListService(db).update_list(list_id, changes_of(payload), user.id)


@app.delete('/lists/{list_id}', status_code=204)
def delete_list(list_id: RowId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.ListService(db).delete_list(list_id, user.id)
    return Response(status_code=204)


# --- cards ---

@app.post('/cards', response_model=CardOut, status_code=201)
def create_card(payload: CardIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.CardService(db).create_card(
        payload.list_id, payload.title, payload.content, payload.position, user.id
    )


@app.get('/cards/list/{list_id}', response_model=List[CardOut])
def get_cards_by_list(list_id: RowId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Return the live cards of a live list ordered by position."""
    return services.CardService(db).get_cards_by_list(list_id)


@app.get('/cards/{card_id}', response_model=CardOut)
def get_card(card_id: RowId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.CardService(db).get_card(card_id)


@app.put('/cards/{card_id}', response_model=CardOut)
def update_card(card_id: RowId, payload: CardUpdate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.CardService(db).update_card(card_id, changes_of(payload), user.id)


@app.delete('/cards/{card_id}', status_code=204)
def delete_card(card_id: RowId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.CardService(db).delete_card(card_id, user.id)
    return Response(status_code=204)


def run():
    """Serve the application with uvicorn on `settings.PORT`."""
    import uvicorn

    uvicorn.run("taskboard.main:app", host="0.0.0.0", port=settings.PORT)
