import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from sqlalchemy.exc import SQLAlchemyError

from app.shared.config import settings
from app.shared.db import Base, engine
from app.shared.errors import AppError
from app.shared.http import err

# import models so they register with Base.metadata
from app.auth import models as auth_models  # noqa: F401
from app.notes import models as notes_models  # noqa: F401
from app.tasks import models as tasks_models  # noqa: F401

# Routers Import
from app.auth.api import router as users_router
from app.notes.api import router as notes_router
from app.tasks.api import router as tasks_router
from app.summaries.api import router as ai_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger(__name__)

TAGS_METADATA = [
    {"name": "Users", "description": "Register, login, refresh-token rotation, logout"},
    {"name": "Notes", "description": "Create, list, edit, delete notes"},
    {"name": "Tasks", "description": "Tasks and their subtasks"},
    {"name": "AI", "description": "Cached AI summaries for notes and tasks"},
    {"name": "Health", "description": "Service health"},
]

app = FastAPI(
    title="Notes & Tasks API",
    version="0.1.0",
    description="Notes and tasks with cached AI summaries behind cookie sessions.",
    openapi_tags=TAGS_METADATA,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGIN.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)

# ---- error envelope ----
@app.exception_handler(AppError)
async def _app_error_handler(request: Request, exc: AppError):
    if exc.internal:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.code, exc.message)
    return err(exc.client_message, code=exc.code, status=exc.status, details=None if exc.internal else exc.details)

@app.exception_handler(RequestValidationError)
async def _validation_handler(request: Request, exc: RequestValidationError):
    details = [{"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in exc.errors()]
    return err("Invalid request", code="invalid_input", status=422, details=details)

@app.exception_handler(SQLAlchemyError)
async def _db_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("storage error on %s %s", request.method, request.url.path)
    return err("Internal server error", code="internal_error", status=500)

# ---- DEV-ONLY detail on unexpected errors ----
@app.exception_handler(Exception)
async def _unhandled_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    details = str(exc) if settings.ENV == "dev" else None
    return err("Internal server error", code="internal_error", status=500, details=details)
# ----------------------------------------------------------------------


@app.on_event("startup")
def _init_db():
    Base.metadata.create_all(bind=engine)

@app.get("/healthz", tags=["Health"])
def healthz():
    return {"ok": True}

@app.get(f"{settings.API_PREFIX}/ping", tags=["Health"])
def ping():
    return {"ok": True, "message": "Pong! Server is running"}

# Routers
app.include_router(users_router, prefix=settings.API_PREFIX)
app.include_router(notes_router, prefix=settings.API_PREFIX)
app.include_router(tasks_router, prefix=settings.API_PREFIX)
app.include_router(ai_router, prefix=settings.API_PREFIX)

# --- Custom OpenAPI: add bearerAuth to everything except the public routes ---
PUBLIC_PATHS = {
    "/healthz",
    f"{settings.API_PREFIX}/ping",
    f"{settings.API_PREFIX}/users/register",
    f"{settings.API_PREFIX}/users/login",
    f"{settings.API_PREFIX}/users/refresh-token",
}

def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    schema.setdefault("components", {}).setdefault("securitySchemes", {})
    schema["components"]["securitySchemes"]["bearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }
    for path, ops in schema.get("paths", {}).items():
        if path in PUBLIC_PATHS:
            continue
        for op in ops.values():
            op.setdefault("security", [{"bearerAuth": []}])
    app.openapi_schema = schema
    return app.openapi_schema

app.openapi = custom_openapi
