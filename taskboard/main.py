from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from taskboard.core.database import engine, Base
from taskboard.core.exceptions import BoardError
from taskboard.core.logger import setup_logging
# models must be registered before create_all
from taskboard.models import user, project, column, task, label, image, comment  # noqa: F401
from taskboard.routers import health, auth, projects, board, users

setup_logging()
logger = logging.getLogger(__name__)

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="TaskBoard API",
    version="1.0.0"
)


@app.exception_handler(BoardError)
async def board_error_handler(request: Request, exc: BoardError):
    # NotFound -> 404, Denied -> 403, Validation -> 400, Conflict -> 409, Insights -> 503
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"detail": exc.message, "error": exc.code}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return JSONResponse(status_code=exc.status_code, content=body)


# Routes
app.include_router(health.router, prefix="/health")
app.include_router(auth.router)
app.include_router(projects.router)
app.include_router(board.router)
app.include_router(users.router)
