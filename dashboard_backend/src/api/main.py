import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import DashboardError, InvalidInput, NotSignedIn, UnknownRecord, WriteFailed
from .routers import drag as drag_router
from .routers import events as events_router
from .routers import goals as goals_router
from .routers import session as session_router
from .settings import get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "goals", "description": "Goal tracking: create, edit, delete, progress and completion."},
    {"name": "events", "description": "Calendar events and to-do items sharing one record set."},
    {"name": "drag", "description": "Drag-and-drop between the calendar grid and the to-do list."},
    {"name": "session", "description": "Per-user session state: dialog selection and pending error."},
]

_settings = get_settings()

logging.basicConfig(
    level=getattr(logging, _settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Dashboard Backend",
    description="Goals and calendar/to-do synchronization over a per-user record store.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STATUS_BY_ERROR = {
    InvalidInput: 422,
    NotSignedIn: 401,
    UnknownRecord: 404,
    WriteFailed: 502,
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(DashboardError)
async def dashboard_exception_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """
    Render core errors as {"error": <kind>, "message": <user-facing text>}.

    Write failures map to 502, unknown records to 404, missing identity to 401
    and rejected input to 422.
    """
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    if status_code == 500:
        logger.error("Unhandled dashboard error on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message},
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


app.include_router(goals_router.router)
app.include_router(events_router.router)
app.include_router(drag_router.router)
app.include_router(session_router.router)
