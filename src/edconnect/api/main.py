from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from edconnect import __version__
from edconnect.api.routes import (
    achievements,
    analytics,
    auth,
    classroom,
    homework,
    learning_paths,
    organization,
    tutor,
)
from edconnect.core.exceptions import (
    AuthorizationError,
    EdConnectException,
    NotFoundError,
    ValidationError,
)
from edconnect.core.services.logging import get_logging_service

app = FastAPI(title="EdConnect API", version=__version__)

app.include_router(auth.router)
app.include_router(tutor.router)
app.include_router(organization.router)
app.include_router(classroom.router)
app.include_router(achievements.router)
app.include_router(homework.router)
app.include_router(learning_paths.router)
app.include_router(analytics.router)


# Routes map the errors they expect; anything that escapes lands here.
_STATUS_BY_EXCEPTION = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
)


@app.exception_handler(EdConnectException)
async def edconnect_exception_handler(request: Request, exc: EdConnectException):
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    get_logging_service().log_error(
        type(exc).__name__, str(exc), path=request.url.path
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/api/status")
async def get_status():
    return {"status": "online", "version": __version__}
