"""FastAPI application entrypoint. No business logic; only wiring, middleware and error handlers."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import router as api_router
from app.core.config import settings
from app.core.exceptions import NotFoundError, PreconditionError, Unauthorized, ValidationError
from app.schemas.auth import ErrorResponse

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Warden API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(message=exc.message, errors=exc.errors).model_dump(),
    )


@app.exception_handler(Unauthorized)
async def handle_unauthorized(request: Request, exc: Unauthorized) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=ErrorResponse(message=exc.message).model_dump(exclude_none=True),
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(NotFoundError)
async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorResponse(message=exc.message).model_dump(exclude_none=True),
    )


@app.exception_handler(PreconditionError)
async def handle_precondition_error(request: Request, exc: PreconditionError) -> JSONResponse:
    logger.error("Precondition failed: %s", exc.message, extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(message=exc.message).model_dump(exclude_none=True),
    )


app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Warden API"}
