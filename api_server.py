from __future__ import annotations  # FastAPI server exposing the voice-to-feedback workflow

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import get_notifier, router
from config.settings import settings
from domain.errors import FeedbackError, ProviderQuotaError
from storage.migrate import migrate


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # Ensure schema exists before serving; stop the notifier pool on exit
    migrate(settings.DB_PATH)
    yield
    if get_notifier.cache_info().currsize:
        notifier = get_notifier()
        if notifier is not None:
            notifier.shutdown(wait=False)
        get_notifier.cache_clear()


app = FastAPI(title="Voice Feedback API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.include_router(router)


@app.exception_handler(FeedbackError)
async def _feedback_error(request: Request, exc: FeedbackError) -> JSONResponse:  # Map typed errors to HTTP status codes
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body = {"error": type(exc).__name__, "detail": str(exc)}
    if isinstance(exc, ProviderQuotaError):
        body["reason"] = exc.reason
    return JSONResponse(status_code=exc.status_code, content=body)


__all__ = ["app"]
