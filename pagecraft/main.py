"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from pagecraft.api import router as api_router
from pagecraft.db.design_sessions import SessionStore


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the session store at startup and tear it down at shutdown."""
    store = SessionStore()
    app.state.session_store = store
    try:
        yield
    finally:
        store.close()


app = FastAPI(
    title="PageCraft Engine",
    description="LangGraph-based prompt-to-page design orchestration service",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])
