"""API routes for prompt-driven page design sessions."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from pagecraft.core.errors import SessionNotFoundError
from pagecraft.core.logging import get_logger
from pagecraft.core.schemas_design import (
    GenerateRequest,
    PromptResult,
    ResetRequest,
    ResetResponse,
    ScreenResponse,
    SessionView,
)
from pagecraft.db.design_sessions import SessionStore
from pagecraft.graphs.design_prompt_graph import (
    handle_prompt,
    render_screen_html,
    reset_design_session,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/design", tags=["design"])


def get_session_store(request: Request) -> SessionStore:
    """The process-wide session store created at startup."""
    return request.app.state.session_store


@router.post("/generate", response_model=PromptResult)
async def generate_endpoint(
    request: GenerateRequest,
    store: SessionStore = Depends(get_session_store),
) -> PromptResult:
    """Run the design agent on a prompt."""
    prompt = request.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")

    try:
        return await handle_prompt(store, prompt, request.session_id)
    except Exception:
        logger.exception("Failed to handle design prompt")
        raise HTTPException(status_code=500, detail="Failed to handle prompt")


@router.post("/reset", response_model=ResetResponse)
async def reset_endpoint(
    request: ResetRequest,
    store: SessionStore = Depends(get_session_store),
) -> ResetResponse:
    """Clear all state of a session, keeping its ID."""
    try:
        store.get_session(request.session_id)
        async with store.session_lock(request.session_id):
            session = reset_design_session(store, request.session_id)
        return ResetResponse(success=True, session=session)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/sessions/{session_id}", response_model=SessionView)
async def get_session_endpoint(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> SessionView:
    """Get the client view of a session."""
    try:
        return store.serialize_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/screen", response_model=ScreenResponse)
async def get_screen_endpoint(
    session_id: str = Query(..., description="Session to render"),
    store: SessionStore = Depends(get_session_store),
) -> ScreenResponse:
    """Get the composed screen HTML (components concatenated in order)."""
    try:
        return ScreenResponse(html=render_screen_html(store, session_id))
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
