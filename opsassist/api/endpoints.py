"""API endpoints for the operations assistant."""

from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Query

from opsassist import __version__
from opsassist.clients.cli import CliError
from opsassist.config import get_settings
from opsassist.models.conversation import AskRequest, AskResponse, HealthResponse, SessionSummary, UsageResponse
from opsassist.models.llm import AskOptions
from opsassist.services.context_loader import ContextCache
from opsassist.services.conversation import ConversationService
from opsassist.services.llm import get_llm_service
from opsassist.services.rate_limit import UserRateLimiter
from opsassist.services.session_manager import InMemorySessionManager
from opsassist.services.user_config import load_user_config
from opsassist.utils.logging import audit_log, get_logger

logger = get_logger(__name__)

router = APIRouter()

settings = get_settings()
session_manager = InMemorySessionManager(session_timeout_minutes=settings.conversation_ttl_hours * 60)
rate_limiter = UserRateLimiter(settings.rate_limit)
context_cache = ContextCache()
conversation_service = ConversationService(get_llm_service(), max_message_chars=settings.max_message_chars)


def _load_context_content() -> str | None:
    try:
        loaded = context_cache.get(settings.context_dir)
    except (ValueError, OSError) as e:
        logger.error(f"Failed to load context directory {settings.context_dir}: {e}")
        return None
    if loaded is None or not loaded.combined:
        return None
    return loaded.combined


@router.post("/ask", response_model=AskResponse, tags=["Assistant"])
async def ask(request: AskRequest) -> AskResponse:
    """Answer a question about the host, using read-only diagnostic tools as needed."""
    if not rate_limiter.hit(request.user_id):
        wait_seconds = rate_limiter.seconds_until_reset(request.user_id)
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Please wait {wait_seconds} seconds before trying again.",
        )

    try:
        conversation_service.validate_message(request.message)
    except ValueError as e:
        logger.warning(f"Message validation error for user {request.user_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e

    if request.session_id:
        session = session_manager.get_session(request.session_id)
        if not session:
            logger.warning(f"Invalid session ID provided: {request.session_id}")
            raise HTTPException(status_code=400, detail=f"Invalid session ID: {request.session_id}")
        if session.user_id and session.user_id != request.user_id:
            logger.warning(f"User {request.user_id} tried to use session {request.session_id} of another user")
            raise HTTPException(status_code=403, detail="Session belongs to another user")
    else:
        session = session_manager.create_session(user_id=request.user_id)

    audit_log(request.user_id, session.session_id, request.message)

    user_config = load_user_config(settings, context_dir_content=_load_context_content())

    try:
        result = await conversation_service.process_message(
            request.message,
            session,
            user_config,
            AskOptions(images=request.images),
        )
    except CliError as e:
        logger.error(f"Model backend failed for session {session.session_id}: {e}")
        raise HTTPException(status_code=502, detail="The model backend failed. Please try again.") from e

    return AskResponse(
        response=result.response,
        session_id=session.session_id,
        tool_calls=result.tool_calls,
        usage=UsageResponse(input_tokens=result.usage.input_tokens, output_tokens=result.usage.output_tokens),
    )


@router.get("/sessions", response_model=list[SessionSummary], tags=["Assistant"])
async def list_sessions(
    user_id: str | None = None,
    limit: int = Query(default=20, ge=1, le=100),
) -> list[SessionSummary]:
    """List recent conversations, newest first."""
    return [SessionSummary(**s.as_dict()) for s in session_manager.list_sessions(user_id=user_id, limit=limit)]


@router.delete("/sessions/{session_id}", tags=["Assistant"])
async def delete_session(session_id: str) -> dict[str, str]:
    """Forget a conversation."""
    if not session_manager.delete_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return {"status": "deleted", "session_id": session_id}


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
