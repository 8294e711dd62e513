"""FastAPI interface for suggestion moderation and generation control."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from neuroblog import __version__
from neuroblog.core.errors import (
    Forbidden,
    NotFound,
    PersistenceError,
    StateConflict,
    UpstreamUnavailable,
)
from neuroblog.core.lifecycle import SuggestionLifecycleManager
from neuroblog.models.content import Caller, GenerationMode
from neuroblog.models.settings import Settings

logger = logging.getLogger(__name__)


class ApproveRequest(BaseModel):
    admin_notes: Optional[str] = None
    should_publish: bool = True


class RejectRequest(BaseModel):
    admin_notes: Optional[str] = None


def get_manager(request: Request) -> SuggestionLifecycleManager:
    return request.app.state.manager


def get_caller(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Caller:
    """Caller identity as forwarded by the authentication layer in front of the API."""
    return Caller(user_id=x_user_id or "anonymous", role=x_user_role or "user")


router = APIRouter(prefix="/api/ai-agent")


@router.get("/suggestions")
async def list_suggestions(
    caller: Caller = Depends(get_caller),
    manager: SuggestionLifecycleManager = Depends(get_manager),
):
    """Pending suggestions, newest first."""
    suggestions = await manager.list_pending(caller)
    return [s.model_dump(mode="json") for s in suggestions]


@router.post("/generate-suggestions")
async def generate_suggestions(
    caller: Caller = Depends(get_caller),
    manager: SuggestionLifecycleManager = Depends(get_manager),
):
    """Run an on-demand generation cycle."""
    result = await manager.generate(caller, GenerationMode.ON_DEMAND)
    if result.skipped_reason:
        message = "Sufficient pending suggestions already exist"
    else:
        message = f"Generated {result.count} blog suggestions from trending topics"
    return {
        "message": message,
        "count": result.count,
        "suggestions": [s.model_dump(mode="json") for s in result.suggestions],
    }


@router.post("/auto-generate")
async def auto_generate(
    caller: Caller = Depends(get_caller),
    manager: SuggestionLifecycleManager = Depends(get_manager),
):
    """Cron-friendly alias of on-demand generation."""
    return await generate_suggestions(caller=caller, manager=manager)


@router.post("/suggestions/{suggestion_id}/approve")
async def approve_suggestion(
    suggestion_id: str,
    body: ApproveRequest = ApproveRequest(),
    caller: Caller = Depends(get_caller),
    manager: SuggestionLifecycleManager = Depends(get_manager),
):
    result = await manager.approve(
        caller, suggestion_id, notes=body.admin_notes, should_publish=body.should_publish
    )
    return {
        "message": "Suggestion approved and published"
        if body.should_publish
        else "Suggestion approved",
        "post": result.post.model_dump(mode="json"),
        "suggestion": result.suggestion.model_dump(mode="json"),
    }


@router.post("/suggestions/{suggestion_id}/publish")
async def publish_suggestion(
    suggestion_id: str,
    caller: Caller = Depends(get_caller),
    manager: SuggestionLifecycleManager = Depends(get_manager),
):
    result = await manager.publish(caller, suggestion_id)
    return {
        "message": "Post published successfully",
        "post": result.post.model_dump(mode="json"),
        "suggestion": result.suggestion.model_dump(mode="json"),
    }


@router.post("/suggestions/{suggestion_id}/reject")
async def reject_suggestion(
    suggestion_id: str,
    body: RejectRequest = RejectRequest(),
    caller: Caller = Depends(get_caller),
    manager: SuggestionLifecycleManager = Depends(get_manager),
):
    result = await manager.reject(caller, suggestion_id, notes=body.admin_notes)
    return {
        "message": "Suggestion rejected",
        "suggestion": result.suggestion.model_dump(mode="json"),
    }


@router.delete("/suggestions/{suggestion_id}")
async def delete_suggestion(
    suggestion_id: str,
    caller: Caller = Depends(get_caller),
    manager: SuggestionLifecycleManager = Depends(get_manager),
):
    await manager.delete(caller, suggestion_id)
    return {"message": "Suggestion deleted"}


@router.post("/start-auto-generation")
async def start_auto_generation(
    caller: Caller = Depends(get_caller),
    manager: SuggestionLifecycleManager = Depends(get_manager),
):
    status = manager.start_schedule(caller)
    return {"message": "Auto-generation started", "schedule": status}


@router.post("/stop-auto-generation")
async def stop_auto_generation(
    caller: Caller = Depends(get_caller),
    manager: SuggestionLifecycleManager = Depends(get_manager),
):
    status = manager.stop_schedule(caller)
    return {"message": "Auto-generation stopped", "schedule": status}


@router.get("/auto-generation")
async def auto_generation_status(
    caller: Caller = Depends(get_caller),
    manager: SuggestionLifecycleManager = Depends(get_manager),
):
    return manager.schedule_status(caller)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    manager: Optional[SuggestionLifecycleManager] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the API around ``manager`` (or one wired from ``settings``)."""
    settings = settings or Settings()
    if manager is None:
        from neuroblog.core.factory import build_lifecycle_manager

        manager = build_lifecycle_manager(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.auto_generation_on_startup:
            manager.scheduler.start()
        yield
        await manager.scheduler.shutdown()
        await manager.store.close()

    app = FastAPI(
        title="NeuroBlog AI Agent",
        description="Moderation API for AI-generated blog suggestions",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.manager = manager
    app.state.settings = settings
    app.include_router(router)

    @app.exception_handler(Forbidden)
    async def forbidden_handler(request: Request, exc: Forbidden):
        return _error(403, str(exc))

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return _error(404, "Suggestion not found")

    @app.exception_handler(StateConflict)
    async def conflict_handler(request: Request, exc: StateConflict):
        return _error(409, str(exc))

    @app.exception_handler(UpstreamUnavailable)
    async def upstream_handler(request: Request, exc: UpstreamUnavailable):
        logger.error(f"Generation request failed: {exc}")
        return _error(503, "AI service temporarily unavailable")

    @app.exception_handler(PersistenceError)
    async def persistence_handler(request: Request, exc: PersistenceError):
        logger.error(f"Storage failure: {exc}")
        return _error(500, "Storage failure")

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy" if settings.generation_api_key() else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "generation_backend": settings.generation_backend,
            "api_keys": {
                "newsapi": bool(settings.newsapi_api_key),
                "gemini": bool(settings.gemini_api_key),
                "openrouter": bool(settings.openrouter_api_key),
                "unsplash": bool(settings.unsplash_api_key),
                "pexels": bool(settings.pexels_api_key),
            },
            "auto_generation": manager.scheduler.status(),
        }

    return app
