"""
API_APP
=======

FastAPI REST API for contextCore.

Endpoints:
    GET    /version                        API version
    GET    /health                         Health check
    GET    /chats/{chat_id}/context        Assemble the context window (?tier=FAST|LARGE)
    GET    /chats/{chat_id}/state          Compaction state (none/compacting/compacted)
    GET    /stats                          Summary count and estimated tokens saved
    GET    /summaries                      Most recent summaries (?limit=20)
    DELETE /summaries                      Clear all summaries

Usage:
    uvicorn context_core.api.app:app --port 8432
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from ..memory.summaries import SummaryStoreError

logger = logging.getLogger(__name__)

# API Version
API_VERSION = "2026.10.18a"


# ============================================================================
# PYDANTIC MODELS
# ============================================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str


class ContextResponse(BaseModel):
    """Assembled context window for one chat."""
    chat_id: str
    tier: str
    has_digest: bool
    tail_length: int
    entries: List[Dict[str, Any]]


class StatsResponse(BaseModel):
    total_summaries: int
    estimated_tokens_saved: int


class SummaryInfo(BaseModel):
    """A persisted digest."""
    id: str
    chat_id: str
    content: str
    range_start: str
    range_end: str
    original_tokens: int = Field(..., ge=0)
    summary_tokens: int = Field(..., ge=0)
    created_at: str


class StateResponse(BaseModel):
    chat_id: str
    state: str


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(assembler: Optional[Any] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        assembler: WindowAssembler to serve; defaults to the process-wide one,
            created on first request.
    """
    app = FastAPI(
        title="contextCore API",
        description="Context compaction and window assembly for long-running chats",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    _assembler = assembler

    def get_assembler():
        nonlocal _assembler
        if _assembler is None:
            from ..context.window import get_window_assembler
            _assembler = get_window_assembler()
        return _assembler

    # ========================================================================
    # HEALTH & STATUS ENDPOINTS
    # ========================================================================

    @app.get("/version", tags=["System"])
    async def get_version():
        """Get API version information."""
        return {
            "name": "contextCore",
            "version": API_VERSION,
            "description": "Context compaction API"
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=API_VERSION,
            timestamp=datetime.now().isoformat()
        )

    # ========================================================================
    # CONTEXT ENDPOINTS
    # ========================================================================

    # Plain ``def``: assembly may block on a summarization call, so it runs
    # in the threadpool rather than on the event loop.
    @app.get("/chats/{chat_id}/context", response_model=ContextResponse, tags=["Context"])
    def get_context(chat_id: str, tier: str = Query("FAST", description="FAST or LARGE")):
        """Assemble the bounded context window for a chat."""
        try:
            window = get_assembler().get_context(chat_id, tier)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        has_digest = bool(window) and window[0].is_digest
        return ContextResponse(
            chat_id=chat_id,
            tier=tier.upper(),
            has_digest=has_digest,
            tail_length=len(window) - (1 if has_digest else 0),
            entries=[entry.to_dict() for entry in window],
        )

    @app.get("/chats/{chat_id}/state", response_model=StateResponse, tags=["Context"])
    def get_state(chat_id: str):
        """Get the compaction state of a chat."""
        try:
            state = get_assembler().get_state(chat_id)
        except SummaryStoreError as e:
            raise HTTPException(status_code=503, detail=str(e))
        return StateResponse(chat_id=chat_id, state=state)

    # ========================================================================
    # SUMMARY ENDPOINTS
    # ========================================================================

    @app.get("/stats", response_model=StatsResponse, tags=["Summaries"])
    def get_stats():
        """Aggregate compaction statistics."""
        try:
            return StatsResponse(**get_assembler().get_stats())
        except SummaryStoreError as e:
            raise HTTPException(status_code=503, detail=str(e))

    @app.get("/summaries", response_model=List[SummaryInfo], tags=["Summaries"])
    def list_summaries(limit: int = Query(20, ge=1, le=1000)):
        """List the most recent summaries, newest first."""
        try:
            summaries = get_assembler().get_summaries(limit)
        except SummaryStoreError as e:
            raise HTTPException(status_code=503, detail=str(e))
        return [SummaryInfo(**s.to_dict()) for s in summaries]

    @app.delete("/summaries", tags=["Summaries"])
    def clear_summaries():
        """Delete every summary (administrative reset)."""
        try:
            get_assembler().clear_summaries()
        except SummaryStoreError as e:
            raise HTTPException(status_code=503, detail=str(e))
        logger.info("Summaries cleared via API")
        return {"status": "cleared"}

    return app


app = create_app()


# ============================================================================
# MAIN
# ============================================================================

def main(port: int = 8432):
    """Run the API server."""
    import uvicorn

    print("Starting contextCore API server...")
    print(f"API docs: http://localhost:{port}/docs")
    uvicorn.run(app, host="localhost", port=port)


if __name__ == "__main__":
    main()
