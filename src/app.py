"""Club Feedback FastAPI application.

Web server that processes feedback commands synchronously via HTTP.
Every request under a feedback route runs inside the feedback domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from feedback.domain import feedback  # noqa: E402
from feedback.utils.logging import add_context, clear_context
from protean.integrations.fastapi import register_exception_handlers

feedback.init()

_FEEDBACK_PREFIXES = ("/review-tokens", "/reviews", "/conflicts", "/clubs")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Club Feedback API",
    description="Post-event reviews, dual approval and dispute handling for the club marketplace",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the feedback domain context for feedback routes."""
    if request.url.path.startswith(_FEEDBACK_PREFIXES):
        add_context(
            method=request.method,
            path=request.url.path,
            actor_id=request.headers.get("x-actor-id"),
        )
        try:
            with feedback.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers and error mapping
# ---------------------------------------------------------------------------
from feedback.api import (  # noqa: E402
    club_router,
    conflict_router,
    register_feedback_exception_handlers,
    review_router,
    token_router,
)

app.include_router(token_router)
app.include_router(review_router)
app.include_router(conflict_router)
app.include_router(club_router)

register_exception_handlers(app)
register_feedback_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": feedback.name})
