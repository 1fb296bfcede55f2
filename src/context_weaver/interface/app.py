"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from context_weaver.interface.error_handlers import register_error_handlers
from context_weaver.interface.routes import router


def create_app() -> FastAPI:
    """Build and wire the FastAPI application."""
    app = FastAPI(
        title="Context Weaver",
        version="1.5.0",
        description=(
            "Scans a source tree and weaves it into a token-budgeted, "
            "optionally chunked Markdown or XML context for language models."
        ),
    )

    register_error_handlers(app)
    app.include_router(router)

    # ── Health check (simple liveness probe) ────────────────────────────

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
