"""Main FastAPI application."""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lucid import __version__
from lucid.api.endpoints import router
from lucid.utils.logging import setup_logging

setup_logging()


def cors_origins() -> list[str]:
    """Allowed browser origins from LUCID_CORS_ORIGINS (comma separated, default any)."""
    raw = os.getenv("LUCID_CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(
    title="Lucid IR",
    description=(
        "Conversation intermediate representation service: converts wire-format messages "
        "and incremental stream events into typed conversation blocks."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    tags_metadata=[
        {"name": "Conversion", "description": "Convert between wire messages and Lucid IR conversations."},
        {"name": "Markdown", "description": "Repair partially streamed markdown."},
        {"name": "Sessions", "description": "Build conversations from stream events within a session."},
        {"name": "Tools", "description": "Approve or deny tool calls awaiting approval."},
        {"name": "Health", "description": "Service health monitoring and status checks."},
    ],
)

# No credentialed requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lucid.main:app",
        host=os.getenv("LUCID_HOST", "127.0.0.1"),
        port=int(os.getenv("LUCID_PORT", "8000")),
        log_level="info",
    )
