"""FastAPI application entry point."""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from halosuite.api import (
    auth,
    calendar,
    documents,
    files,
    folders,
    messages,
    notifications,
    permissions,
    roles,
    teams,
    users,
)
from halosuite.core.config import settings
from halosuite.core.exceptions import register_exception_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (
    auth,
    users,
    roles,
    permissions,
    teams,
    documents,
    files,
    folders,
    calendar,
    notifications,
    messages,
):
    app.include_router(module.router, prefix=settings.API_PREFIX)

MODULES = [
    ("Auth", "Registration, login, token refresh and password reset"),
    ("Users", "User administration with soft delete"),
    ("Roles", "Roles and their permission sets"),
    ("Permissions", "Wildcard-capable permission actions"),
    ("Teams", "Teams and memberships"),
    ("Documents", "Documents, tags and sharing with users or teams"),
    ("Files", "File metadata with per-user storage quota"),
    ("Folders", "Materialized-path folder hierarchy"),
    ("Calendar", "Events, attendees and responses"),
    ("Notifications", "Per-user inbox"),
    ("Messages", "Conversations with per-participant unread counts"),
]


def get_home_page() -> str:
    """Render the landing page listing the API modules."""
    items = "\n".join(
        f'      <li><a href="{settings.API_PREFIX}/docs#/{name}">{name}</a>: {summary}</li>'
        for name, summary in MODULES
    )
    return f"""
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{settings.APP_NAME}</title>
  <style>
    body {{ font-family: system-ui, sans-serif; background: #0f172a; color: #f8fafc;
           max-width: 48rem; margin: 4rem auto; padding: 0 1.5rem; }}
    a {{ color: #60a5fa; }}
    .version {{ color: #94a3b8; font-size: 0.9rem; }}
  </style>
</head>
<body>
  <h1>{settings.APP_NAME}</h1>
  <p class="version">v{settings.APP_VERSION} | {settings.ENVIRONMENT}</p>
  <p>
    <a href="{settings.API_PREFIX}/docs">Swagger</a> |
    <a href="{settings.API_PREFIX}/redoc">ReDoc</a> |
    <a href="/health">Health</a>
  </p>
  <ul>
{items}
  </ul>
</body>
</html>
    """.strip()


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def root() -> str:
    return get_home_page()


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Health status
    """
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
    }
