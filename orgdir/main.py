"""FastAPI application entry point."""

from fastapi import FastAPI

from orgdir.api.middleware import RequestLoggingMiddleware
from orgdir.api.routes import metrics, organizations
from orgdir.core.config import get_settings

settings = get_settings()
docs_enabled = settings.api_docs_enabled
if docs_enabled is None:
    docs_enabled = settings.environment != "production"

app = FastAPI(
    title="orgdir",
    description="Organization directory API",
    version="1.0.0",
    docs_url="/api/docs" if docs_enabled else None,
    redoc_url="/api/redoc" if docs_enabled else None,
    openapi_url="/api/openapi.json" if docs_enabled else None,
)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


app.include_router(organizations.router, prefix="/api/organizations", tags=["organizations"])
app.include_router(metrics.router, prefix="/api", tags=["metrics"])
