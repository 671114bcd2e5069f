"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from atlas_client import AtlasAPIError, AtlasClient, AtlasNotFoundError
from app.config import get_settings
from app.database import create_schema, engine
from app.log_config import configure_logging
from app.routers.audit import router as audit_router
from app.routers.bootstrap import router as bootstrap_router
from app.routers.servers import router as servers_router
from app.routers.templates import router as templates_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging, initialize the schema and open the Atlas client.

    Yields
    ------
    None
        Runs the application lifespan.
    """
    configure_logging()
    settings = get_settings()
    await create_schema(engine)

    app.state.atlas = None
    if settings.atlas_api_key:
        app.state.atlas = AtlasClient.from_settings(settings)
    else:
        logger.warning("Atlas API key not configured, proxied routes are disabled")
    yield
    if app.state.atlas is not None:
        await app.state.atlas.aclose()


app = FastAPI(title="Atlas Panel", lifespan=lifespan)


@app.exception_handler(AtlasAPIError)
async def atlas_exception_handler(_: Request, exc: AtlasAPIError) -> JSONResponse:
    """Surface Atlas failures as gateway errors; missing resources stay 404."""
    status_code = (
        status.HTTP_404_NOT_FOUND
        if isinstance(exc, AtlasNotFoundError)
        else status.HTTP_502_BAD_GATEWAY
    )
    logger.warning("Atlas request failed", status_code=exc.status_code, error=str(exc))
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


app.include_router(bootstrap_router)
app.include_router(servers_router)
app.include_router(templates_router)
app.include_router(audit_router)
