"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from designdiff.config import settings
from designdiff.engine.errors import DesignDiffError

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.designdiff_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

logger = logging.getLogger(__name__)


async def _design_diff_error(request: Request, exc: DesignDiffError) -> JSONResponse:
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=422, content=exc.to_dict())


def create_app() -> FastAPI:
    app = FastAPI(
        title="DesignDiff",
        description="Design-vs-screenshot visual diff with semantic attribution to design nodes",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(DesignDiffError, _design_diff_error)

    from designdiff.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
