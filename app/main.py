# app/main.py
import logging
import os
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.modules.router import router as modules_router
from core.config import settings, wire_services
from core.logging import get_logger

logger = get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Law Firm Drafting Service")
    wire_services(app)
    app.include_router(modules_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        logger.info(f"Incoming request: {request.method} {request.url.path}")
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000
        logger.info(f"Response status: {response.status_code} | Time: {process_time:.2f}ms")
        return response

    for route in app.routes:
        methods = getattr(route, "methods", None)
        if methods:
            logging.getLogger("router.map").info("ROUTE %s %s", ",".join(sorted(methods)), route.path)

    @app.on_event("startup")
    async def startup_event():
        """Application startup event handler."""
        from app.modules.drafting.services.records.db import init_database

        logger.info("Starting drafting service...")
        if not await init_database(app.state.session_factory):
            logger.warning("Template and analytics records are unavailable")
        logger.info("Application startup completed successfully")

    @app.on_event("shutdown")
    async def shutdown_event():
        await app.state.drafting_pipeline.drain_background()
        logger.info("Drafting service stopped")

    return app


app = create_app()


@app.api_route("/healthz", methods=["GET", "HEAD"], include_in_schema=False)
async def healthz():
    return JSONResponse({"status": "ok"})


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("app.main:app", host="0.0.0.0", port=port)
