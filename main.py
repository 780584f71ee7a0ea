import logging
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, load_settings
from database import create_db_engine, init_db, make_session_factory, ping
from errors import register_exception_handlers
from responses import ok
from route_modules import API_PREFIX, combined_router

logger = logging.getLogger("fitness_app")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API for the given settings (or the environment's)."""
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    engine = create_db_engine(settings)
    init_db(engine)

    app = FastAPI(title="Fitness Training API", version="1.0.0")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    register_exception_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response

    @app.get("/health")
    async def health(request: Request):
        """Liveness plus database reachability."""
        ping(request.app.state.engine)
        return ok({"status": "ok", "environment": settings.app_env, "database": "connected"})

    app.include_router(combined_router, prefix=API_PREFIX)

    logger.info(f"Fitness Training API ready ({settings.app_env}, {'postgres' if settings.is_postgres else 'sqlite'})")
    return app


if __name__ == "__main__":
    settings = load_settings()
    uvicorn.run("main:create_app", factory=True, host=settings.host, port=settings.port)
