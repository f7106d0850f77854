from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import Settings, settings as default_settings
from .db import init_database
from .errors import register_error_handlers
from .logging import setup_logging, RequestIdMiddleware
from .services.history import HistoryRecorder
from .routes.personnel import router as personnel_router
from .routes.inventory import router as inventory_router
from .routes.stock_movements import router as stock_movements_router
from .routes.vehicles import router as vehicles_router
from .routes.assignments import router as assignments_router
from .routes.history import router as history_router


log = structlog.get_logger(__name__)

health_router = APIRouter(tags=["health"])


@health_router.get("/health")
def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Storage handle is owned by the app and reached through app.state, never a module global
    database = init_database(settings.database_url)
    app.state.settings = settings
    app.state.db = database
    app.state.history = HistoryRecorder(database, default_actor=settings.history_default_actor)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    register_error_handlers(app)

    # Routers
    prefix = settings.api_prefix.rstrip("/")
    app.include_router(health_router, prefix=prefix)
    app.include_router(personnel_router, prefix=prefix)
    app.include_router(inventory_router, prefix=prefix)
    app.include_router(stock_movements_router, prefix=prefix)
    app.include_router(vehicles_router, prefix=prefix)
    app.include_router(assignments_router, prefix=prefix)
    app.include_router(history_router, prefix=prefix)

    # Metrics
    if settings.enable_metrics:
        Instrumentator().instrument(app).expose(app)

    @app.on_event("startup")
    def _startup():
        log.info("startup", app=settings.app_name, environment=settings.environment)
        if settings.auto_create_db:
            database.create_all()
        if settings.seed_sample_data:
            from .seed import seed_sample_data

            db = database.session()
            try:
                created = seed_sample_data(db)
                log.info("sample_data_seeded", **created)
            finally:
                db.close()

    @app.on_event("shutdown")
    def _shutdown():
        database.dispose()
        log.info("database_connection_closed")

    return app


app = create_app()
