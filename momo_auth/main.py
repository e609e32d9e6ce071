from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from momo_auth.application.session_manager import build_identity_events
from momo_auth.infrastructure.db.pool import close_pool, open_pool
from momo_auth.infrastructure.redis_cache.pool import close_redis, get_redis
from momo_auth.logging import setup_logging
from momo_auth.presentation.api import api
from momo_auth.presentation.rate_limiting import limiter, rate_limit_exceeded_handler
from momo_auth.settings import get_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    await open_pool()
    get_redis()

    try:
        yield
    finally:
        # shutdown
        await close_redis()
        await close_pool()


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Momo Auth API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.identity_events = build_identity_events()
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.include_router(api)
    return app


app = create_app()
