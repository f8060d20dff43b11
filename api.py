from fastapi import FastAPI
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from config import get_settings
from routers import posts, comments, notifications, channels


def create_app(lifespan=None) -> FastAPI:
    """Wire routers and middleware. Resources on app.state are set by the lifespan."""
    settings = get_settings()
    app = FastAPI(lifespan=lifespan)
    app.include_router(posts.router)
    app.include_router(comments.router)
    app.include_router(notifications.router)
    app.include_router(channels.router)

    app.add_middleware(
        TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts
    )
    return app
