# bookshelf/main.py
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from loguru import logger

from .api import auth as auth_routes
from .api import books
from .auth import PasswordHasher, TokenService
from .config import Settings, get_settings
from .database import create_engine, create_sessionmaker, init_models
from .errors import setup_exception_handlers
from .logging import register_request_logging, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models(app.state.engine)
    logger.info("Bookshelf API started")
    yield
    await app.state.engine.dispose()
    logger.info("Bookshelf API stopped")


def warn_if_default_secret(settings: Settings) -> bool:
    if settings.uses_default_secret:
        logger.warning("BOOKSHELF_SECRET_KEY is not set; tokens are signed with the public default key")
        return True
    return False


def create_app(settings: Settings = None) -> FastAPI:
    """Build the application; everything process-wide hangs off ``app.state``."""
    if settings is None:
        settings = get_settings()

    setup_logging(settings)
    warn_if_default_secret(settings)

    app = FastAPI(
        title="Bookshelf API",
        description="Register, log in, and manage a shared book collection where only a book's owner may change it.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = create_engine(settings)
    app.state.sessionmaker = create_sessionmaker(app.state.engine)
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.token_service = TokenService(
        settings.secret_key,
        algorithm=settings.algorithm,
        ttl=timedelta(minutes=settings.access_token_expire_minutes),
    )

    setup_exception_handlers(app)
    register_request_logging(app)

    app.include_router(auth_routes.router)
    app.include_router(books.router)

    @app.get("/test", include_in_schema=False)
    async def liveness():
        return "Server API is working"

    return app


def main():
    import uvicorn

    settings = get_settings()
    uvicorn.run("bookshelf.main:app", host="0.0.0.0", port=4000, reload=settings.debug)


app = create_app()


if __name__ == "__main__":
    main()
