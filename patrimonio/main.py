from fastapi import FastAPI, Request
from fastapi.responses import Response
from starlette.middleware.sessions import SessionMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from sqlalchemy import select
import logging
import os

from patrimonio.database import engine, SessionLocal
from patrimonio.database import Base
import patrimonio.models  # noqa: F401 (registers all models)
from patrimonio.models.user import User
from patrimonio.config import settings
from patrimonio.services.user_service import hash_password
from patrimonio.routers import (
    health, auth, assets, trash, categories, locations, history, dashboard, export, ai, notifications,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def ensure_first_user(db) -> User | None:
    """Create the initial account if the database has no users yet."""
    if db.scalar(select(User).limit(1)):
        return None
    user = User(
        email=settings.FIRST_USER_EMAIL.lower(),
        display_name=settings.FIRST_USER_NAME,
        hashed_password=hash_password(settings.FIRST_USER_PASS),
        is_active=True,
    )
    db.add(user)
    db.commit()
    logger.info("Criado o primeiro usuário: %s", user.email)
    return user


@asynccontextmanager
async def lifespan(application: FastAPI):
    # Ensure DB exists and tables are created (for dev mode without alembic)
    if settings.DATABASE_URL.startswith("sqlite:///./data/"):
        os.makedirs("data", exist_ok=True)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        ensure_first_user(db)
    finally:
        db.close()

    yield


app = FastAPI(
    title="Patrimônio",
    description="Gestão de inventário de patrimônio com histórico de alterações",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    https_only=settings.APP_ENV == "production",
    same_site="lax",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.APP_ENV == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


app.add_middleware(SecurityHeadersMiddleware)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(assets.router)
app.include_router(trash.router)
app.include_router(categories.router)
app.include_router(locations.router)
app.include_router(history.router)
app.include_router(dashboard.router)
app.include_router(export.router)
app.include_router(ai.router)
app.include_router(notifications.router)
