import logging
import time
from collections import defaultdict

from fastapi import APIRouter, Depends, HTTPException, Request, Form
from sqlalchemy.orm import Session

from patrimonio.database import get_db
from patrimonio.models.user import User
from patrimonio.schemas.user import UserCreate, UserResponse, UserUpdate
from patrimonio.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

# ── Rate limiting (in-memory, per IP) ──────────────────────────────────────
_login_attempts: dict[str, list[float]] = defaultdict(list)
_RATE_LIMIT_WINDOW = 60   # seconds
_RATE_LIMIT_MAX = 10      # max attempts per window


def _check_rate_limit(ip: str) -> bool:
    now = time.time()
    _login_attempts[ip] = [t for t in _login_attempts[ip] if now - t < _RATE_LIMIT_WINDOW]
    if len(_login_attempts[ip]) >= _RATE_LIMIT_MAX:
        return False
    _login_attempts[ip].append(now)
    return True


def _reset_rate_limit(ip: str) -> None:
    """Clear failed attempts after successful login."""
    _login_attempts.pop(ip, None)


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Dependency: the logged-in user; every inventory route is scoped to it."""
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Login necessário")
    user = db.get(User, user_id)
    if not user or not user.is_active:
        request.session.clear()
        raise HTTPException(status_code=401, detail="Login necessário")
    return user


def _start_session(request: Request, user: User) -> None:
    request.session["user_id"] = user.id
    request.session["display_name"] = user.display_name


@router.post("/signup", response_model=UserResponse, status_code=201)
def signup(data: UserCreate, request: Request, db: Session = Depends(get_db)):
    user = user_service.create_user(db, data)
    logger.info("AUDIT: nova conta %s (%s)", user.id, user.email)
    _start_session(request, user)
    return user


@router.post("/login", response_model=UserResponse)
def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    ip = request.client.host if request.client else "unknown"
    if not _check_rate_limit(ip):
        raise HTTPException(status_code=429, detail="Muitas tentativas. Tente novamente em instantes.")
    user = user_service.authenticate(db, email, password)
    if not user:
        logger.warning("AUDIT: falha de login para '%s' a partir do IP %s", email, ip)
        raise HTTPException(status_code=401, detail="E-mail ou senha incorretos.")
    _reset_rate_limit(ip)
    logger.info("AUDIT: login de '%s' a partir do IP %s", user.email, ip)
    _start_session(request, user)
    return user


@router.post("/logout", status_code=204)
def logout(request: Request):
    request.session.clear()


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(require_user)):
    return user


@router.patch("/me", response_model=UserResponse)
def update_me(
    data: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    user = user_service.update_user(db, user.id, data)
    request.session["display_name"] = user.display_name
    return user
