import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import (
    ALLOW_ADMIN_SIGNUP,
    REFRESH_COOKIE_NAME,
    REFRESH_COOKIE_SECURE,
    REFRESH_TOKEN_EXPIRE_DAYS,
)
from ..core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from ..db import get_db
from ..models import User
from ..schemas import TokenRefresh, UserCreate, UserLogin, UserOut
from .deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_refresh_cookie(response: Response, user: User) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=create_refresh_token(user),
        max_age=REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600,
        httponly=True,
        secure=REFRESH_COOKIE_SECURE,
        samesite="none" if REFRESH_COOKIE_SECURE else "lax",
        path="/",
    )


def _session_payload(user: User) -> dict:
    return {
        "accessToken": create_access_token(user),
        "user": UserOut.model_validate(user).model_dump(),
    }


@router.post("/register", status_code=201)
def register(payload: UserCreate, response: Response, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email in use.")
    if db.query(User).filter(User.username == payload.username).first():
        raise HTTPException(status_code=400, detail="Username in use.")

    user = User(
        username=payload.username,
        email=email,
        password_hash=hash_password(payload.password),
        is_admin=bool(payload.admin and ALLOW_ADMIN_SIGNUP),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email or username in use.") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Registration failed for %s", payload.username)
        raise HTTPException(status_code=500, detail="Registration failed.") from exc
    db.refresh(user)
    logger.info("Registered user %s (id=%s)", user.username, user.id)

    _set_refresh_cookie(response, user)
    return _session_payload(user)


@router.post("/login")
def login(payload: UserLogin, response: Response, db: Session = Depends(get_db)):
    identifier = payload.username.strip()
    user = (
        db.query(User)
        .filter(or_(User.username == identifier, User.email == identifier.lower()))
        .first()
    )
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    _set_refresh_cookie(response, user)
    return _session_payload(user)


@router.post("/api/token/refresh")
def refresh_access_token(
    request: Request,
    payload: Optional[TokenRefresh] = Body(default=None),
    db: Session = Depends(get_db),
):
    token = request.cookies.get(REFRESH_COOKIE_NAME)
    if not token and payload is not None:
        token = payload.refresh_token
    if not token:
        raise HTTPException(status_code=401, detail="No refresh token provided.")

    user_id = decode_refresh_token(token)
    user = db.get(User, user_id) if user_id is not None else None
    if not user:
        logger.warning("Rejected refresh token (user_id=%s)", user_id)
        raise HTTPException(status_code=403, detail="Invalid or expired refresh token.")
    return {"accessToken": create_access_token(user)}


@router.post("/api/logout")
def logout(response: Response):
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=REFRESH_COOKIE_SECURE,
        samesite="none" if REFRESH_COOKIE_SECURE else "lax",
    )
    return {"message": "Logged out"}


@router.get("/api/me")
def get_me(current_user: User = Depends(get_current_user)):
    return {"user": UserOut.model_validate(current_user).model_dump()}


@router.get("/protected")
def protected(current_user: User = Depends(get_current_user)):
    return {"message": "Secure data", "user": UserOut.model_validate(current_user).model_dump()}
