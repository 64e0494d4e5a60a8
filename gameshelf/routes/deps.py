from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, UploadFile, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import MAX_UPLOAD_BYTES
from ..core.security import decode_access_token
from ..db import get_db
from ..models import User

logger = logging.getLogger(__name__)

# Status the API has always used for "resource already exists".
HTTP_DUPLICATE = 420

_bearer = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized()
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise _unauthorized("Invalid or expired token")
    user = db.get(User, user_id)
    if not user:
        raise _unauthorized("User no longer exists")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


def get_target_user(
    userId: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    """Resolve the ``userId`` path segment, allowing only that user or an admin."""
    if userId != current_user.id and not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Not allowed to act for this user")
    if userId == current_user.id:
        return current_user
    user = db.get(User, userId)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def commit_or_raise(
    db: Session,
    *,
    failure_detail: str,
    duplicate_detail: Optional[str] = None,
) -> None:
    """Commit the session, mapping constraint violations to 420 and other errors to 500."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if duplicate_detail is None:
            logger.exception("Integrity error: %s", failure_detail)
            raise HTTPException(status_code=500, detail=failure_detail) from exc
        raise HTTPException(status_code=HTTP_DUPLICATE, detail=duplicate_detail) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database error: %s", failure_detail)
        raise HTTPException(status_code=500, detail=failure_detail) from exc


def read_upload(file: UploadFile) -> bytes:
    """Read an upload from a sync handler: 413 above MAX_UPLOAD_BYTES, 400 when empty."""
    content = file.file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")
    if not content:
        raise HTTPException(status_code=400, detail="File is empty")
    return content
