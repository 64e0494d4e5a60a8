import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from ..core.security import hash_password
from ..db import get_db
from ..models import User
from ..schemas import BioUpdate, EmailUpdate, PasswordUpdate, UsernameUpdate, UserPublicOut
from ..services.storage import StorageError, get_storage_client, store_image
from ..services.text import strip_html
from .deps import commit_or_raise, get_current_user, get_target_user, read_upload

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_BIO_LENGTH = 1000


@router.get("/profiles")
def list_profiles(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    users = db.query(User).order_by(User.id.asc()).all()
    return [UserPublicOut.model_validate(user).model_dump() for user in users]


@router.get("/api/profile/{userId}", response_model=UserPublicOut)
def get_profile(
    userId: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = db.get(User, userId)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/api/update-username/{userId}")
def update_username(
    payload: UsernameUpdate,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    taken = (
        db.query(User)
        .filter(User.username == payload.newUsername, User.id != user.id)
        .first()
    )
    if taken:
        raise HTTPException(status_code=400, detail="Username in use.")
    user.username = payload.newUsername
    commit_or_raise(db, failure_detail="Error updating username", duplicate_detail="Username in use.")
    return {"message": "Username updated successfully"}


@router.get("/api/check-username/{username}")
def check_username(
    username: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    exists = db.query(User.id).filter(User.username == username).first() is not None
    return {"exists": exists}


@router.put("/api/update-password/{userId}")
def update_password(
    payload: PasswordUpdate,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    user.password_hash = hash_password(payload.newPassword)
    commit_or_raise(db, failure_detail="Error updating password")
    logger.info("Password changed for user id=%s", user.id)
    return {"message": "Password updated successfully"}


@router.put("/api/update-email/{userId}")
def update_email(
    payload: EmailUpdate,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    email = payload.newEmail.lower()
    if db.query(User).filter(User.email == email, User.id != user.id).first():
        raise HTTPException(status_code=400, detail="Email in use.")
    user.email = email
    commit_or_raise(db, failure_detail="Error updating email", duplicate_detail="Email in use.")
    return {"message": "Email updated successfully"}


@router.get("/api/check-email/{email}")
def check_email(
    email: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    exists = db.query(User.id).filter(User.email == email.lower()).first() is not None
    return {"exists": exists}


@router.put("/api/update-bio/{userId}")
def update_bio(
    payload: BioUpdate,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    cleaned = strip_html(payload.bio)
    if len(cleaned) > MAX_BIO_LENGTH:
        raise HTTPException(status_code=400, detail="Bio is too long")
    user.bio = cleaned or None
    commit_or_raise(db, failure_detail="Error updating bio")
    return {"message": "Bio updated successfully", "bio": user.bio}


@router.post("/api/upload-avatar/{userId}")
def upload_avatar(
    avatar: UploadFile = File(...),
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    content = read_upload(avatar)
    try:
        url = store_image(
            get_storage_client(), "avatars", user.id, avatar.filename, content, avatar.content_type
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StorageError as exc:
        logger.exception("Avatar upload failed for user id=%s", user.id)
        raise HTTPException(status_code=500, detail="Error uploading avatar") from exc

    user.avatar_url = url
    commit_or_raise(db, failure_detail="Error saving avatar")
    return {"avatar_url": url}
