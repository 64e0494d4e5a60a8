from typing import List, Optional, Union
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _check_username(value: str) -> str:
    value = value.strip()
    if len(value) < 3:
        raise ValueError("must be at least 3 characters")
    if len(value) > 50:
        raise ValueError("must be at most 50 characters")
    if any(char.isspace() for char in value):
        raise ValueError("must not contain whitespace")
    return value


def _check_password(value: str) -> str:
    if len(value) < 8:
        raise ValueError("must be at least 8 characters")
    return value


class UserCreate(BaseModel):
    username: str
    email: EmailStr
    password: str
    admin: bool = False

    @field_validator("username")
    @classmethod
    def username_valid(cls, value: str) -> str:
        return _check_username(value)

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        return _check_password(value)


class UserLogin(BaseModel):
    username: str
    password: str


class TokenRefresh(BaseModel):
    refresh_token: Optional[str] = None


class UserOut(BaseModel):
    userid: int = Field(validation_alias="id")
    username: str
    email: EmailStr
    admin: bool = Field(validation_alias="is_admin")

    model_config = ConfigDict(from_attributes=True)


class UserPublicOut(BaseModel):
    userid: int = Field(validation_alias="id")
    username: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UsernameUpdate(BaseModel):
    newUsername: str

    @field_validator("newUsername")
    @classmethod
    def username_valid(cls, value: str) -> str:
        return _check_username(value)


class PasswordUpdate(BaseModel):
    newPassword: str

    @field_validator("newPassword")
    @classmethod
    def password_length(cls, value: str) -> str:
        return _check_password(value)


class EmailUpdate(BaseModel):
    newEmail: EmailStr


class BioUpdate(BaseModel):
    bio: str = Field(default="", max_length=1000)


class ConsoleOut(BaseModel):
    consoleid: int = Field(validation_alias="id")
    name: str

    model_config = ConfigDict(from_attributes=True)


class WishlistAdd(BaseModel):
    consoleIds: List[int] = Field(default_factory=list)


class GameDetailsIn(BaseModel):
    ownership: Optional[str] = Field(default=None, max_length=50)
    included: Optional[str] = Field(default=None, max_length=200)
    checkboxes: Optional[Union[List[str], str]] = None
    notes: Optional[str] = None
    completion: Optional[int] = Field(default=None, ge=0, le=100)
    review: Optional[str] = None
    spoiler: bool = False
    price: Optional[float] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=10)
    consoleIds: List[int] = Field(default_factory=list)


class GameDetailsEdit(BaseModel):
    """Edit body; the edit form posts a few fields under different names."""

    model_config = ConfigDict(populate_by_name=True)

    ownership: Optional[str] = Field(default=None, max_length=50)
    included: Optional[str] = Field(default=None, max_length=200)
    checkboxes: Optional[Union[List[str], str]] = None
    notes: Optional[str] = None
    completion: Optional[int] = Field(default=None, ge=0, le=100, alias="gameCompletion")
    review: Optional[str] = None
    spoiler: bool = Field(default=False, alias="spoilerWarning")
    price: Optional[float] = Field(default=None, ge=0, alias="pricePaid")
    rating: Optional[float] = Field(default=None, ge=0, le=10)
    consoleIds: Optional[List[int]] = None


class ChatMessageIn(BaseModel):
    text: str = Field(min_length=1, max_length=2000)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class ChatMessageOut(BaseModel):
    messageid: int = Field(validation_alias="id")
    sender_id: int
    text: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
