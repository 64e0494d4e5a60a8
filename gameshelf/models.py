from datetime import datetime
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from .db import Base


game_consoles = Table(
    "game_consoles",
    Base.metadata,
    Column("game_id", Integer, ForeignKey("games.id", ondelete="CASCADE"), primary_key=True),
    Column("console_id", Integer, ForeignKey("consoles.id", ondelete="CASCADE"), primary_key=True),
)

collection_entry_consoles = Table(
    "collection_entry_consoles",
    Base.metadata,
    Column(
        "collection_entry_id",
        Integer,
        ForeignKey("collection_entries.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("console_id", Integer, ForeignKey("consoles.id", ondelete="CASCADE"), primary_key=True),
)

wishlist_entry_consoles = Table(
    "wishlist_entry_consoles",
    Base.metadata,
    Column(
        "wishlist_entry_id",
        Integer,
        ForeignKey("wishlist_entries.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("console_id", Integer, ForeignKey("consoles.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    avatar_url = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    collection_entries = relationship(
        "CollectionEntry", back_populates="user", cascade="all, delete-orphan"
    )
    wishlist_entries = relationship(
        "WishlistEntry", back_populates="user", cascade="all, delete-orphan"
    )


class Console(Base):
    __tablename__ = "consoles"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), unique=True, nullable=False)


SEARCH_NAME_LENGTH = 200


class Game(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    # Lowercased, accent-stripped copy of name used by search.
    search_name = Column(String(SEARCH_NAME_LENGTH), index=True, nullable=False)
    cover_art_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    consoles = relationship("Console", secondary=game_consoles, order_by="Console.name")
    collection_entries = relationship(
        "CollectionEntry", back_populates="game", cascade="all, delete-orphan"
    )
    wishlist_entries = relationship(
        "WishlistEntry", back_populates="game", cascade="all, delete-orphan"
    )


class GameDetails(Base):
    __tablename__ = "game_details"

    id = Column(Integer, primary_key=True)
    ownership = Column(String(50), nullable=True)
    included = Column(String(200), nullable=True)
    condition = Column(String(500), nullable=True)  # comma-separated flags
    notes = Column(Text, nullable=True)
    completion = Column(Integer, nullable=True)
    review = Column(Text, nullable=True)
    spoiler = Column(Boolean, default=False)
    price = Column(Float, nullable=True)
    rating = Column(Float, nullable=True, index=True)

    collection_entry = relationship("CollectionEntry", back_populates="details", uselist=False)


class CollectionEntry(Base):
    __tablename__ = "collection_entries"
    __table_args__ = (UniqueConstraint("user_id", "game_id", name="uq_collection_entry"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    details_id = Column(
        Integer, ForeignKey("game_details.id", ondelete="SET NULL"), unique=True, nullable=True
    )
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="collection_entries")
    game = relationship("Game", back_populates="collection_entries")
    details = relationship(
        "GameDetails",
        back_populates="collection_entry",
        cascade="all, delete-orphan",
        single_parent=True,
    )
    consoles = relationship(
        "Console", secondary=collection_entry_consoles, order_by="Console.name"
    )


class WishlistEntry(Base):
    __tablename__ = "wishlist_entries"
    __table_args__ = (UniqueConstraint("user_id", "game_id", name="uq_wishlist_entry"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="wishlist_entries")
    game = relationship("Game", back_populates="wishlist_entries")
    consoles = relationship("Console", secondary=wishlist_entry_consoles, order_by="Console.name")


class FriendRequest(Base):
    __tablename__ = "friend_requests"
    __table_args__ = (
        Index(
            "uq_pending_friend_request",
            "sender_id",
            "recipient_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipient_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(20), default="pending", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    responded_at = Column(DateTime, nullable=True)

    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])


class Friendship(Base):
    __tablename__ = "friendships"
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_friendship_pair"),
        CheckConstraint("user_low_id < user_high_id", name="ck_friendship_order"),
    )

    id = Column(Integer, primary_key=True)
    user_low_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_high_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow)

    user_low = relationship("User", foreign_keys=[user_low_id])
    user_high = relationship("User", foreign_keys=[user_high_id])


class ChatThread(Base):
    __tablename__ = "chat_threads"
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_chat_thread_pair"),
        CheckConstraint("user_low_id < user_high_id", name="ck_chat_thread_order"),
    )

    id = Column(Integer, primary_key=True)
    user_low_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_high_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow)

    messages = relationship(
        "ChatMessage",
        back_populates="thread",
        cascade="all, delete-orphan",
        order_by="ChatMessage.id",
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True)
    thread_id = Column(
        Integer, ForeignKey("chat_threads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text = Column(String(2000), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    thread = relationship("ChatThread", back_populates="messages")
    sender = relationship("User", foreign_keys=[sender_id])
