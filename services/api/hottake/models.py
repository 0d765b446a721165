"""
SQLAlchemy ORM models for TiDB.

Tables:
  users          — profile store (identity + display attributes)
  takes          — short text posts; ids grow in insertion order
  likes          — user × take set membership, unique per pair
  revoked_tokens — JWT denylist keyed by token identifier (jti)
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column

from hottake.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# Microsecond precision everywhere; plain DATETIME on MySQL/TiDB keeps whole seconds
Timestamp = DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")


def utcnow() -> datetime:
    """Naive UTC timestamp — every stored datetime uses this convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    bio: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    least_fav_color: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utcnow, nullable=False)


class Take(Base):
    __tablename__ = "takes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    contents: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_takes_owner", "owner_id"),
        Index("idx_takes_created", "created_at"),
        # Never reuse the id of a deleted take
        {"sqlite_autoincrement": True},
    )


class Like(Base):
    __tablename__ = "likes"

    # Composite primary key doubles as the (take, user) uniqueness constraint
    take_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("takes.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )

    __table_args__ = (
        # "What did user X like?" — likes are otherwise read per take
        Index("idx_likes_user", "user_id"),
    )


class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    # The token's own expiry — rows past it can be pruned
    expires_at: Mapped[Optional[datetime]] = mapped_column(Timestamp)
    revoked_at: Mapped[datetime] = mapped_column(Timestamp, default=utcnow, nullable=False)
