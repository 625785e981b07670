"""Database setup and models for bears, sighting updates and the audit log.

This module provides the database connection, models, and utilities
for the document store using SQLAlchemy with SQLite by default.
"""

import os
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Database setup
DATABASE_URL = os.getenv("BEAR_TRACKER_DATABASE_URL", "sqlite:///./bear_tracker.db")


def make_engine(url: str = DATABASE_URL):
    """Create an engine, sharing one connection for in-memory SQLite.

    Args:
        url: SQLAlchemy database URL.

    Returns:
        SQLAlchemy engine.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url)


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (SQLite stores no offset)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Bear(Base):
    """A tracked bear. Created by an administrator, read-only afterwards.

    Attributes:
        id: Bear identifier used in URLs.
        name: Display name.
        initial_latitude: Origin latitude.
        initial_longitude: Origin longitude.
        city: Origin city.
        country: Origin country.
        color: Optional explicit map color.
    """

    __tablename__ = "finlay_bears"

    id = Column(String(100), primary_key=True)
    name = Column(String(100), nullable=False)
    initial_latitude = Column(Float, nullable=False)
    initial_longitude = Column(Float, nullable=False)
    city = Column(String(100), nullable=False, default="")
    country = Column(String(100), nullable=False, default="")
    color = Column(String(20), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "initial_latitude": self.initial_latitude,
            "initial_longitude": self.initial_longitude,
            "city": self.city,
            "country": self.country,
            "color": self.color,
        }


class BearUpdate(Base):
    """A sighting report for a bear. Never mutated or deleted.

    Attributes:
        id: Insertion-ordered primary key.
        bear_id: Identifier of the bear that was seen.
        city: City as entered by the submitter.
        country: Country as entered by the submitter.
        message: Optional free-text message.
        latitude: Resolved latitude.
        longitude: Resolved longitude.
        created_at: Timestamp assigned by the store at insertion.
    """

    __tablename__ = "finlay_bear_updates"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    bear_id = Column(String(100), nullable=False, index=True)
    city = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    message = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=True, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "bear_id": self.bear_id,
            "city": self.city,
            "country": self.country,
            "message": self.message or "",
            "latitude": self.latitude,
            "longitude": self.longitude,
            "created_at": self.created_at,
        }


class AuditLog(Base):
    """Audit log model for tracking every sighting submission attempt.

    Attributes:
        id: Primary key auto-incrementing ID.
        timestamp: When the submission was processed.
        user: Identifier of the submitter (header or client host).
        bear_id: Bear the sighting was submitted for.
        city: City as entered.
        country: Country as entered.
        outcome: "accepted" or the name of the rejection.
        description: Human-readable detail of the outcome.
    """

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
    user = Column(String(100), nullable=False, index=True)
    bear_id = Column(String(100), nullable=True, index=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    outcome = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)

    def to_dict(self):
        """Convert audit log entry to dictionary.

        Returns:
            Dictionary representation of the audit log entry.
        """
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "user": self.user,
            "bear_id": self.bear_id,
            "city": self.city,
            "country": self.country,
            "outcome": self.outcome,
            "description": self.description,
        }


def init_db(bind=None):
    """Initialize the database by creating all tables."""
    Base.metadata.create_all(bind=bind or engine)
