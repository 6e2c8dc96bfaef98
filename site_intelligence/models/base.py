"""
Base SQLAlchemy model with common timestamp columns.
"""
from sqlalchemy import Column, DateTime
from sqlalchemy.sql import func

from site_intelligence.core.database import Base


class TimestampMixin:
    """Creation and update timestamps maintained by the database."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
