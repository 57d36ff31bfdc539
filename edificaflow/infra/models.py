from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from .db import Base


def utcnow() -> datetime:
    return datetime.utcnow()


class BlobModel(Base):
    __tablename__ = "app_blobs"

    key = Column(String(64), primary_key=True)
    payload = Column(Text, nullable=False, default="[]")
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
