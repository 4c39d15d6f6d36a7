# app/models/base.py
from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_dict(row) -> dict:
    """Column values of an ORM row as a plain dict."""
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}
