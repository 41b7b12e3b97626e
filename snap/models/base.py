# models/base.py
from datetime import datetime, timezone

from snap.extensions import db


def utcnow():
    """Current time as a naive UTC datetime, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value):
    """Normalise an aware datetime to naive UTC; naive values are assumed to be UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class BaseModel(db.Model):
    """Base model class with common functionality."""

    __abstract__ = True

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        """Convert model instance to dictionary."""
        result = {}

        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                result[column.name] = value.isoformat()
            else:
                result[column.name] = value

        return result

    def save(self):
        """Save the model instance."""
        db.session.add(self)
        db.session.commit()
        return self
