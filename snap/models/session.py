# models/session.py
import uuid

from sqlalchemy import Index

from snap.extensions import db
from .base import BaseModel, utcnow


class AttendanceSession(BaseModel):
    """A bounded window during which students may record attendance by scanning its QR code."""

    __tablename__ = 'attendance_sessions'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    qr_id = db.Column(db.String(128), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    class_id = db.Column(db.String(64), nullable=True)
    teacher_id = db.Column(db.String(128), nullable=True)

    records = db.relationship('AttendanceRecord', back_populates='session', lazy='dynamic',
                              cascade='all, delete-orphan')

    __table_args__ = (
        Index('idx_attendance_session_expires', 'expires_at'),
        Index('idx_attendance_session_class', 'class_id'),
    )

    def is_expired(self, now=None):
        return (now or utcnow()) >= self.expires_at

    def is_valid_for(self, qr_id, now=None):
        """True while the session is unexpired and the presented token matches."""
        return qr_id == self.qr_id and not self.is_expired(now)

    def to_qr_payload(self):
        """Contents encoded in the QR code shown to students."""
        return {'sessionId': self.id, 'qrId': self.qr_id}

    def __repr__(self):
        return f'<AttendanceSession {self.id} expires={self.expires_at.isoformat()}>'
