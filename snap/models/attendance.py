# models/attendance.py
from sqlalchemy import Index, UniqueConstraint

from snap.extensions import db
from .base import BaseModel


class AttendanceRecord(BaseModel):
    __tablename__ = 'attendance_records'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    session_id = db.Column(db.String(36), db.ForeignKey('attendance_sessions.id'), nullable=False)
    student_id = db.Column(db.String(128), db.ForeignKey('students.id'), nullable=False, index=True)
    scan_timestamp = db.Column(db.DateTime, nullable=False)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    # Relationships
    session = db.relationship('AttendanceSession', back_populates='records')
    student = db.relationship('Student', back_populates='records')

    __table_args__ = (
        # One record per student per session; concurrent duplicate inserts fail here
        UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
        Index('idx_attendance_session_scan', 'session_id', 'scan_timestamp'),
    )

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None

    def __repr__(self):
        return f'<AttendanceRecord {self.student_id} @ {self.session_id}>'
