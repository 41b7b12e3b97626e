# models/student.py
from sqlalchemy import Index

from snap.extensions import db
from snap.utils.identity import registration_number_from_email
from .base import BaseModel


class Student(BaseModel):
    __tablename__ = 'students'

    # Stable identifier issued by the identity provider
    id = db.Column(db.String(128), primary_key=True)
    registration_number = db.Column(db.String(32), unique=True, nullable=True)
    full_name = db.Column(db.String(160), nullable=True)
    email = db.Column(db.String(254), unique=True, nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)

    records = db.relationship('AttendanceRecord', back_populates='student', lazy='dynamic')

    __table_args__ = (
        Index('idx_student_full_name', 'full_name'),
    )

    registration_number_from_email = staticmethod(registration_number_from_email)

    def __repr__(self):
        return f'<Student {self.id} {self.registration_number or "-"}>'
