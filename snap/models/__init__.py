# models/__init__.py
from .base import BaseModel
from .student import Student
from .session import AttendanceSession
from .attendance import AttendanceRecord

__all__ = [
    'BaseModel',
    'Student',
    'AttendanceSession',
    'AttendanceRecord'
]
