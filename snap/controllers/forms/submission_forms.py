# forms/submission_forms.py
"""
Flask-WTF forms validating JSON bodies posted by the scanner client.
The API maps camelCase JSON keys onto these snake_case fields before validation.
"""

from datetime import datetime

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import StringField, FloatField, IntegerField
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, ValidationError


def parse_iso_timestamp(value):
    """Parse an ISO-8601 timestamp as sent by clients (a trailing 'Z' means UTC)."""
    value = value.strip()
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


def json_to_formdata(payload, field_map):
    """
    Build form data from a JSON object.

    Args:
        payload: Decoded JSON body
        field_map: JSON key -> form field name

    Returns:
        MultiDict: String values for the mapped keys that are present and not null
    """
    data = MultiDict()
    for json_key, field_name in field_map.items():
        value = payload.get(json_key)
        if value is None or isinstance(value, (dict, list)):
            continue
        data[field_name] = str(value)
    return data


class AttendanceSubmissionForm(FlaskForm):
    """Attendance submission from a student's scan."""

    class Meta:
        csrf = False

    JSON_FIELDS = {
        'sessionId': 'session_id',
        'qrId': 'qr_id',
        'studentId': 'student_id',
        'scanTimestamp': 'scan_timestamp',
        'latitude': 'latitude',
        'longitude': 'longitude',
        'studentName': 'student_name',
        'studentEmail': 'student_email',
        'studentPhone': 'student_phone',
    }

    session_id = StringField('Session ID', validators=[
        DataRequired(message='Session ID is required')
    ])
    qr_id = StringField('QR ID', validators=[
        DataRequired(message='QR ID is required')
    ])
    student_id = StringField('Student ID', validators=[
        DataRequired(message='Student ID is required'),
        Length(max=128, message='Student ID is too long')
    ])
    scan_timestamp = StringField('Scan timestamp', validators=[
        DataRequired(message='Scan timestamp is required')
    ])
    latitude = FloatField('Latitude', validators=[
        Optional(),
        NumberRange(min=-90, max=90, message='Latitude must be between -90 and 90')
    ])
    longitude = FloatField('Longitude', validators=[
        Optional(),
        NumberRange(min=-180, max=180, message='Longitude must be between -180 and 180')
    ])
    student_name = StringField('Full name', validators=[Optional(), Length(max=160)])
    student_email = StringField('Email', validators=[
        Optional(),
        Email(message='Please enter a valid email address'),
        Length(max=254)
    ])
    student_phone = StringField('Phone number', validators=[Optional(), Length(max=32)])

    @classmethod
    def from_json(cls, payload):
        return cls(formdata=json_to_formdata(payload, cls.JSON_FIELDS))

    def validate_scan_timestamp(self, field):
        try:
            parse_iso_timestamp(field.data)
        except (TypeError, ValueError):
            raise ValidationError('Scan timestamp must be an ISO-8601 date and time')

    def validate_latitude(self, field):
        """Location is all or nothing."""
        if self.longitude.raw_data in (None, []) or not self.longitude.raw_data[0].strip():
            raise ValidationError('Latitude and longitude must be provided together')

    def validate_longitude(self, field):
        if self.latitude.raw_data in (None, []) or not self.latitude.raw_data[0].strip():
            raise ValidationError('Latitude and longitude must be provided together')

    @property
    def scanned_at(self):
        return parse_iso_timestamp(self.scan_timestamp.data)


class SessionCreateForm(FlaskForm):
    """Teacher request to open an attendance session."""

    class Meta:
        csrf = False

    JSON_FIELDS = {
        'ttlSeconds': 'ttl_seconds',
        'classId': 'class_id',
        'teacherId': 'teacher_id',
    }

    ttl_seconds = IntegerField('Lifetime (seconds)', validators=[
        Optional(),
        NumberRange(min=1, message='Lifetime must be positive')
    ])
    class_id = StringField('Class', validators=[Optional(), Length(max=64)])
    teacher_id = StringField('Teacher', validators=[Optional(), Length(max=128)])

    @classmethod
    def from_json(cls, payload):
        return cls(formdata=json_to_formdata(payload, cls.JSON_FIELDS))
