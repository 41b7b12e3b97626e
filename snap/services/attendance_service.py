# services/attendance_service.py
"""
Attendance submission service.
Validates a scanned session token and records one attendance entry per student per session.
The uniqueness constraint on attendance_records is the only guard against concurrent duplicates.
An integrity error on the record insert is reported as a duplicate when the record exists
afterwards, otherwise as a storage error.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from snap.extensions import db
from snap.models.attendance import AttendanceRecord
from snap.models.base import utcnow, to_naive_utc
from snap.models.session import AttendanceSession
from snap.models.student import Student

logger = logging.getLogger('attendance_service')


class SubmissionError:
    """Attendance submission error codes."""
    SESSION_NOT_FOUND = 'session_not_found'
    DUPLICATE_SUBMISSION = 'duplicate_submission'
    UNEXPECTED_STORAGE_ERROR = 'unexpected_storage_error'


MESSAGES = {
    None: 'Attendance marked successfully!',
    SubmissionError.SESSION_NOT_FOUND: 'Invalid or expired QR code.',
    SubmissionError.DUPLICATE_SUBMISSION: 'Attendance already marked for this session.',
    SubmissionError.UNEXPECTED_STORAGE_ERROR: 'An unexpected database error occurred.',
}


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of one attendance submission: a success flag, a user-facing message and an error code."""

    success: bool
    message: str
    error_code: Optional[str] = None
    record_id: Optional[int] = None

    @classmethod
    def accepted(cls, record_id):
        return cls(True, MESSAGES[None], None, record_id)

    @classmethod
    def rejected(cls, error_code):
        return cls(False, MESSAGES[error_code], error_code)

    def to_dict(self):
        result = {'success': self.success, 'message': self.message}
        if self.error_code:
            result['error_code'] = self.error_code
        if self.record_id is not None:
            result['record_id'] = self.record_id
        return result


class AttendanceService:
    """Service class for attendance submission and lookup."""

    @staticmethod
    def submit_attendance(session_id, qr_id, student_id, scan_timestamp,
                          latitude=None, longitude=None, full_name=None, email=None,
                          phone_number=None, now=None):
        """
        Validate a scan and record attendance.

        Checks run strictly in order: session validity (exists, token matches, unexpired),
        then duplicate detection, then student creation and record insertion.

        Args:
            session_id: Attendance session identifier from the QR payload
            qr_id: QR token from the QR payload
            student_id: Identity provider's stable student identifier
            scan_timestamp: When the student scanned the code (datetime)
            latitude, longitude: Optional scan location
            full_name, email, phone_number: Profile values used only when the student is new
            now: Current time override (naive UTC); defaults to the wall clock

        Returns:
            SubmissionOutcome: never raises
        """
        now = to_naive_utc(now) if now else utcnow()

        try:
            session = db.session.get(AttendanceSession, session_id)

            # Missing, wrong token and expired collapse into one outcome
            if session is None or not session.is_valid_for(qr_id, now):
                logger.warning(f"Rejected scan for session {session_id} by {student_id}: "
                               f"{AttendanceService._describe_invalid_session(session, qr_id, now)}")
                return SubmissionOutcome.rejected(SubmissionError.SESSION_NOT_FOUND)

            if AttendanceService._record_exists(session_id, student_id):
                logger.info(f"Duplicate attendance attempt: {student_id} already recorded for session {session_id}")
                return SubmissionOutcome.rejected(SubmissionError.DUPLICATE_SUBMISSION)

            AttendanceService._insert_student_if_absent(
                student_id=student_id,
                full_name=full_name,
                email=email,
                phone_number=phone_number
            )

            record = AttendanceRecord(
                session_id=session_id,
                student_id=student_id,
                scan_timestamp=to_naive_utc(scan_timestamp),
                latitude=latitude,
                longitude=longitude
            )
            db.session.add(record)
            db.session.commit()

            logger.info(f"Attendance recorded: {student_id} in session {session_id} (record {record.id})")
            return SubmissionOutcome.accepted(record.id)

        except IntegrityError as e:
            AttendanceService._rollback()
            return AttendanceService._resolve_integrity_error(session_id, student_id, e)
        except SQLAlchemyError as e:
            AttendanceService._rollback()
            logger.error(f"Database error during attendance submission: {str(e)}", exc_info=True)
            return SubmissionOutcome.rejected(SubmissionError.UNEXPECTED_STORAGE_ERROR)
        except Exception as e:
            AttendanceService._rollback()
            logger.error(f"Unexpected error during attendance submission: {str(e)}", exc_info=True)
            return SubmissionOutcome.rejected(SubmissionError.UNEXPECTED_STORAGE_ERROR)

    @staticmethod
    def get_session_records(session_id):
        """
        Get the attendance records of a session ordered by scan time.

        Returns:
            dict: {'success', 'session', 'records'} or an error response
        """
        try:
            session = db.session.get(AttendanceSession, session_id)
            if session is None:
                return {
                    'success': False,
                    'message': 'Session not found',
                    'error_code': SubmissionError.SESSION_NOT_FOUND
                }

            records = (
                db.session.query(AttendanceRecord)
                .filter_by(session_id=session_id)
                .order_by(AttendanceRecord.scan_timestamp, AttendanceRecord.id)
                .all()
            )

            return {
                'success': True,
                'session': session.to_dict(),
                'records': [AttendanceService._format_record(record) for record in records],
                'total': len(records)
            }

        except SQLAlchemyError as e:
            logger.error(f"Database error retrieving records for session {session_id}: {str(e)}")
            return {
                'success': False,
                'message': 'Database error occurred',
                'error_code': SubmissionError.UNEXPECTED_STORAGE_ERROR
            }

    # Helper Methods

    @staticmethod
    def _record_exists(session_id, student_id):
        return db.session.query(
            db.session.query(AttendanceRecord)
            .filter_by(session_id=session_id, student_id=student_id)
            .exists()
        ).scalar()

    @staticmethod
    def _insert_student_if_absent(student_id, full_name=None, email=None, phone_number=None):
        """
        Create the student row unless one exists; existing profiles are left untouched.

        When the email or derived registration number already belongs to another student,
        the row is created without them so the attendance record can still be written.
        """
        AttendanceService._insert_ignoring_conflicts({
            'id': student_id,
            'full_name': full_name,
            'email': email,
            'phone_number': phone_number,
            'registration_number': Student.registration_number_from_email(email)
        })

        if db.session.get(Student, student_id) is None:
            logger.warning(f"Email or registration number of {student_id} is already taken; "
                           f"creating student without them")
            AttendanceService._insert_ignoring_conflicts({
                'id': student_id,
                'full_name': full_name,
                'phone_number': phone_number
            })

    @staticmethod
    def _insert_ignoring_conflicts(values):
        table = Student.__table__
        dialect = db.session.get_bind().dialect.name

        if dialect == 'sqlite':
            stmt = sqlite_insert(table).values(**values).on_conflict_do_nothing()
        elif dialect == 'postgresql':
            stmt = pg_insert(table).values(**values).on_conflict_do_nothing()
        elif dialect in ('mysql', 'mariadb'):
            stmt = table.insert().values(**values).prefix_with('IGNORE')
        else:
            # Other backends: plain insert inside a savepoint
            try:
                with db.session.begin_nested():
                    db.session.execute(table.insert().values(**values))
            except IntegrityError as e:
                logger.debug(f"Student insert skipped: {str(e)}")
            return

        db.session.execute(stmt)

    @staticmethod
    def _rollback():
        # Runs inside error handlers, which must not raise
        try:
            db.session.rollback()
        except Exception as e:
            logger.error(f"Rollback failed: {str(e)}")

    @staticmethod
    def _resolve_integrity_error(session_id, student_id, error):
        """A lost insert race surfaces as an integrity error; anything else is a storage fault."""
        try:
            if AttendanceService._record_exists(session_id, student_id):
                logger.info(f"Concurrent duplicate submission for {student_id} in session {session_id}")
                return SubmissionOutcome.rejected(SubmissionError.DUPLICATE_SUBMISSION)
        except SQLAlchemyError as e:
            AttendanceService._rollback()
            logger.error(f"Database error while re-checking duplicate: {str(e)}")

        logger.error(f"Database integrity error during attendance submission: {str(error)}")
        return SubmissionOutcome.rejected(SubmissionError.UNEXPECTED_STORAGE_ERROR)

    @staticmethod
    def _describe_invalid_session(session, qr_id, now):
        # Only for logs; callers always see the merged message
        if session is None:
            return 'unknown session'
        if session.qr_id != qr_id:
            return 'token mismatch'
        return f'expired at {session.expires_at.isoformat()} (now {now.isoformat()})'

    @staticmethod
    def _format_record(record):
        """Format an attendance record for responses."""
        return {
            'id': record.id,
            'session_id': record.session_id,
            'student_id': record.student_id,
            'student_name': record.student.full_name if record.student else None,
            'registration_number': record.student.registration_number if record.student else None,
            'scan_timestamp': record.scan_timestamp.isoformat(),
            'latitude': record.latitude,
            'longitude': record.longitude
        }
