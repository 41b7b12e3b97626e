# services/session_service.py
"""
Attendance session management for teachers.
Opens sessions with a short-lived QR token and rotates the token while a session is live.
"""

import logging
import secrets
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from snap.extensions import db
from snap.models.base import utcnow, to_naive_utc
from snap.models.session import AttendanceSession

logger = logging.getLogger('session_service')


class SessionError:
    """Session service error codes."""
    SESSION_NOT_FOUND = 'session_not_found'
    SESSION_EXPIRED = 'session_expired'
    INVALID_TTL = 'invalid_ttl'
    DATABASE_ERROR = 'database_error'


class SessionService:
    """Service for creating and maintaining attendance sessions."""

    @staticmethod
    def generate_qr_id():
        """Random URL-safe token embedded in the session QR code."""
        return secrets.token_urlsafe(16)

    @staticmethod
    def create_session(ttl_seconds=None, class_id=None, teacher_id=None, now=None):
        """
        Open a new attendance session.

        Args:
            ttl_seconds: Session lifetime; defaults to DEFAULT_SESSION_TTL_SECONDS
            class_id: Optional class reference
            teacher_id: Optional teacher reference
            now: Creation time override (naive UTC)

        Returns:
            dict: {'success', 'session', 'qr_payload'} or an error response
        """
        if ttl_seconds is None:
            ttl_seconds = current_app.config.get('DEFAULT_SESSION_TTL_SECONDS', 600)

        max_ttl = current_app.config.get('MAX_SESSION_TTL_SECONDS', 24 * 60 * 60)
        if not isinstance(ttl_seconds, int) or isinstance(ttl_seconds, bool) or not 0 < ttl_seconds <= max_ttl:
            return {
                'success': False,
                'message': f'Session lifetime must be between 1 and {max_ttl} seconds',
                'error_code': SessionError.INVALID_TTL
            }

        created_at = to_naive_utc(now) if now else utcnow()

        try:
            session = AttendanceSession(
                qr_id=SessionService.generate_qr_id(),
                created_at=created_at,
                updated_at=created_at,
                expires_at=created_at + timedelta(seconds=ttl_seconds),
                class_id=class_id,
                teacher_id=teacher_id
            )
            session.save()

            logger.info(f"Opened attendance session {session.id} for class {class_id or '-'} "
                        f"until {session.expires_at.isoformat()}")

            return {
                'success': True,
                'message': 'Attendance session created',
                'session': session.to_dict(),
                'qr_payload': session.to_qr_payload()
            }

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error creating session: {str(e)}")
            return {
                'success': False,
                'message': 'Database error during session creation',
                'error_code': SessionError.DATABASE_ERROR
            }

    @staticmethod
    def get_session(session_id):
        """Return the session or None."""
        return db.session.get(AttendanceSession, session_id)

    @staticmethod
    def rotate_qr(session_id, now=None):
        """
        Issue a new QR token for a live session; codes showing the old token stop validating.

        Returns:
            dict: {'success', 'session', 'qr_payload'} or an error response
        """
        try:
            session = db.session.get(AttendanceSession, session_id)
            if session is None:
                return {
                    'success': False,
                    'message': 'Session not found',
                    'error_code': SessionError.SESSION_NOT_FOUND
                }

            if session.is_expired(to_naive_utc(now) if now else None):
                return {
                    'success': False,
                    'message': 'Session has already expired',
                    'error_code': SessionError.SESSION_EXPIRED
                }

            session.qr_id = SessionService.generate_qr_id()
            db.session.commit()

            logger.info(f"Rotated QR token for session {session.id}")

            return {
                'success': True,
                'message': 'QR token rotated',
                'session': session.to_dict(),
                'qr_payload': session.to_qr_payload()
            }

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error rotating QR token: {str(e)}")
            return {
                'success': False,
                'message': 'Database error during QR rotation',
                'error_code': SessionError.DATABASE_ERROR
            }
