# controllers/api.py
"""
JSON API used by the scanner client and teacher tooling.
Handles attendance submission and attendance session management.
"""

import logging

from flask import Blueprint, request, jsonify, Response

from snap.controllers.forms.submission_forms import AttendanceSubmissionForm, SessionCreateForm
from snap.services.attendance_service import AttendanceService, SubmissionError
from snap.services.qr_code_service import QRCodeService
from snap.services.session_service import SessionService

api_bp = Blueprint('api', __name__)

logger = logging.getLogger('api')


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _validation_failed(form):
    return jsonify({
        'success': False,
        'message': 'Invalid request data',
        'error_code': 'validation_error',
        'errors': form.errors
    }), 400


@api_bp.route('/attendance', methods=['POST'])
def submit_attendance():
    """Record attendance for a scanned session QR code."""
    data = _json_body()
    if data is None:
        return jsonify({
            'success': False,
            'message': 'No data provided',
            'error_code': 'missing_data'
        }), 400

    form = AttendanceSubmissionForm.from_json(data)
    if not form.validate():
        logger.info(f"Rejected malformed submission: {form.errors}")
        return _validation_failed(form)

    outcome = AttendanceService.submit_attendance(
        session_id=form.session_id.data.strip(),
        qr_id=form.qr_id.data.strip(),
        student_id=form.student_id.data.strip(),
        scan_timestamp=form.scanned_at,
        latitude=form.latitude.data,
        longitude=form.longitude.data,
        full_name=form.student_name.data or None,
        email=form.student_email.data or None,
        phone_number=form.student_phone.data or None
    )

    status = 500 if outcome.error_code == SubmissionError.UNEXPECTED_STORAGE_ERROR else 200
    return jsonify(outcome.to_dict()), status


@api_bp.route('/sessions', methods=['POST'])
def create_session():
    """Open an attendance session and return its QR payload."""
    form = SessionCreateForm.from_json(_json_body() or {})
    if not form.validate():
        return _validation_failed(form)

    result = SessionService.create_session(
        ttl_seconds=form.ttl_seconds.data,
        class_id=form.class_id.data or None,
        teacher_id=form.teacher_id.data or None
    )

    if not result['success']:
        status = 500 if result['error_code'] == 'database_error' else 400
        return jsonify(result), status

    return jsonify(result), 201


@api_bp.route('/sessions/<session_id>')
def get_session(session_id):
    session = SessionService.get_session(session_id)
    if session is None:
        return jsonify({
            'success': False,
            'message': 'Session not found',
            'error_code': 'session_not_found'
        }), 404

    return jsonify({
        'success': True,
        'session': session.to_dict(),
        'qr_payload': session.to_qr_payload(),
        'is_expired': session.is_expired()
    })


@api_bp.route('/sessions/<session_id>/rotate', methods=['POST'])
def rotate_session_qr(session_id):
    result = SessionService.rotate_qr(session_id)
    if result['success']:
        return jsonify(result)

    status = {'session_not_found': 404, 'session_expired': 409}.get(result['error_code'], 500)
    return jsonify(result), status


@api_bp.route('/sessions/<session_id>/qr.png')
def session_qr_code(session_id):
    """PNG QR code for display on the teacher's screen."""
    session = SessionService.get_session(session_id)
    if session is None:
        return jsonify({
            'success': False,
            'message': 'Session not found',
            'error_code': 'session_not_found'
        }), 404

    png = QRCodeService.render_png(session.to_qr_payload())
    return Response(png, mimetype='image/png', headers={'Cache-Control': 'no-store'})


@api_bp.route('/sessions/<session_id>/records')
def session_records(session_id):
    result = AttendanceService.get_session_records(session_id)
    if result['success']:
        return jsonify(result)

    status = 404 if result['error_code'] == SubmissionError.SESSION_NOT_FOUND else 500
    return jsonify(result), status
