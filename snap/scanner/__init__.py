# scanner/__init__.py
"""Student-side QR scanner client."""

from .errors import (
    ScannerError, MalformedPayload, ResourceUnavailable, LocationUnavailable, LoginCooldownActive
)
from .payload import ScanPayload, parse_scan_payload
from .loop import ScanLoop, ScanAttempt, AttemptStatus
from .identity import StudentIdentity
from .cooldown import LoginCooldown, StudentSession, CooldownStore
from .client import AttendanceClient, CheckInFlow, FlowState, Location, SubmissionResult

__all__ = [
    'ScannerError',
    'MalformedPayload',
    'ResourceUnavailable',
    'LocationUnavailable',
    'LoginCooldownActive',
    'ScanPayload',
    'parse_scan_payload',
    'ScanLoop',
    'ScanAttempt',
    'AttemptStatus',
    'StudentIdentity',
    'LoginCooldown',
    'StudentSession',
    'CooldownStore',
    'AttendanceClient',
    'CheckInFlow',
    'FlowState',
    'Location',
    'SubmissionResult'
]
