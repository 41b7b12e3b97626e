# scanner/client.py
"""
Student-side check-in: submission client and the check-in state machine.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import requests

from .errors import LocationUnavailable, ScannerError

logger = logging.getLogger('scanner')

NETWORK_ERROR_MESSAGE = 'A network error occurred. Please try again.'
NO_RESPONSE_MESSAGE = 'No response from submission function.'


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    message: str
    error_code: Optional[str] = None


class AttendanceClient:
    """HTTP client for the attendance API."""

    def __init__(self, base_url, timeout=10, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = session or requests.Session()

    def build_submission(self, payload, identity, scanned_at, location=None):
        body = {
            'sessionId': payload.session_id,
            'qrId': payload.qr_id,
            'studentId': identity.student_id,
            'scanTimestamp': scanned_at.isoformat(),
            'studentName': identity.full_name,
            'studentEmail': identity.email,
            'studentPhone': identity.phone_number,
        }
        if location is not None:
            body['latitude'] = location.latitude
            body['longitude'] = location.longitude
        return body

    def submit(self, payload, identity, scanned_at, location=None):
        """
        Submit a scan to the attendance API.

        Returns:
            SubmissionResult: server outcome, or a failed result for network and protocol errors
        """
        body = self.build_submission(payload, identity, scanned_at, location)

        try:
            response = self.http.post(f"{self.base_url}/api/attendance", json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Submission Error: {e}")
            return SubmissionResult(False, NETWORK_ERROR_MESSAGE, 'network_error')

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Submission returned non-JSON response (HTTP {response.status_code})")
            return SubmissionResult(False, NO_RESPONSE_MESSAGE, 'no_response')

        if not isinstance(data, dict) or 'message' not in data:
            return SubmissionResult(False, NO_RESPONSE_MESSAGE, 'no_response')

        success = bool(data.get('success')) and response.ok
        if not success:
            logger.info(f"Submission rejected (HTTP {response.status_code}): {data.get('message')}")

        return SubmissionResult(success, data['message'], data.get('error_code'))


class FlowState(Enum):
    READY = 'ready'
    LOCATING = 'locating'
    SCANNING = 'scanning'
    SENDING = 'sending'
    SENT = 'sent'


class CheckInFlow:
    """
    READY -> LOCATING -> SCANNING -> SENDING -> SENT.

    Location and scan failures return the flow to READY; submission results, successful or
    not, end in SENT until reset() is called.

    Args:
        client: AttendanceClient
        identity: StudentIdentity of the signed-in student
        scan_loop_factory: Callable returning a fresh ScanLoop
        location_provider: Optional callable returning a Location; raises LocationUnavailable
        on_state_change: Optional callable receiving each new FlowState
        clock: Callable returning the current aware datetime
    """

    def __init__(self, client, identity, scan_loop_factory, location_provider=None,
                 on_state_change=None, clock=None):
        self.client = client
        self.identity = identity
        self.scan_loop_factory = scan_loop_factory
        self.location_provider = location_provider
        self.on_state_change = on_state_change
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.state = FlowState.READY
        self.location = None
        self.result = None
        self._active_loop = None

    def mark_presence(self):
        """
        Run one check-in from READY.

        Returns:
            SubmissionResult: the outcome shown to the student, or None if scanning was cancelled
        """
        if self.state is not FlowState.READY:
            raise RuntimeError(f"Check-in already in progress ({self.state.value})")

        if self.location_provider is not None:
            self._set_state(FlowState.LOCATING)
            try:
                self.location = self.location_provider()
            except LocationUnavailable as e:
                logger.warning(f"Location Error: {e.message}")
                self.reset()
                return SubmissionResult(False, e.message, e.code)

        self._set_state(FlowState.SCANNING)
        loop = self.scan_loop_factory()
        self._active_loop = loop
        try:
            with loop:
                payload = loop.run()
        except ScannerError as e:
            logger.warning(f"QR Scan Error: {e.message}")
            self.reset()
            return SubmissionResult(False, e.message, e.code)
        finally:
            self._active_loop = None

        if payload is None:
            self.reset()
            return None

        self._set_state(FlowState.SENDING)
        self.result = self.client.submit(payload, self.identity, self.clock(), self.location)
        self._set_state(FlowState.SENT)
        return self.result

    def cancel(self):
        """
        Abort an in-progress scan.

        Returns:
            bool: False when no scan was running
        """
        loop = self._active_loop
        if loop is None:
            return False
        loop.cancel()
        return True

    def reset(self):
        self.location = None
        self.result = None
        self._set_state(FlowState.READY)

    def _set_state(self, state):
        self.state = state
        logger.debug(f"Check-in state -> {state.value}")
        if self.on_state_change is not None:
            self.on_state_change(state)


class StaticLocationProvider:
    """Location fixed by configuration, for devices without positioning."""

    def __init__(self, latitude=None, longitude=None):
        self.latitude = latitude
        self.longitude = longitude

    def __call__(self):
        if self.latitude is None or self.longitude is None:
            raise LocationUnavailable()
        return Location(self.latitude, self.longitude)
