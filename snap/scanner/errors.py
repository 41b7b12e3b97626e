# scanner/errors.py
"""Terminal errors raised by the scanner client."""


class ScannerError(Exception):
    """Base class for scanner errors; the message is safe to show to the student."""

    code = 'scanner_error'
    default_message = 'Something went wrong while scanning. Please try again.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def message(self):
        return self.args[0]


class MalformedPayload(ScannerError):
    """A QR code was decoded but does not hold a session payload."""

    code = 'malformed_payload'
    default_message = 'Invalid QR code format. Expected JSON.'


class ResourceUnavailable(ScannerError):
    """The camera could not be opened or stopped delivering frames."""

    code = 'resource_unavailable'
    default_message = 'Camera permission denied. Please enable it in your settings.'


class LocationUnavailable(ScannerError):
    code = 'location_unavailable'
    default_message = 'Could not retrieve your location. Please enable location services and try again.'


class LoginCooldownActive(ScannerError):
    """A new session was requested before the post-logout cooldown elapsed."""

    code = 'login_cooldown_active'

    def __init__(self, until, message=None):
        self.until = until
        super().__init__(message or f'Please wait until {until:%H:%M:%S} UTC before signing in again.')
