# scanner/settings.py
import os

from dotenv import load_dotenv

load_dotenv()


def _float_or_none(value):
    return float(value) if value not in (None, '') else None


class ScannerConfig:
    """Scanner client settings read from the environment."""

    SERVER_URL = os.environ.get('SNAP_SERVER_URL', 'http://127.0.0.1:5000')
    REQUEST_TIMEOUT = float(os.environ.get('SNAP_REQUEST_TIMEOUT', 10))
    CAMERA_INDEX = int(os.environ.get('SNAP_CAMERA_INDEX', 0))
    STATE_FILE = os.environ.get('SNAP_STATE_FILE') or os.path.join(
        os.path.expanduser('~'), '.snap', 'cooldown.json'
    )
    COOLDOWN_MINUTES = int(os.environ.get('LOGOUT_COOLDOWN_MINUTES', 10))

    # Identity supplied by the identity provider integration
    STUDENT_ID = os.environ.get('SNAP_STUDENT_ID')
    STUDENT_NAME = os.environ.get('SNAP_STUDENT_NAME')
    STUDENT_EMAIL = os.environ.get('SNAP_STUDENT_EMAIL')
    STUDENT_PHONE = os.environ.get('SNAP_STUDENT_PHONE')

    LATITUDE = _float_or_none(os.environ.get('SNAP_LATITUDE'))
    LONGITUDE = _float_or_none(os.environ.get('SNAP_LONGITUDE'))
