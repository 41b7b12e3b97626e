# scanner/payload.py
import json
from dataclasses import dataclass

from .errors import MalformedPayload


@dataclass(frozen=True)
class ScanPayload:
    """Decoded contents of a session QR code."""

    session_id: str
    qr_id: str

    def to_dict(self):
        return {'sessionId': self.session_id, 'qrId': self.qr_id}


def parse_scan_payload(text):
    """
    Parse scanned QR text into a ScanPayload.

    The text must be a JSON object whose ``sessionId`` and ``qrId`` are non-empty strings;
    other keys are ignored.

    Raises:
        MalformedPayload: for any other shape
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        raise MalformedPayload()

    if not isinstance(data, dict):
        raise MalformedPayload()

    session_id = data.get('sessionId')
    qr_id = data.get('qrId')
    for value in (session_id, qr_id):
        if not isinstance(value, str) or not value.strip():
            raise MalformedPayload("QR code is missing 'qrId' or 'sessionId'.")

    return ScanPayload(session_id=session_id.strip(), qr_id=qr_id.strip())
