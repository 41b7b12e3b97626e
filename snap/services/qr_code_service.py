# services/qr_code_service.py
"""
QR code rendering for attendance sessions.
Encodes the session payload as compact JSON so the scanner client can parse it back.
"""

import io
import json
import logging
import os

import qrcode

logger = logging.getLogger('qr_code_service')


class QRCodeService:
    """Service for rendering session QR codes."""

    @staticmethod
    def encode_payload(payload):
        """Compact JSON text placed in the QR code."""
        return json.dumps(payload, separators=(',', ':'))

    @staticmethod
    def make_image(payload):
        # High error correction so the code survives projector glare
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=10,
            border=4,
        )
        qr.add_data(QRCodeService.encode_payload(payload))
        qr.make(fit=True)
        return qr.make_image(fill_color="black", back_color="white")

    @staticmethod
    def render_png(payload):
        """
        Render a payload as PNG bytes.

        Args:
            payload: Dictionary to encode in the QR code

        Returns:
            bytes: PNG image data
        """
        buffer = io.BytesIO()
        QRCodeService.make_image(payload).save(buffer, format='PNG')
        return buffer.getvalue()

    @staticmethod
    def save_png(payload, path):
        """
        Write a payload's QR code to a PNG file, creating parent directories.

        Returns:
            str: File path written
        """
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(path, 'wb') as fh:
            fh.write(QRCodeService.render_png(payload))

        logger.info(f"Saved QR code to {path}")
        return path
