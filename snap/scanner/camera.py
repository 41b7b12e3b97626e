# scanner/camera.py
"""
OpenCV frame sources and QR decoder for the scan loop.
"""

import logging

import cv2

from .errors import ResourceUnavailable

logger = logging.getLogger('scanner')


class CameraFrameSource:
    """Live frames from a local camera."""

    def __init__(self, index=0, width=None, height=None):
        self.index = index
        self.width = width
        self.height = height
        self._capture = None

    def open(self):
        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            raise ResourceUnavailable()

        if self.width:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        if self.height:
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        self._capture = capture
        logger.info(f"Opened camera {self.index}")

    def is_ready(self):
        return self._capture is not None and self._capture.isOpened()

    def read(self):
        """Current frame, or None while the camera is still warming up."""
        ok, frame = self._capture.read()
        return frame if ok else None

    def release(self):
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"Released camera {self.index}")


class ImageFrameSource:
    """A single still image served as every frame; used to check a QR code saved to disk."""

    def __init__(self, path):
        self.path = path
        self._frame = None

    def open(self):
        frame = cv2.imread(self.path)
        if frame is None:
            raise ResourceUnavailable(f'Could not read image {self.path}.')
        self._frame = frame

    def is_ready(self):
        return self._frame is not None

    def read(self):
        return self._frame

    def release(self):
        self._frame = None


class QRDecoder:
    """Decode the first QR code in a frame with OpenCV's detector."""

    def __init__(self):
        self._detector = cv2.QRCodeDetector()

    def __call__(self, frame):
        try:
            data, _points, _straight = self._detector.detectAndDecode(frame)
        except cv2.error as e:
            # Counted as no detection for this frame
            logger.debug(f"QR detection failed on frame: {e}")
            return None
        return data or None
