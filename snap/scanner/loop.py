# scanner/loop.py
"""
Cooperative QR scan loop.

The loop samples one frame per tick, tries to decode it and stops after the first decoded
code, whether that code parses into a session payload or not. Ticks are paced by a scheduler
instead of a busy loop, and cancel() may be called from any thread: it wakes the pending
tick, stops further sampling and releases the camera.
"""

import logging
import threading
from contextlib import closing
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import MalformedPayload, ResourceUnavailable
from .payload import ScanPayload, parse_scan_payload

logger = logging.getLogger('scanner')

# Roughly one display refresh
DEFAULT_TICK_INTERVAL = 1 / 30


class AttemptStatus(Enum):
    NOT_READY = 'not_ready'
    NO_CODE = 'no_code'
    DECODED = 'decoded'
    MALFORMED = 'malformed'
    CANCELLED = 'cancelled'


TERMINAL_STATUSES = {AttemptStatus.DECODED, AttemptStatus.MALFORMED, AttemptStatus.CANCELLED}


@dataclass(frozen=True)
class ScanAttempt:
    """Outcome of one tick of the scan loop."""

    status: AttemptStatus
    payload: Optional[ScanPayload] = None
    error: Optional[MalformedPayload] = None
    raw: Optional[str] = None

    @property
    def terminal(self):
        return self.status in TERMINAL_STATUSES


class ScanLoop:
    """
    Turns a frame source into at most one ScanPayload.

    Args:
        frame_source: Object with open(), is_ready(), read() and release()
        decoder: Callable taking a frame and returning the decoded text or None
        scheduler: Callable taking the tick interval in seconds; waits until the next tick.
            Defaults to a wait that returns early on cancellation.
        interval: Seconds between ticks
    """

    def __init__(self, frame_source, decoder, scheduler=None, interval=DEFAULT_TICK_INTERVAL):
        self.frame_source = frame_source
        self.decoder = decoder
        self.interval = interval
        self._scheduler = scheduler
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._opened = False
        self._started = False
        self._in_tick = False

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    @property
    def is_open(self):
        return self._opened

    def open(self):
        """
        Acquire the camera.

        Raises:
            ResourceUnavailable: camera missing or permission denied
        """
        with self._lock:
            # A cancelled loop never acquires the camera
            if self._opened or self.cancelled:
                return
            try:
                self.frame_source.open()
            except ResourceUnavailable:
                raise
            except Exception as e:
                logger.error(f"Error accessing camera: {e}")
                raise ResourceUnavailable() from e
            self._opened = True
            logger.debug("Camera stream acquired")

    def close(self):
        """Release the camera; safe to call more than once."""
        with self._lock:
            self._release()

    def cancel(self):
        """
        Stop scanning; no payload is produced after this call.

        The camera is released right away unless a frame is being processed, in which case
        the scanning thread releases it as soon as that tick ends.
        """
        self._cancelled.set()
        with self._lock:
            if not self._in_tick:
                self._release()
        logger.info("Scan cancelled")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._cancelled.set()
        self.close()
        return False

    def attempts(self):
        """
        Generate one ScanAttempt per tick until a terminal attempt.

        The camera is opened if needed and released when the generator finishes, fails or
        is closed early. A loop can only be iterated once.

        Raises:
            ResourceUnavailable: camera could not be opened or failed mid-scan
        """
        if self._started:
            raise RuntimeError("ScanLoop can only be run once")
        self._started = True

        self.open()
        try:
            while True:
                if self.cancelled:
                    yield ScanAttempt(AttemptStatus.CANCELLED)
                    return

                with self._lock:
                    # cancel() may have released the camera between ticks
                    self._in_tick = self._opened and not self.cancelled
                if not self._in_tick:
                    yield ScanAttempt(AttemptStatus.CANCELLED)
                    return

                try:
                    attempt = self._tick()
                finally:
                    with self._lock:
                        self._in_tick = False

                # A code decoded while cancel() raced in is dropped
                if attempt.terminal and self.cancelled:
                    yield ScanAttempt(AttemptStatus.CANCELLED)
                    return

                yield attempt
                if attempt.terminal:
                    return

                self._wait()
        finally:
            self.close()

    def run(self):
        """
        Scan until a terminal result.

        Returns:
            ScanPayload, or None when cancelled

        Raises:
            MalformedPayload: a code was decoded but is not a session payload
            ResourceUnavailable: camera could not be opened or failed mid-scan
        """
        with closing(self.attempts()) as attempts:
            for attempt in attempts:
                if attempt.status is AttemptStatus.DECODED:
                    return attempt.payload
                if attempt.status is AttemptStatus.MALFORMED:
                    raise attempt.error
        return None

    def _tick(self):
        try:
            if not self.frame_source.is_ready():
                return ScanAttempt(AttemptStatus.NOT_READY)
            frame = self.frame_source.read()
        except Exception as e:
            logger.error(f"Camera failed while scanning: {e}")
            raise ResourceUnavailable('The camera stopped responding. Please try again.') from e

        if frame is None:
            return ScanAttempt(AttemptStatus.NOT_READY)

        text = self.decoder(frame)
        if not text:
            return ScanAttempt(AttemptStatus.NO_CODE)

        try:
            payload = parse_scan_payload(text)
        except MalformedPayload as e:
            logger.warning(f"Scanned QR code is not a session payload: {text[:80]!r}")
            return ScanAttempt(AttemptStatus.MALFORMED, error=e, raw=text)

        logger.info(f"QR scan processed for session {payload.session_id}")
        return ScanAttempt(AttemptStatus.DECODED, payload=payload, raw=text)

    def _wait(self):
        if self._scheduler is not None:
            self._scheduler(self.interval)
        else:
            self._cancelled.wait(self.interval)

    def _release(self):
        # Caller holds self._lock
        if not self._opened:
            return
        self._opened = False
        try:
            self.frame_source.release()
        finally:
            logger.debug("Camera stream released")
