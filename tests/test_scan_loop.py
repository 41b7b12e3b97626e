import threading

import pytest

from snap.scanner.errors import MalformedPayload, ResourceUnavailable
from snap.scanner.loop import AttemptStatus, ScanLoop
from snap.scanner.payload import ScanPayload

PAYLOAD_TEXT = '{"sessionId":"S1","qrId":"q-1"}'


class FakeFrameSource:
    """Frame source whose frames are the strings the fake decoder returns."""

    def __init__(self, frames=None, ready_after=0, open_error=None, read_error=None):
        self.frames = list(frames or [])
        self.ready_after = ready_after
        self.open_error = open_error
        self.read_error = read_error
        self.opened = 0
        self.released = 0
        self.reads = 0
        self._checks = 0

    def open(self):
        if self.open_error:
            raise self.open_error
        self.opened += 1

    def is_ready(self):
        self._checks += 1
        return self._checks > self.ready_after

    def read(self):
        if self.read_error:
            raise self.read_error
        self.reads += 1
        return self.frames.pop(0) if self.frames else 'blank'

    def release(self):
        self.released += 1


def decode(frame):
    return None if frame == 'blank' else frame


def make_loop(source, scheduler=None):
    return ScanLoop(source, decode, scheduler=scheduler or (lambda interval: None))


def test_decodes_valid_payload():
    source = FakeFrameSource(frames=['blank', 'blank', PAYLOAD_TEXT])

    payload = make_loop(source).run()

    assert payload == ScanPayload('S1', 'q-1')
    assert source.reads == 3
    assert source.released == 1


def test_not_ready_frames_are_skipped():
    source = FakeFrameSource(frames=[PAYLOAD_TEXT], ready_after=2)

    statuses = [attempt.status for attempt in make_loop(source).attempts()]

    assert statuses == [AttemptStatus.NOT_READY, AttemptStatus.NOT_READY, AttemptStatus.DECODED]


def test_malformed_code_ends_scan_once():
    source = FakeFrameSource(frames=['not json', PAYLOAD_TEXT])

    attempts = list(make_loop(source).attempts())

    assert [a.status for a in attempts] == [AttemptStatus.MALFORMED]
    assert attempts[0].error.message == 'Invalid QR code format. Expected JSON.'
    assert attempts[0].raw == 'not json'
    assert source.reads == 1
    assert source.released == 1


def test_run_raises_malformed():
    with pytest.raises(MalformedPayload):
        make_loop(FakeFrameSource(frames=['{"sessionId": "S1"}'])).run()


def test_cancel_stops_undecodable_scan():
    source = FakeFrameSource()
    ticks = []
    loop = None

    def scheduler(interval):
        ticks.append(interval)
        if len(ticks) == 5:
            loop.cancel()

    loop = make_loop(source, scheduler)

    attempts = list(loop.attempts())

    assert attempts[-1].status is AttemptStatus.CANCELLED
    assert all(a.status is AttemptStatus.NO_CODE for a in attempts[:-1])
    assert len(attempts) == 6
    assert source.released == 1
    assert loop.is_open is False


def test_run_returns_none_when_cancelled_before_start():
    source = FakeFrameSource(frames=[PAYLOAD_TEXT])
    loop = make_loop(source)
    loop.cancel()

    assert loop.run() is None
    assert source.opened == 0
    assert source.reads == 0


def test_code_decoded_during_cancel_is_dropped():
    loop = None

    def decode_and_cancel(frame):
        loop.cancel()
        return frame

    source = FakeFrameSource(frames=[PAYLOAD_TEXT])
    loop = ScanLoop(source, decode_and_cancel, scheduler=lambda interval: None)

    attempts = list(loop.attempts())

    assert [a.status for a in attempts] == [AttemptStatus.CANCELLED]


def test_cancel_from_another_thread():
    source = FakeFrameSource()
    loop = ScanLoop(source, decode, interval=0.01)
    result = {}

    def scan():
        result['payload'] = loop.run()

    worker = threading.Thread(target=scan)
    worker.start()
    while source.reads < 3:
        worker.join(0.01)
    loop.cancel()
    worker.join(5)

    assert not worker.is_alive()
    assert result['payload'] is None
    assert source.released == 1


def test_open_failure_is_resource_unavailable():
    source = FakeFrameSource(open_error=PermissionError('denied'))

    with pytest.raises(ResourceUnavailable) as excinfo:
        make_loop(source).run()

    assert excinfo.value.message == 'Camera permission denied. Please enable it in your settings.'
    assert source.released == 0


def test_read_failure_releases_camera():
    source = FakeFrameSource(read_error=OSError('unplugged'))

    with pytest.raises(ResourceUnavailable) as excinfo:
        make_loop(source).run()

    assert excinfo.value.message == 'The camera stopped responding. Please try again.'
    assert source.released == 1


def test_closing_generator_early_releases_camera():
    source = FakeFrameSource()
    attempts = make_loop(source).attempts()

    assert next(attempts).status is AttemptStatus.NO_CODE
    attempts.close()

    assert source.released == 1


def test_context_manager_releases_and_cancels():
    source = FakeFrameSource()

    with make_loop(source) as loop:
        assert loop.is_open
        assert source.opened == 1

    assert source.released == 1
    assert loop.cancelled


def test_loop_runs_once():
    loop = make_loop(FakeFrameSource(frames=[PAYLOAD_TEXT]))
    loop.run()

    with pytest.raises(RuntimeError):
        loop.run()


def test_close_is_idempotent():
    source = FakeFrameSource()
    loop = make_loop(source)
    loop.open()
    loop.close()
    loop.close()

    assert source.released == 1


def test_cancel_releases_idle_camera():
    source = FakeFrameSource()
    loop = make_loop(source)
    loop.open()

    loop.cancel()

    assert source.released == 1
    assert loop.is_open is False


def test_cancel_between_attempts_releases_camera():
    source = FakeFrameSource()
    loop = make_loop(source)
    attempts = loop.attempts()

    assert next(attempts).status is AttemptStatus.NO_CODE
    loop.cancel()

    assert source.released == 1
    assert next(attempts).status is AttemptStatus.CANCELLED
    assert source.reads == 1
    assert source.released == 1


def test_cancel_during_tick_leaves_release_to_scanner():
    loop = None
    released_during_decode = []

    def decode_and_cancel(frame):
        loop.cancel()
        released_during_decode.append(source.released)
        return None

    source = FakeFrameSource()
    loop = ScanLoop(source, decode_and_cancel, scheduler=lambda interval: None)

    statuses = [attempt.status for attempt in loop.attempts()]

    assert released_during_decode == [0]
    assert statuses == [AttemptStatus.NO_CODE, AttemptStatus.CANCELLED]
    assert source.released == 1
