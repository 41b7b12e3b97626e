import pytest
from click.testing import CliRunner

from snap.scanner.cli import _interrupt_handler, cli
from snap.scanner.client import CheckInFlow
from snap.services.qr_code_service import QRCodeService

SERVER = 'http://snap.test'


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def state_file(tmp_path):
    return str(tmp_path / 'cooldown.json')


@pytest.fixture
def qr_image(tmp_path):
    pytest.importorskip('cv2')
    return QRCodeService.save_png({'sessionId': 'S1', 'qrId': 'q-1'}, str(tmp_path / 'session.png'))


def scan_args(state_file, image, *extra):
    return ['scan', '--server', SERVER, '--student-id', 'student-1', '--name', 'Jane Doe',
            '--email', 'jane.21bce1234@uni.edu', '--image', image, '--state-file', state_file, *extra]


def test_scan_image_marks_attendance(runner, state_file, qr_image, requests_mock):
    requests_mock.post(f'{SERVER}/api/attendance', json={
        'success': True, 'message': 'Attendance marked successfully!'
    })

    result = runner.invoke(cli, scan_args(state_file, qr_image, '--lat', '1.5', '--lon', '2.5'))

    assert result.exit_code == 0, result.output
    assert 'Welcome, Jane (REG-ID: 21BCE1234)' in result.output
    assert 'Attendance Marked! Attendance marked successfully!' in result.output
    body = requests_mock.last_request.json()
    assert (body['sessionId'], body['qrId'], body['studentId']) == ('S1', 'q-1', 'student-1')
    assert (body['latitude'], body['longitude']) == (1.5, 2.5)


def test_scan_reports_rejection(runner, state_file, qr_image, requests_mock):
    requests_mock.post(f'{SERVER}/api/attendance', json={
        'success': False, 'message': 'Attendance already marked for this session.'
    })

    result = runner.invoke(cli, scan_args(state_file, qr_image))

    assert result.exit_code == 1
    assert 'Submission Failed: Attendance already marked for this session.' in result.output


def test_logout_blocks_scan(runner, state_file, qr_image, requests_mock):
    logout = runner.invoke(cli, ['logout', '--student-id', 'student-1', '--state-file', state_file])
    assert logout.exit_code == 0
    assert 'Signed out.' in logout.output

    result = runner.invoke(cli, scan_args(state_file, qr_image))

    assert result.exit_code != 0
    assert 'before signing in again' in result.output
    assert not requests_mock.called


def test_scan_image_without_code(runner, state_file, tmp_path, requests_mock):
    cv2 = pytest.importorskip('cv2')
    numpy = pytest.importorskip('numpy')
    blank = str(tmp_path / 'blank.png')
    cv2.imwrite(blank, numpy.full((120, 120, 3), 255, dtype=numpy.uint8))

    result = runner.invoke(cli, scan_args(state_file, blank))

    assert result.exit_code == 1
    assert 'No QR code found' in result.output
    assert not requests_mock.called


def test_interrupt_outside_scan_is_not_swallowed():
    flow = CheckInFlow(client=None, identity=None, scan_loop_factory=lambda: None)

    with pytest.raises(KeyboardInterrupt):
        _interrupt_handler(flow)(2, None)


def test_interrupt_during_scan_cancels_loop():
    class Loop:
        cancelled = False

        def cancel(self):
            self.cancelled = True

    flow = CheckInFlow(client=None, identity=None, scan_loop_factory=lambda: None)
    flow._active_loop = Loop()

    _interrupt_handler(flow)(2, None)

    assert flow._active_loop.cancelled
