import pytest

cv2 = pytest.importorskip('cv2')

from snap.scanner.camera import ImageFrameSource, QRDecoder  # noqa: E402
from snap.scanner.errors import ResourceUnavailable  # noqa: E402
from snap.scanner.loop import ScanLoop  # noqa: E402
from snap.scanner.payload import ScanPayload  # noqa: E402
from snap.services.qr_code_service import QRCodeService  # noqa: E402


def test_rendered_session_code_scans_back(tmp_path):
    path = QRCodeService.save_png({'sessionId': 'S1', 'qrId': 'q-123'}, str(tmp_path / 'session.png'))

    loop = ScanLoop(ImageFrameSource(path), QRDecoder(), scheduler=lambda interval: None)

    assert loop.run() == ScanPayload('S1', 'q-123')


def test_blank_image_has_no_code(tmp_path):
    numpy = pytest.importorskip('numpy')
    path = str(tmp_path / 'blank.png')
    cv2.imwrite(path, numpy.full((200, 200, 3), 255, dtype=numpy.uint8))

    source = ImageFrameSource(path)
    source.open()

    assert QRDecoder()(source.read()) is None


def test_unreadable_image(tmp_path):
    path = tmp_path / 'broken.png'
    path.write_bytes(b'not an image')

    with pytest.raises(ResourceUnavailable):
        ImageFrameSource(str(path)).open()
