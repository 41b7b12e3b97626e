# scanner/cli.py
"""
snap-scan: command line check-in for students.

Example usage:
    snap-scan scan --student-id 7f3a... --name "Jane Doe" --email jane.21bce1234@uni.edu
    snap-scan scan --image session.png
    snap-scan logout
"""

import logging
import signal
from contextlib import closing

import click

from .client import AttendanceClient, CheckInFlow, FlowState, StaticLocationProvider
from .cooldown import CooldownStore, StudentSession
from .errors import LoginCooldownActive, ScannerError
from .identity import StudentIdentity
from .loop import AttemptStatus, ScanLoop
from .settings import ScannerConfig

STATUS_LINES = {
    FlowState.LOCATING: 'Getting location...',
    FlowState.SCANNING: 'Point your camera at the teacher\'s screen. Press Ctrl+C to cancel.',
    FlowState.SENDING: 'Sending attendance...',
}


def setup_logging(verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s %(threadName)s : %(message)s'
    )


def _single_image_loop_factory(path):
    """A still image either holds a code or never will; stop after the first empty decode."""
    from .camera import ImageFrameSource, QRDecoder

    class _OneShotLoop(ScanLoop):
        def run(self):
            with closing(self.attempts()) as attempts:
                for attempt in attempts:
                    if attempt.status is AttemptStatus.DECODED:
                        return attempt.payload
                    if attempt.status is AttemptStatus.MALFORMED:
                        raise attempt.error
                    if attempt.status is AttemptStatus.NO_CODE:
                        raise ScannerError(f'No QR code found in {path}.')
            return None

    return lambda: _OneShotLoop(ImageFrameSource(path), QRDecoder(), scheduler=lambda interval: None)


def _camera_loop_factory(index):
    from .camera import CameraFrameSource, QRDecoder

    return lambda: ScanLoop(CameraFrameSource(index), QRDecoder())


def _echo_state(state):
    if state in STATUS_LINES:
        click.echo(STATUS_LINES[state])


def _interrupt_handler(flow):
    """Ctrl+C cancels a running scan; outside scanning it interrupts as usual."""
    def handler(signum, frame):
        if not flow.cancel():
            raise KeyboardInterrupt
    return handler


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
def cli(verbose):
    """Snap attendance check-in."""
    setup_logging(verbose)


@cli.command()
@click.option('--server', default=ScannerConfig.SERVER_URL, show_default=True, help='Attendance API base URL')
@click.option('--student-id', default=ScannerConfig.STUDENT_ID, required=ScannerConfig.STUDENT_ID is None,
              help='Identifier issued by the identity provider')
@click.option('--name', default=ScannerConfig.STUDENT_NAME, help='Full name')
@click.option('--email', default=ScannerConfig.STUDENT_EMAIL, help='Institutional email')
@click.option('--phone', default=ScannerConfig.STUDENT_PHONE, help='Phone number')
@click.option('--camera', 'camera_index', type=int, default=ScannerConfig.CAMERA_INDEX, show_default=True)
@click.option('--image', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Decode a saved QR image instead of using the camera')
@click.option('--lat', 'latitude', type=float, default=ScannerConfig.LATITUDE)
@click.option('--lon', 'longitude', type=float, default=ScannerConfig.LONGITUDE)
@click.option('--state-file', default=ScannerConfig.STATE_FILE, help='Where the logout cooldown is kept')
def scan(server, student_id, name, email, phone, camera_index, image, latitude, longitude, state_file):
    """Scan the class QR code and mark attendance."""
    identity = StudentIdentity(student_id=student_id, full_name=name, email=email, phone_number=phone)
    store = CooldownStore(state_file)

    try:
        StudentSession.start(identity, cooldown=store.load())
    except LoginCooldownActive as e:
        raise click.ClickException(e.message)
    store.clear()

    registration = identity.registration_number
    click.echo(f"Welcome, {identity.first_name}" + (f" (REG-ID: {registration})" if registration else ""))

    location_provider = None
    if latitude is not None or longitude is not None:
        location_provider = StaticLocationProvider(latitude, longitude)

    flow = CheckInFlow(
        client=AttendanceClient(server, timeout=ScannerConfig.REQUEST_TIMEOUT),
        identity=identity,
        scan_loop_factory=_single_image_loop_factory(image) if image else _camera_loop_factory(camera_index),
        location_provider=location_provider,
        on_state_change=_echo_state
    )

    previous_handler = signal.signal(signal.SIGINT, _interrupt_handler(flow))
    try:
        result = flow.mark_presence()
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if result is None:
        click.echo('Scan cancelled.')
        return

    if result.success:
        click.secho(f"Attendance Marked! {result.message}", fg='green')
    else:
        click.secho(f"Submission Failed: {result.message}", fg='red', err=True)
        raise SystemExit(1)


@cli.command()
@click.option('--student-id', default=ScannerConfig.STUDENT_ID, required=ScannerConfig.STUDENT_ID is None)
@click.option('--state-file', default=ScannerConfig.STATE_FILE)
@click.option('--cooldown-minutes', type=int, default=ScannerConfig.COOLDOWN_MINUTES, show_default=True)
def logout(student_id, state_file, cooldown_minutes):
    """Sign out; signing in again is blocked until the cooldown passes."""
    session = StudentSession(identity=StudentIdentity(student_id=student_id))
    cooldown = session.logout(minutes=cooldown_minutes)
    CooldownStore(state_file).save(cooldown)
    click.echo(f"Signed out. You can sign in again after {cooldown.until:%H:%M:%S} UTC.")


def main():
    cli()


if __name__ == '__main__':
    main()
