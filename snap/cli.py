# cli.py
"""
Flask CLI commands for teachers and operators.
"""

import click
from flask import current_app
from flask.cli import with_appcontext

from snap.extensions import create_tables


@click.command("init-db")
@with_appcontext
def init_database():
    """Create all database tables."""
    create_tables()
    click.echo("Database tables created.")


@click.command("create-session")
@click.option("--ttl", "ttl_seconds", type=int, default=None,
              help="Session lifetime in seconds (defaults to DEFAULT_SESSION_TTL_SECONDS)")
@click.option("--class-id", default=None, help="Class this session belongs to")
@click.option("--teacher-id", default=None, help="Teacher opening the session")
@click.option("--qr-out", type=click.Path(dir_okay=False, writable=True), default=None,
              help="Write the session QR code to this PNG file")
@with_appcontext
def create_session(ttl_seconds, class_id, teacher_id, qr_out):
    """
    Open an attendance session and print its QR payload.

    Example usage:
        flask create-session --ttl 600 --class-id CS101 --qr-out cs101.png
    """
    from snap.services.qr_code_service import QRCodeService
    from snap.services.session_service import SessionService

    result = SessionService.create_session(
        ttl_seconds=ttl_seconds,
        class_id=class_id,
        teacher_id=teacher_id
    )

    if not result['success']:
        raise click.ClickException(result['message'])

    session = result['session']
    click.echo(f"Session:  {session['id']}")
    click.echo(f"Expires:  {session['expires_at']} UTC")
    click.echo(f"Payload:  {QRCodeService.encode_payload(result['qr_payload'])}")

    if qr_out:
        QRCodeService.save_png(result['qr_payload'], qr_out)
        click.echo(f"QR code written to {qr_out}")


@click.command("session-records")
@click.argument("session_id")
@with_appcontext
def session_records(session_id):
    """List attendance records for a session."""
    from snap.services.attendance_service import AttendanceService

    result = AttendanceService.get_session_records(session_id)
    if not result['success']:
        raise click.ClickException(result['message'])

    records = result['records']
    if not records:
        click.echo(f"No attendance recorded for session {session_id}")
        return

    click.echo(f"{'Student':<30} {'Reg. No':<14} {'Scanned (UTC)':<28} {'Location':<24}")
    click.echo("-" * 96)
    for record in records:
        location = (f"{record['latitude']:.5f},{record['longitude']:.5f}"
                    if record['latitude'] is not None and record['longitude'] is not None else "-")
        click.echo(f"{(record['student_name'] or record['student_id'])[:30]:<30} "
                   f"{record['registration_number'] or '-':<14} "
                   f"{record['scan_timestamp']:<28} {location:<24}")

    click.echo(f"\n{result['total']} student(s) present.")
    current_app.logger.info(f"Listed {result['total']} records for session {session_id}")


def register_cli_commands(app):
    """
    Register all CLI commands with the Flask application.

    Args:
        app: Flask application instance
    """
    app.cli.add_command(init_database)
    app.cli.add_command(create_session)
    app.cli.add_command(session_records)
