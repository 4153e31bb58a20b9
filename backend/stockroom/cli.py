# Overview: Flask CLI command groups for bootstrap, seeding, and inspection.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Cameras:
# - python -m flask cameras add 101 --location "Dock A"
# - python -m flask cameras list
#
# RFID tags:
# - python -m flask tags register 1001 1002 1003
# - python -m flask tags list
#
# Users:
# - python -m flask users create --username admin --email admin@stockroom.local --password "secret1"

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import create_user
from .services.camera_service import CameraRegistry
from .services.tag_service import TagRegistry
from .validation import ServiceError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables (safe to re-run)."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('cameras')
def cameras_group():
    """Camera registry commands."""


@cameras_group.command('add')
@click.argument('camera_id', type=int)
@click.option('--location', default=None, help='Where the camera is mounted')
@with_appcontext
def add_camera(camera_id, location):
    try:
        camera = CameraRegistry(db.session).register(camera_id, location)
    except ServiceError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Registered camera {camera.camera_id}")


@cameras_group.command('list')
@with_appcontext
def list_cameras():
    cameras = CameraRegistry(db.session).list()
    if not cameras:
        click.echo("No cameras found.")
        return
    click.echo(f"{'ID':<10} {'Location'}")
    for camera in cameras:
        click.echo(f"{camera.camera_id:<10} {camera.location or '-'}")


@click.group('tags')
def tags_group():
    """RFID tag commands."""


@tags_group.command('register')
@click.argument('rfids', nargs=-1, type=int, required=True)
@with_appcontext
def register_tags(rfids):
    registry = TagRegistry(db.session)
    failed = 0
    for rfid in rfids:
        try:
            registry.register(rfid)
            click.echo(f"PASS Registered RFID tag {rfid}")
        except ServiceError as e:
            failed += 1
            click.echo(f"WARN RFID tag {rfid}: {e}")
    if failed:
        raise SystemExit(1)


@tags_group.command('list')
@with_appcontext
def list_tags():
    tags = TagRegistry(db.session).list()
    if not tags:
        click.echo("No RFID tags found.")
        return
    click.echo(f"{'RFID':<16} {'Used'}")
    for tag in tags:
        click.echo(f"{tag.rfid:<16} {'yes' if tag.used else 'no'}")


@click.group('users')
def users_group():
    """User inspection/bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_user_cli(username, email, password):
    try:
        user = create_user(username, email, password)
    except ServiceError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user: {user.username} ({user.email})")


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Active'}")
    for user in users:
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {'yes' if user.is_active else 'no'}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(cameras_group)
    app.cli.add_command(tags_group)
    app.cli.add_command(users_group)
