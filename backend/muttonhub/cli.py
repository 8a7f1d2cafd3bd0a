# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/muttonhub/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair (sql gateway):
# - python -m flask system init
#   Create all tables in DATABASE_URL (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap (works against the configured gateway):
# - python -m flask users create --email owner@muttonhub.local --password "secret1" --role owner
#   Create an account and its role assignment (security code not required here).
# - python -m flask users list
#   List role assignments.
# - python -m flask users set-role owner@muttonhub.local admin
#   Change a user's role.
#
# Gateway:
# - python -m flask gateway check
#   Report missing settings and run the connection test.

import click
from flask import current_app
from flask.cli import with_appcontext

from .config import REMEDIATION_CHECKLIST, ConfigurationError, missing_settings
from .extensions import db
from .gateway import AuthError, GatewayError, app_gateway
from .permissions import ROLES
from .services import role_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables used by the sql gateway."""
    if current_app.config.get("GATEWAY") != "sql":
        click.echo("WARN GATEWAY is not 'sql'; tables are created in DATABASE_URL anyway.")
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """User and role inspection commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, password, role):
    """Create an account and assign its role."""
    try:
        gateway = app_gateway()
        identity = gateway.sign_up(email, password)
        role_service.assign_role(identity.id, role, gateway=gateway)
    except (ConfigurationError, AuthError, GatewayError) as e:
        click.echo(f"FAIL Failed to create user: {e}")
        return
    click.echo(f"PASS Created user: {email} with role '{role}' (id {identity.id})")


def _find_user_id(email: str) -> str | None:
    target = email.strip().lower()
    for assignment in role_service.list_assignments():
        if (assignment.email or "").lower() == target:
            return assignment.user_id
    return None


@users_group.command('list')
@with_appcontext
def list_users():
    """List role assignments."""
    try:
        assignments = role_service.list_assignments()
    except (ConfigurationError, GatewayError) as e:
        click.echo(f"FAIL {e}")
        return
    if not assignments:
        click.echo("No users found.")
        return
    for a in assignments:
        click.echo(f"{a.user_id}  {a.email or '-':<32} {a.role}")


@users_group.command('set-role')
@click.argument('email')
@click.argument('role', type=click.Choice(ROLES))
@with_appcontext
def set_role(email, role):
    """Change the role of the user with EMAIL."""
    try:
        user_id = _find_user_id(email)
        if not user_id:
            click.echo(f"FAIL No role assignment found for {email}")
            return
        role_service.change_role(user_id, role)
    except (ConfigurationError, GatewayError, role_service.RoleError) as e:
        click.echo(f"FAIL {e}")
        return
    click.echo(f"PASS {email} is now '{role}'")


@click.group('gateway')
def gateway_group():
    """Gateway configuration checks."""


@gateway_group.command('check')
@with_appcontext
def check_gateway():
    """Report missing settings, then run the connection test."""
    missing = missing_settings(current_app.config)
    if missing:
        click.echo(f"FAIL Missing configuration: {', '.join(missing)}")
        for item in REMEDIATION_CHECKLIST:
            click.echo(f"  - {item}")
        return
    try:
        count = app_gateway().ping()
    except GatewayError as e:
        click.echo(f"FAIL Connection test failed: {e}")
        return
    click.echo(f"PASS Connected via {current_app.config['GATEWAY']} gateway ({count} role assignments)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(gateway_group)
