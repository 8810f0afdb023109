# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/cajapos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Apply the schema: python -m flask db upgrade
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init --rut 11111111-1 --password "secreto"
#   Idempotent bootstrap: creates the first admin employee if there is none.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Employees:
# - python -m flask employees list
#   List employees with role and active status.
# - python -m flask employees create --first-name Ana --rut 22222222-2 --role cajero --password "secreto"
#   Create an employee (prompts if options are omitted).
#
# Cash drawer:
# - python -m flask cash status
#   Show the active cash session, if any.
# - python -m flask cash close --rut 11111111-1
#   Close the active session on behalf of an employee (e.g. after a crash).

import click
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import db
from .models import Employee
from .models.employees import ROLE_ADMIN, ROLES
from .services import auth_service, cash_session_service
from .time_utils import to_utc_z


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--first-name', default='Administrador', help='First name of the admin')
@click.option('--rut', default='11111111-1', help='RUT of the admin (login id)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
@with_appcontext
def init_system(first_name, rut, password):
    """
    Create the first admin employee.

    Does nothing when an admin already exists.
    """
    click.echo("START Initializing cajapos...")

    existing = db.session.query(Employee).filter_by(role=ROLE_ADMIN).first()
    if existing:
        click.echo(f"PASS Admin already exists: {existing.full_name} (RUT {existing.rut})")
        return

    try:
        admin = auth_service.create_employee(
            first_name=first_name,
            rut=rut,
            role=ROLE_ADMIN,
            password=password,
        )
    except PosError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created admin: {admin.full_name} (RUT {admin.rut}, ID {admin.id})")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('employees')
def employees_group():
    """Employee inspection and bootstrap commands."""


@employees_group.command('create')
@click.option('--first-name', prompt=True, help='First name')
@click.option('--last-name', default='', help='Last name')
@click.option('--rut', prompt=True, help='RUT (login id)')
@click.option('--role', type=click.Choice(ROLES), default='cajero', show_default=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_employee(first_name, last_name, rut, role, password):
    """Create an employee account."""
    try:
        employee = auth_service.create_employee(
            first_name=first_name,
            last_name=last_name,
            rut=rut,
            role=role,
            password=password,
        )
    except PosError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created {employee.role}: {employee.full_name} (RUT {employee.rut}, ID {employee.id})")


@employees_group.command('list')
@with_appcontext
def list_employees():
    """List employees."""
    employees = auth_service.list_employees()
    if not employees:
        click.echo("No employees found. Run 'python -m flask system init'.")
        return

    for e in employees:
        status = "active" if e.is_active else "inactive"
        click.echo(f"{e.id:>4}  {e.rut:<14} {e.role:<8} {status:<9} {e.full_name}")


@click.group('cash')
def cash_group():
    """Cash drawer inspection and repair commands."""


@cash_group.command('status')
@with_appcontext
def cash_status():
    """Show the active cash session."""
    session = cash_session_service.get_active_session()
    if session is None:
        click.echo("No active cash session.")
        return

    click.echo(
        f"Session {session.id}: opened {to_utc_z(session.start_time)} by employee {session.employee_id}, "
        f"start ${session.start_amount}, balance ${session.current_balance}"
    )


@cash_group.command('close')
@click.option('--rut', required=True, help='RUT of the employee the close is attributed to')
@with_appcontext
def cash_close(rut):
    """Close the active cash session."""
    employee = db.session.query(Employee).filter_by(rut=rut).first()
    if employee is None:
        raise click.ClickException(f"No employee with RUT {rut}")

    try:
        session = cash_session_service.close_session(employee)
    except PosError as e:
        raise click.ClickException(e.message)

    if session is None:
        click.echo("No active cash session to close.")
        return
    click.echo(f"PASS Closed session {session.id} with final balance ${session.current_balance}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(employees_group)
    app.cli.add_command(cash_group)
