# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/alfapos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--branch-code TBB --branch-name "Alfa Optik Tebet"]
#   Idempotent bootstrap: creates tables, the default branch and a head office admin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Branches:
# - python -m flask branches list
# - python -m flask branches create --code BDG --name "Alfa Optik Bandung"
#
# Users:
# - python -m flask users list
# - python -m flask users create --username kasir1 --full-name "Kasir Satu" --role "Admin Cabang" --branch-code TBB
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import PosError
from .models import Branch, User, ROLE_HEAD_OFFICE, ROLE_BRANCH_ADMIN, ROLES
from .services.auth_service import create_user, PasswordValidationError
from .services.branch_service import create_branch, list_branches


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--branch-code', default='TBB', help='Default branch code')
@click.option('--branch-name', default='Alfa Optik Tebet', help='Default branch name')
@click.option('--admin-password', default='Password123!', help='Password for the admin account')
@with_appcontext
def init_system(branch_code, branch_name, admin_password):
    """
    Initialize the database with a default branch and head office admin.

    Creates (if missing):
    - All tables
    - Branch branch_code / branch_name
    - User admin (Admin Pusat)

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing alfapos...")

    db.create_all()

    branch = db.session.query(Branch).filter_by(code=branch_code.upper()).first()
    if not branch:
        branch = create_branch(branch_code, branch_name)
        click.echo(f"PASS Created branch: {branch.code} {branch.name} (ID: {branch.id})")
    else:
        click.echo(f"PASS Using existing branch: {branch.code} (ID: {branch.id})")

    if not db.session.query(User).filter_by(username='admin').first():
        create_user(
            username='admin',
            password=admin_password,
            full_name='Administrator',
            role=ROLE_HEAD_OFFICE,
        )
        click.echo("PASS Created user: admin (Admin Pusat)")
    else:
        click.echo("PASS User admin already exists")

    click.echo("DONE")


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


@click.group('branches')
def branches_group():
    """Branch management commands."""


@branches_group.command('list')
@with_appcontext
def list_branches_cli():
    branches = list_branches()
    if not branches:
        click.echo("No branches found.")
        return

    click.echo(f"{'ID':<5} {'Code':<8} {'Name'}")
    for branch in branches:
        click.echo(f"{branch.id:<5} {branch.code:<8} {branch.name}")


@branches_group.command('create')
@click.option('--code', prompt=True, help='Short branch code, e.g. TBB')
@click.option('--name', prompt=True, help='Display name')
@with_appcontext
def create_branch_cli(code, name):
    try:
        branch = create_branch(code, name)
    except PosError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Created branch: {branch.code} {branch.name} (ID: {branch.id})")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@click.option('--branch-code', default=None, help='Branch code (required for Admin Cabang)')
@with_appcontext
def create_user_cli(username, full_name, password, role, branch_code):
    """
    Create a new user interactively.

    Password must be at least 8 characters.
    """
    branch_id = None
    if role == ROLE_BRANCH_ADMIN:
        if not branch_code:
            click.echo("FAIL --branch-code is required for Admin Cabang")
            return
        branch = db.session.query(Branch).filter_by(code=branch_code.upper()).first()
        if not branch:
            click.echo(f"FAIL Branch {branch_code} not found")
            return
        branch_id = branch.id

    try:
        user = create_user(
            username=username,
            password=password,
            full_name=full_name,
            role=role,
            branch_id=branch_id,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e.message}")
        return
    except PosError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        return

    click.echo(f"PASS Created user: {user.username} with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role and branch."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Role':<14} {'Branch':<8} {'Active'}")
    click.echo("="*80)

    for user in users:
        branch_code = user.branch.code if user.branch else "-"
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.role:<14} {branch_code:<8} {active_str}")

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(branches_group)
    app.cli.add_command(users_group)
