# Overview: Flask CLI command groups for bootstrap and account maintenance.

# backend/pdv/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Platform accounts:
# - python -m flask users create-admin --email admin@pdv.local --password "secret" [--role super_admin]
#   Create a platform-level administrator, or reset its password and role if it exists.
# - python -m flask users reset-password --email someone@shop.com --password "new-secret"
#   Replace a user's password.
# - python -m flask users list
#   List all users with role and tenant.
#
# Plan catalog:
# - python -m flask plans create --name Basic --price 4990 --max-users 3 [--features "POS,Reports"]
#   Add a subscription plan (price in cents).
# - python -m flask plans list

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Plan, ROLES, ROLE_SUPER_ADMIN
from .services.user_service import upsert_admin, reset_password
from .services.plan_service import insert_plan
from .validation import ValidationError, ConflictError, NotFoundError, MAX_PRICE_CENTS, MAX_COLUMN_INT


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables for all models."""
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

    click.echo("PASS Database reset complete. Run 'python -m flask users create-admin' to bootstrap.")


# =============================================================================
# USER COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """Platform account commands."""


@users_group.command('create-admin')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ROLES), default=ROLE_SUPER_ADMIN, show_default=True)
@with_appcontext
def create_admin(email, password, role):
    """Create or reset a platform-level administrator (no tenant)."""
    try:
        user, created = upsert_admin(email, password, role=role)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))

    verb = "Created" if created else "Updated"
    click.echo(f"PASS {verb} {user.role} {user.email} (ID: {user.id})")


@users_group.command('reset-password')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def reset_user_password(email, password):
    """Replace the password of an existing user."""
    try:
        user = reset_password(email, password)
    except (ValidationError, NotFoundError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Password reset for {user.email}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.email).all()
    if not users:
        click.echo("No users found.")
        return
    for user in users:
        click.echo(f"{user.id}  {user.email:<40} {user.role:<12} tenant={user.tenant_id or '-'}")


# =============================================================================
# PLAN COMMANDS
# =============================================================================

@click.group('plans')
def plans_group():
    """Subscription plan catalog commands."""


@plans_group.command('create')
@click.option('--name', required=True)
@click.option('--price', type=click.IntRange(min=0, max=MAX_PRICE_CENTS), required=True, help='Price in cents')
@click.option('--max-users', type=click.IntRange(min=1, max=MAX_COLUMN_INT), required=True)
@click.option('--features', default=None)
@with_appcontext
def create_plan(name, price, max_users, features):
    """Add a plan to the catalog."""
    plan = insert_plan(name=name, price=price, max_users=max_users, features=features)
    click.echo(f"PASS Created plan {plan.name} (ID: {plan.id})")


@plans_group.command('list')
@with_appcontext
def list_plans():
    """List catalog plans."""
    for plan in db.session.query(Plan).order_by(Plan.price).all():
        click.echo(f"{plan.id}  {plan.name:<20} price={plan.price} max_users={plan.max_users}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(plans_group)
