"""CLI tools for bug tracker administration."""

import click

from bugtracker.core.errors import TrackerError
from bugtracker.db.enums import Role
from bugtracker.db.session import SessionLocal, engine
from bugtracker.services import user_service


@click.group()
def cli():
    """Bug tracker CLI tools."""
    pass


@cli.command()
@click.option("--name", required=True, help="Display name")
@click.option("--email", required=True, help="Login email address")
@click.password_option(help="Initial password")
def create_admin(name: str, email: str, password: str):
    """
    Create an admin account.

    This is the bootstrap command for a fresh deployment; registration over
    the API only ever creates members.

    Example:
        bugtracker-cli create-admin --name "Ada" --email "ada@example.com"
    """
    db = SessionLocal()
    try:
        user = user_service.create_user(db, name, email, password, role=Role.ADMIN)
        click.echo(f"✓ Created admin: {user.email}")
        click.echo(f"  ID: {user.id}")
    except TrackerError as e:
        db.rollback()
        click.echo(f"❌ Error: {e.message}")
        raise SystemExit(1)
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email address")
@click.option(
    "--role",
    required=True,
    type=click.Choice([r.value for r in Role]),
    help="New role",
)
def set_role(email: str, role: str):
    """Change a user's role by email."""
    db = SessionLocal()
    try:
        user = user_service.set_role_by_email(db, email, Role(role))
        click.echo(f"✓ {user.email} is now {user.role}")
    except TrackerError as e:
        db.rollback()
        click.echo(f"❌ Error: {e.message}")
        raise SystemExit(1)
    finally:
        db.close()


@cli.command()
def db_status():
    """Show the applied and pending schema revisions."""
    from bugtracker.core.migrations import get_migration_status

    status = get_migration_status(engine)
    click.echo(f"Current: {', '.join(status.current_heads) or '(none)'}")
    click.echo(f"Head:    {', '.join(status.head_revisions)}")
    if status.pending:
        click.echo(f"Pending: {', '.join(status.pending)}")
        raise SystemExit(1)
    click.echo("✓ Up to date")


@cli.command()
def upgrade_db():
    """Run database migrations up to head."""
    from bugtracker.core.migrations import ensure_migrations

    status = ensure_migrations(engine, auto_migrate=True)
    click.echo(f"✓ Database at revision: {', '.join(status.current_heads) or '(none)'}")


if __name__ == "__main__":
    cli()
