#!/usr/bin/env python3
"""
Management script for the investment platform.

Usage (direct DB access):
    python manage.py db init
    python manage.py db clear
    python manage.py db status
    python manage.py users list
    python manage.py users create-admin USERNAME EMAIL [--password ...]
    python manage.py users promote USERNAME
    python manage.py users activate USERNAME

Usage (via API):
    python manage.py api health [--base-url http://localhost:8000]
"""

import asyncio

import click
import httpx
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from invest_api.database import AsyncSessionLocal, Base, engine
from invest_api.models import Notification, Trade, Transaction, User
from invest_api.services import admin as admin_service


DEFAULT_BASE_URL = "http://localhost:8000"


# ============================================================================
# Direct database operations (internal)
# ============================================================================


async def _init_db():
    """Initialize the database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _clear_db():
    """Drop and recreate all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _count_records():
    """Count records in each table."""
    async with AsyncSessionLocal() as session:
        counts = {}
        for model, name in [
            (User, "users"),
            (Notification, "notifications"),
            (Trade, "trades"),
            (Transaction, "transactions"),
        ]:
            counts[name] = await session.scalar(select(func.count()).select_from(model))
        return counts


async def _list_users():
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())


async def _create_admin(username: str, email: str, password: str):
    async with AsyncSessionLocal() as session:
        return await admin_service.create_admin(session, username, email, password)


async def _set_flag(username: str, **flags):
    """Set boolean flags on a user. Returns False if the user does not exist."""
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None:
            return False
        for name, value in flags.items():
            setattr(user, name, value)
        if flags.get("is_activated"):
            user.activation_key = None
        await session.commit()
        return True


# ============================================================================
# CLI: Main group
# ============================================================================


@click.group()
def cli():
    """Investment platform management commands."""
    pass


# ============================================================================
# CLI: db (direct database access)
# ============================================================================


@cli.group()
def db():
    """Direct database management (bypasses API)."""
    pass


@db.command("init")
def db_init():
    """Create any missing tables."""
    asyncio.run(_init_db())
    click.echo("Database initialized.")


@db.command("clear")
@click.confirmation_option(prompt="Are you sure you want to clear all data?")
def db_clear():
    """Clear all data from the database (destructive!)."""
    click.echo("Clearing database...")
    asyncio.run(_clear_db())
    click.echo("Database cleared and tables recreated.")


@db.command("status")
def db_status():
    """Show database status and record counts."""

    async def run():
        await _init_db()
        return await _count_records()

    counts = asyncio.run(run())

    click.echo("\nDatabase Status:")
    click.echo("-" * 30)
    for table, count in counts.items():
        click.echo(f"  {table:<15} {count:>10,}")
    click.echo("-" * 30)
    click.echo(f"  {'Total':<15} {sum(counts.values()):>10,}")


# ============================================================================
# CLI: users (direct database access)
# ============================================================================


@cli.group()
def users():
    """Manage user accounts directly in the database."""
    pass


@users.command("list")
def users_list():
    """Show all users."""

    async def run():
        await _init_db()
        return await _list_users()

    users_list = asyncio.run(run())

    if not users_list:
        click.echo("No users found.")
        return

    click.echo(f"\n{'Username':<20} {'Email':<32} {'Active':<7} {'Admin':<6} {'Balance':>14}")
    click.echo("-" * 83)
    for u in users_list:
        click.echo(
            f"{u.username:<20} {u.email:<32} {'yes' if u.is_activated else 'no':<7} "
            f"{'yes' if u.is_admin else 'no':<6} {u.balance:>14}"
        )
    click.echo(f"\nTotal: {len(users_list)} users")


@users.command("create-admin")
@click.argument("username")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
def users_create_admin(username, email, password):
    """Create an activated admin account."""

    async def run():
        await _init_db()
        return await _create_admin(username, email, password)

    try:
        user = asyncio.run(run())
    except IntegrityError:
        raise click.ClickException(f"Username '{username}' or email '{email}' is taken")
    click.echo(f"Admin {user.username} created (id {user.id}).")


@users.command("promote")
@click.argument("username")
def users_promote(username):
    """Grant admin rights to an existing user."""
    if not asyncio.run(_set_flag(username, is_admin=True)):
        raise click.ClickException(f"User '{username}' not found")
    click.echo(f"{username} is now an admin.")


@users.command("activate")
@click.argument("username")
def users_activate(username):
    """Activate a user without an activation key."""
    if not asyncio.run(_set_flag(username, is_activated=True)):
        raise click.ClickException(f"User '{username}' not found")
    click.echo(f"{username} activated.")


# ============================================================================
# CLI: api (via a running server)
# ============================================================================


@cli.group()
def api():
    """Commands against a running API server."""
    pass


@api.command("health")
@click.option(
    "--base-url", "-u",
    default=DEFAULT_BASE_URL,
    help=f"API base URL (default: {DEFAULT_BASE_URL})",
)
def api_health(base_url):
    """Check that the API is up and show its version."""
    try:
        with httpx.Client(base_url=base_url, timeout=10) as client:
            health = client.get("/health")
            health.raise_for_status()
            version = client.get("/api/version").json()
    except httpx.ConnectError:
        click.echo(f"\nError: Could not connect to {base_url}", err=True)
        click.echo("Is the server running? Start it with: uvicorn invest_api.main:app", err=True)
        raise SystemExit(1)

    click.echo(f"{health.json()['status']} - version {version['version']}")


if __name__ == "__main__":
    cli()
