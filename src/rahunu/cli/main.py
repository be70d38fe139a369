import asyncio
import datetime
import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional

import typer
from fastapi import HTTPException
from pydantic import ValidationError
from tortoise import Tortoise

from rahunu.features.auth import service as auth_service
from rahunu.features.auth.models import Role, User
from rahunu.features.auth.schemas import UserCreate, UserUpdate
from rahunu.features.entries.models import Borrower, EntryStatus, RegistryEntry
from rahunu.features.reports.schemas import ReportFilters, ReportFormat, ReportRequest, ReportType
from rahunu.features.reports.service import build_report_file
from rahunu.main import TORTOISE_ORM_CONFIG

logger = logging.getLogger(__name__)

app = typer.Typer(name="rahunu-cli", help="CLI for managing Rahunu registry data.")


# Shared async context manager for database connection
class DBConnection:
    async def __aenter__(self):
        await Tortoise.init(config=TORTOISE_ORM_CONFIG)
        await Tortoise.generate_schemas(safe=True) # Generate schema if it doesn't exist
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await Tortoise.close_connections()


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


# User management commands
user_app = typer.Typer(name="users", help="Manage user accounts.")
app.add_typer(user_app)

@user_app.command("create-admin")
def create_admin_user_command(
    username: str = typer.Option(..., prompt=True, help="Username for the new admin."),
    email: str = typer.Option(..., prompt=True, help="Email for the new admin."),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password for the new admin.")
):
    """Creates a new admin user."""
    try:
        user_in = UserCreate(username=username, email=email, password=password, role=Role.ADMIN)
    except ValidationError as e:
        _fail(f"Invalid account details: {e}")
    asyncio.run(_create_admin_user(user_in))

async def _create_admin_user(user_in: UserCreate):
    async with DBConnection():
        try:
            user = await auth_service.create_user(user_in)
        except HTTPException as e:
            _fail(f"Error: {e.detail}")
        typer.secho(f"Admin user '{user.username}' created with ID: {user.public_id}", fg=typer.colors.GREEN)


async def _update_user(username: str, changes: UserUpdate) -> User:
    async with DBConnection():
        try:
            user = await auth_service.get_user_by_username_or_404(username)
            return await auth_service.update_user(user, changes)
        except HTTPException as e:
            _fail(f"Error: {e.detail} ({username})")

@user_app.command("set-role")
def set_user_role_command(
    username: str = typer.Argument(..., help="The username of the user to change."),
    role: Role = typer.Argument(..., help="The new role."),
):
    """Changes the role of an existing user."""
    user = asyncio.run(_update_user(username, UserUpdate(role=role)))
    typer.secho(f"User '{user.username}' now has role {user.role.value}.", fg=typer.colors.GREEN)

@user_app.command("disable-user")
def disable_user_account_command(
    username: str = typer.Argument(..., help="The username of the user to disable.")
):
    """Disables an existing user's account."""
    asyncio.run(_update_user(username, UserUpdate(is_active=False)))
    typer.secho(f"User account '{username}' is disabled.", fg=typer.colors.GREEN)

@user_app.command("enable-user")
def enable_user_account_command(
    username: str = typer.Argument(..., help="The username of the user to enable.")
):
    """Enables an existing user's account."""
    asyncio.run(_update_user(username, UserUpdate(is_active=True)))
    typer.secho(f"User account '{username}' is enabled.", fg=typer.colors.GREEN)

@user_app.command("reset-password")
def reset_password_command(
    username: str = typer.Argument(..., help="The username whose password is reset."),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="The new password."),
):
    """Sets a new password for an existing user."""
    try:
        changes = UserUpdate(reset_password=password)
    except ValidationError:
        _fail("Password must be at least 8 characters long.")
    asyncio.run(_update_user(username, changes))
    typer.secho(f"Password for '{username}' has been reset.", fg=typer.colors.GREEN)


# Registry entries
entry_app = typer.Typer(name="entries", help="Manage registry entries.")
app.add_typer(entry_app)

@entry_app.command("seed")
def seed_entries_command():
    """Creates the sample registry entry used in demos, if it is missing."""
    asyncio.run(_seed_entries())

async def _seed_entries():
    async with DBConnection():
        if await RegistryEntry.filter(number=1).exists():
            typer.secho("Entry #1 already exists, nothing to seed.", fg=typer.colors.YELLOW)
            raise typer.Exit(code=0)
        entry = await RegistryEntry.create(
            number=1,
            address="Sunset Villa (reg 2477)",
            island="S.Hithadhoo",
            form_number="41/2025",
            agreement_date=datetime.date(2025, 6, 1),
            branch="BML Hithadhoo Branch",
            agreement_number="S2C-B/2025/31",
            status=EntryStatus.ONGOING,
            loan_amount=Decimal("700000.00"),
        )
        await Borrower.create(entry=entry, full_name="Mariyam Mahaa Abdul Samad", national_id="A354960")
        typer.secho(f"Seeded {entry}", fg=typer.colors.GREEN)


# Reports
report_app = typer.Typer(name="reports", help="Generate registry reports.")
app.add_typer(report_app)

@report_app.command("export")
def export_report_command(
    report_type: ReportType = typer.Option(ReportType.SUMMARY, "--type", help="Report to generate."),
    report_format: ReportFormat = typer.Option(ReportFormat.CSV, "--format", help="Output format."),
    status: Optional[str] = typer.Option(None, help="ONGOING, CANCELLED or COMPLETED."),
    island: Optional[str] = typer.Option(None),
    branch: Optional[str] = typer.Option(None),
    start_date: Optional[str] = typer.Option(None, help="YYYY-MM-DD, inclusive."),
    end_date: Optional[str] = typer.Option(None, help="YYYY-MM-DD, inclusive."),
    min_amount: Optional[str] = typer.Option(None),
    max_amount: Optional[str] = typer.Option(None),
    output: Path = typer.Option(Path("."), help="Directory to write the report into."),
):
    """Writes a report file, named the same way as the API download."""
    request = ReportRequest(
        report_type=report_type,
        format=report_format,
        filters=ReportFilters(
            status=status, island=island, branch=branch,
            start_date=start_date, end_date=end_date,
            min_amount=min_amount, max_amount=max_amount,
        ),
    )
    path = asyncio.run(_export_report(request, output))
    typer.secho(f"Report written to {path}", fg=typer.colors.GREEN)

async def _export_report(request: ReportRequest, output: Path) -> Path:
    async with DBConnection():
        report = await build_report_file(request)
    output.mkdir(parents=True, exist_ok=True)
    path = output / report.filename
    path.write_bytes(report.body)
    logger.info(f"Report {report.filename} written ({len(report.body)} bytes)")
    return path


if __name__ == "__main__":
    app()
