"""Command line interface for the ledger service."""

from __future__ import annotations

from typing import NoReturn, Optional

import typer
import uvicorn
from pydantic import ValidationError as SchemaError
from sqlalchemy.orm import Session

from . import crud, ledger, movements, resources, schemas
from .amounts import to_amount
from .config import Settings, get_settings
from .constants import MovementType, ResourceStatus, Role
from .database import SessionLocal, init_database
from .errors import LedgerError
from .logging_config import configure_logging
from .models import User

app = typer.Typer(help="Run and operate the strategic resource ledger.")


def _print_header(title: str) -> None:
    typer.secho(title, bold=True, fg=typer.colors.CYAN)


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _resolve_settings() -> Settings:
    settings = get_settings()
    configure_logging(settings.log_level)
    init_database(settings)
    return settings


def _actor(session: Session, username: str) -> User:
    user = crud.get_user_by_username(session, username)
    if not user or not user.is_active:
        _fail(f"No active user named {username}")
    return user


@app.command()
def run(
    host: Optional[str] = typer.Option(None, help="Hostname to bind"),
    port: Optional[int] = typer.Option(None, help="Port to expose"),
    reload: Optional[bool] = typer.Option(None, help="Enable auto-reload"),
    log_level: Optional[str] = typer.Option(None, help="Uvicorn log level"),
) -> None:
    """Start the FastAPI service using Uvicorn."""

    settings = _resolve_settings()

    uvicorn.run(
        "resource_ledger.app:create_app",
        host=host or settings.host,
        port=port or settings.port,
        reload=settings.reload if reload is None else reload,
        log_level=log_level or settings.log_level,
        factory=True,
    )


@app.command()
def init_db() -> None:
    """Create the database and tables."""

    settings = _resolve_settings()
    typer.echo(f"Database initialised at {settings.sqlalchemy_url}")


@app.command()
def create_user(
    username: str = typer.Argument(..., help="Unique login name"),
    role: Role = typer.Option(Role.EMPLOYEE, help="Role granted to the user"),
    password: Optional[str] = typer.Option(
        None,
        "--password",
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        help="Password for the new user",
    ),
    email: Optional[str] = typer.Option(None, help="Contact email"),
    full_name: Optional[str] = typer.Option(None, help="Display name"),
) -> None:
    """Create a user that can sign in to the API."""

    _resolve_settings()
    with SessionLocal() as session:
        if crud.get_user_by_username(session, username):
            _fail("User already exists")
        if password is None:
            _fail("Password is required")
        try:
            user = crud.create_user(
                session,
                schemas.UserCreate(
                    username=username,
                    password=password,
                    email=email,
                    full_name=full_name,
                    role=role,
                ),
            )
        except SchemaError as exc:
            _fail("; ".join(f"{'.'.join(map(str, error['loc']))}: {error['msg']}" for error in exc.errors()))
        except LedgerError as exc:
            _fail(exc.message)
        typer.secho(f"Created {user.role.value} {user.username} (id={user.id})", fg=typer.colors.GREEN)


@app.command("list-users")
def list_users_cmd() -> None:
    """Display users stored in the database."""

    _resolve_settings()
    with SessionLocal() as session:
        users = crud.list_users(session, limit=500)
        if not users:
            typer.echo("No users found.")
            return
        _print_header("Existing users")
        for user in users:
            typer.echo(f"- #{user.id} {user.username} | role={user.role.value} | active={user.is_active}")


@app.command("create-department")
def create_department_cmd(
    name: str = typer.Argument(..., help="Department name"),
    actor: str = typer.Option(..., "--as", help="Username performing the action"),
) -> None:
    """Create a department resources can be scoped to."""

    _resolve_settings()
    with SessionLocal() as session:
        try:
            department = crud.create_department(session, name, _actor(session, actor))
        except LedgerError as exc:
            _fail(exc.message)
        typer.secho(f"Created department {department.name} (id={department.id})", fg=typer.colors.GREEN)


@app.command("create-resource")
def create_resource_cmd(
    name: str = typer.Argument(..., help="Resource name"),
    initial_balance: str = typer.Option("0", "--initial-balance", help="Starting balance"),
    actor: str = typer.Option(..., "--as", help="Username performing the action"),
    department_id: Optional[int] = typer.Option(None, "--department", help="Owning department id"),
    description: Optional[str] = typer.Option(None, help="Free text description"),
    status: ResourceStatus = typer.Option(ResourceStatus.ACTIVE, help="Initial status"),
) -> None:
    """Create a strategic resource."""

    _resolve_settings()
    with SessionLocal() as session:
        try:
            resource = resources.create_resource(
                session,
                schemas.ResourceCreate(
                    name=name,
                    description=description,
                    department_id=department_id,
                    initial_balance=to_amount(initial_balance, field="initialBalance"),
                    status=status,
                ),
                _actor(session, actor),
            )
        except LedgerError as exc:
            _fail(exc.message)
        typer.secho(
            f"Created resource {resource.slug} (id={resource.id}) balance={resource.current_balance}",
            fg=typer.colors.GREEN,
        )


@app.command("list-resources")
def list_resources_cmd(
    status: Optional[ResourceStatus] = typer.Option(None, help="Only show this status"),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Filter by name, slug or department"),
) -> None:
    """Display resources with their balances."""

    _resolve_settings()
    with SessionLocal() as session:
        items = resources.list_resources(session, status=status, search=search)
        if not items:
            typer.echo("No resources found.")
            return
        counts = resources.movement_counts(session, (item.id for item in items))
        _print_header("Resources")
        for item in items:
            department = item.department.name if item.department else "general"
            typer.echo(
                f"- #{item.id} {item.slug} | {department} | {item.status.value} | "
                f"initial={item.initial_balance} current={item.current_balance} | movements={counts[item.id]}"
            )


@app.command("record-movement")
def record_movement_cmd(
    resource_id: int = typer.Argument(..., help="Resource id"),
    movement_type: MovementType = typer.Argument(..., help="ENTRY, EXIT or ADJUSTMENT"),
    quantity: str = typer.Argument(..., help="Quantity; adjustments may be negative"),
    actor: str = typer.Option(..., "--as", help="Username performing the action"),
    notes: Optional[str] = typer.Option(None, help="Free text notes"),
    period: Optional[str] = typer.Option(None, help="Reference period label, e.g. 2025-01"),
) -> None:
    """Record a movement and print the resulting balance."""

    settings = _resolve_settings()
    with SessionLocal() as session:
        try:
            receipt = ledger.record_movement(
                session,
                _actor(session, actor),
                resource_id=resource_id,
                movement_type=movement_type,
                quantity=quantity,
                notes=notes,
                reference_period=period,
                settings=settings,
            )
        except LedgerError as exc:
            _fail(exc.message)
        typer.secho(
            f"Recorded movement #{receipt.movement.id}; {receipt.resource.slug} balance is now "
            f"{receipt.resource.current_balance}",
            fg=typer.colors.GREEN,
        )


@app.command()
def history(
    resource_id: int = typer.Argument(..., help="Resource id"),
    page: int = typer.Option(1, min=1, help="Page number"),
    page_size: int = typer.Option(8, min=1, help="Movements per page"),
) -> None:
    """Show a page of movements, newest first, followed by the balance series."""

    _resolve_settings()
    with SessionLocal() as session:
        try:
            items = movements.list_movements(session, resource_id, page=page, page_size=page_size)
            series = ledger.reconstruct_balance_series(session, resource_id)
        except LedgerError as exc:
            _fail(exc.message)
        _print_header(f"Movements (page {page})")
        for item in items:
            typer.echo(
                f"- #{item.id} {item.created_at:%Y-%m-%d %H:%M} {item.movement_type.value} "
                f"{item.quantity} by {item.performed_by.username}"
            )
        _print_header("Balance series")
        for point in series:
            typer.echo(f"- {point.label}: {point.balance}")


@app.command()
def verify(
    resource_id: Optional[int] = typer.Argument(None, help="Resource id; all resources when omitted"),
) -> None:
    """Check stored balances against their movement history."""

    _resolve_settings()
    with SessionLocal() as session:
        if resource_id is None:
            ids = [item.id for item in resources.list_resources(session)]
        else:
            ids = [resource_id]
        broken = 0
        for current_id in ids:
            try:
                report = ledger.verify_integrity(session, current_id)
            except LedgerError as exc:
                _fail(exc.message)
            if report.consistent:
                typer.echo(f"- #{current_id} ok ({report.current_balance}, {report.movement_count} movements)")
            else:
                broken += 1
                typer.secho(
                    f"- #{current_id} MISMATCH stored={report.current_balance} replayed={report.expected_balance}",
                    fg=typer.colors.RED,
                )
        if broken:
            raise typer.Exit(code=2)


@app.command()
def show_paths() -> None:
    """Print out important filesystem paths."""

    settings = _resolve_settings()
    typer.echo(f"Database: {settings.sqlalchemy_url}")
    typer.echo(f"Data directory: {settings.database_path.parent}")


def main() -> None:
    """Entry-point for console scripts."""

    app()


if __name__ == "__main__":  # pragma: no cover
    main()
