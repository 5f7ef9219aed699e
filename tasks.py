"""Invoke tasks for CommuniTrack development."""

from invoke import task
from invoke.context import Context


@task
def start(ctx: Context, host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> None:
    """Start the CommuniTrack API server in the foreground.

    Args:
        ctx: Invoke context
        host: Host to bind to
        port: Port to bind to
        reload: Enable auto-reload for development
    """
    cmd = f"uv run communitrack-admin serve --host {host} --port {port}"
    if reload:
        cmd += " --reload"

    try:
        ctx.run(cmd, pty=True)
    except KeyboardInterrupt:
        print("\nServer stopped")


@task
def test(ctx: Context, verbose: bool = False, coverage: bool = False) -> None:
    """Run the test suite.

    Args:
        ctx: Invoke context
        verbose: Verbose pytest output
        coverage: Collect coverage for the communitrack package
    """
    cmd = "uv run python -m pytest"
    if verbose:
        cmd += " -v"
    if coverage:
        cmd += " --cov=communitrack --cov-report=term-missing"
    ctx.run(cmd, pty=True)


@task(name="import")
def import_file(ctx: Context, file: str, email: str, dry_run: bool = False) -> None:
    """Import a CSV/XLSX/XLS file for a user.

    Args:
        ctx: Invoke context
        file: Path to the spreadsheet
        email: Email of the user who owns the entries
        dry_run: Only show the preview
    """
    cmd = f'uv run communitrack-admin import "{file}" --email {email}'
    if dry_run:
        cmd += " --dry-run"
    ctx.run(cmd, pty=True)


@task(name="add-user")
def add_user(ctx: Context, username: str, email: str, admin: bool = False) -> None:
    """Add a user (prompts for the password)."""
    cmd = f"uv run communitrack-admin add-user {username} --email {email}"
    if admin:
        cmd += " --admin"
    ctx.run(cmd, pty=True)


@task
def clean(ctx: Context) -> None:
    """Remove caches and build artifacts."""
    ctx.run("rm -rf build dist *.egg-info .pytest_cache .coverage htmlcov", warn=True)
    ctx.run("find . -type d -name __pycache__ -prune -exec rm -rf {} +", warn=True)
