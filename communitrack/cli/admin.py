"""Administration script for CommuniTrack.

Commands:
    import      Import entries from a CSV, XLSX or XLS file for a user
    add-user    Add a new user
    list-users  List all users
    serve       Run the API server
"""

import argparse
import asyncio
import logging
import sys
from getpass import getpass
from pathlib import Path

from communitrack.config import settings
from communitrack.services.auth import get_password_hash
from communitrack.services.import_service import build_preview, commit_preview, store_preview
from communitrack.storage import DuplicateUserError, EntryStore, create_store


async def open_store() -> EntryStore:
    """Create and connect the configured store."""
    store = create_store(settings)
    await store.connect()
    return store


async def import_file(path: Path, email: str, dry_run: bool = False) -> int:
    """Preview and (unless dry_run) commit a file for the given user."""
    if not path.is_file():
        print(f"Error: File '{path}' not found.")
        return 1

    preview = build_preview(
        path.name,
        path.read_bytes(),
        max_rows=settings.imports.max_rows,
        flag_ambiguous_dates=settings.imports.flag_ambiguous_dates,
    )

    print(f"File:         {path.name}")
    print(f"Valid rows:   {preview.valid_rows}")
    print(f"Invalid rows: {preview.invalid_rows}")
    for error in preview.errors:
        print(f"  {error}")
    for warning in preview.ambiguous_dates:
        print(f"  Warning: {warning}")

    if dry_run or preview.file_error or not preview.valid_rows:
        return 1 if preview.file_error else 0

    store = await open_store()
    try:
        if store.name == "memory":
            print("Warning: no MongoDB configured; imported entries will not be kept.")

        user = await store.get_user_by_email(email)
        if user is None:
            print(f"Error: User '{email}' not found.")
            return 1

        batch = await store_preview(store, user.id, path.name, preview)
        result = await commit_preview(store, batch, user.id)
    finally:
        await store.close()

    print(f"Imported:     {result.success}")
    print(f"Failed:       {result.failed}")
    for error in result.errors:
        print(f"  {error}")
    return 0 if result.failed == 0 else 1


async def add_user(
    username: str,
    email: str,
    password: str,
    full_name: str | None = None,
    language: str = "de",
    is_superuser: bool = False,
) -> int:
    """Add a new user."""
    store = await open_store()
    try:
        await store.create_user(
            {
                "email": email,
                "username": username,
                "hashed_password": get_password_hash(password),
                "full_name": full_name,
                "language": language,
                "is_superuser": is_superuser,
            }
        )
    except DuplicateUserError:
        print(f"Error: Username '{username}' or email '{email}' already in use.")
        return 1
    finally:
        await store.close()

    role = "admin" if is_superuser else "user"
    print(f"User '{username}' created successfully as {role}.")
    return 0


async def list_users() -> int:
    """List all users."""
    store = await open_store()
    try:
        users = await store.list_users()
    finally:
        await store.close()

    if not users:
        print("No users found.")
        return 0

    print(f"{'Username':<20} {'Email':<30} {'Lang':<5} {'Active':<6} {'Last Login':<20}")
    print("-" * 85)
    for user in users:
        last_login = user.last_login.strftime("%Y-%m-%d %H:%M") if user.last_login else "Never"
        active = "Yes" if user.is_active else "No"
        print(f"{user.username:<20} {user.email:<30} {user.language:<5} {active:<6} {last_login:<20}")
    return 0


def serve(host: str | None = None, port: int | None = None, reload: bool = False) -> int:
    """Run the API server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "communitrack.main:app",
        host=host or settings.server.host,
        port=port or settings.server.port,
        reload=reload,
    )
    return 0


def get_password_interactive(confirm: bool = True) -> str:
    """Get password interactively from user."""
    password = getpass("Password: ")
    if not password:
        print("Error: Password cannot be empty.")
        sys.exit(1)

    if confirm:
        password2 = getpass("Confirm password: ")
        if password != password2:
            print("Error: Passwords do not match.")
            sys.exit(1)

    return password


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="communitrack-admin",
        description="Administration for CommuniTrack",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    import_parser = subparsers.add_parser("import", help="Import entries from a spreadsheet")
    import_parser.add_argument("file", type=Path, help="CSV, XLSX or XLS file")
    import_parser.add_argument("--email", "-e", required=True, help="Owner of the imported entries")
    import_parser.add_argument("--dry-run", action="store_true", help="Only show the preview")

    add_parser = subparsers.add_parser("add-user", help="Add a new user")
    add_parser.add_argument("username", help="Username for the new user")
    add_parser.add_argument("--email", "-e", required=True, help="Email address")
    add_parser.add_argument("--full-name", help="Full name")
    add_parser.add_argument("--language", choices=["de", "en"], default="de", help="Preferred language")
    add_parser.add_argument("--admin", "-a", action="store_true", help="Make user an admin")
    add_parser.add_argument("--password", "-p", help="Password (will prompt if not provided)")

    subparsers.add_parser("list-users", help="List all users")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "import":
            return asyncio.run(import_file(args.file, args.email, args.dry_run))

        if args.command == "add-user":
            password = args.password if args.password else get_password_interactive()
            return asyncio.run(
                add_user(
                    args.username,
                    args.email,
                    password,
                    full_name=args.full_name,
                    language=args.language,
                    is_superuser=args.admin,
                )
            )

        if args.command == "list-users":
            return asyncio.run(list_users())

        if args.command == "serve":
            return serve(args.host, args.port, args.reload)

    except KeyboardInterrupt:
        print("\nAborted.")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
