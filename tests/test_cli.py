"""Tests for the communitrack-admin command line."""

from unittest.mock import AsyncMock, patch

import pytest

from communitrack.cli import admin
from communitrack.services.auth import verify_password
from communitrack.storage import InMemoryStore

CSV_CONTENT = (
    "Datum,Titel,Beschreibung,Kategorie\n"
    "15.03.2024,Anruf,Kurzes Telefonat,gespraech\n"
    "31/02/2024,Ungültig,Falsches Datum,konflikt\n"
)


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "eintraege.csv"
    path.write_text(CSV_CONTENT, encoding="utf-8")
    return path


class TestImportCommand:
    """The import subcommand."""

    @pytest.mark.asyncio
    async def test_dry_run_prints_preview(self, csv_file, capsys):
        with patch.object(admin, "open_store", new=AsyncMock()) as open_store:
            code = await admin.import_file(csv_file, "anna@example.com", dry_run=True)

        assert code == 0
        open_store.assert_not_called()
        out = capsys.readouterr().out
        assert "Valid rows:   1" in out
        assert "Invalid rows: 1" in out
        assert "Row 3: invalid date format (31/02/2024)." in out

    @pytest.mark.asyncio
    async def test_import_commits_for_user(self, csv_file, memory_store, capsys):
        user = await memory_store.create_user(
            {"email": "anna@example.com", "username": "anna", "hashed_password": "hash"}
        )

        with patch.object(admin, "open_store", new=AsyncMock(return_value=memory_store)):
            code = await admin.import_file(csv_file, "anna@example.com")

        assert code == 0
        entries = await memory_store.list_entries(user.id)
        assert [entry.title for entry in entries] == ["Anruf"]
        assert (await memory_store.list_batches(user.id))[0].status.value == "completed"
        assert "Imported:     1" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_import_unknown_user(self, csv_file, memory_store, capsys):
        with patch.object(admin, "open_store", new=AsyncMock(return_value=memory_store)):
            code = await admin.import_file(csv_file, "ghost@example.com")

        assert code == 1
        assert "User 'ghost@example.com' not found" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_import_missing_file(self, tmp_path, capsys):
        code = await admin.import_file(tmp_path / "missing.csv", "anna@example.com")
        assert code == 1
        assert "not found" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_import_unparseable_file(self, tmp_path, capsys):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a workbook")

        code = await admin.import_file(path, "anna@example.com")
        assert code == 1
        assert "Error processing file." in capsys.readouterr().out


class TestUserCommands:
    """The add-user and list-users subcommands."""

    @pytest.mark.asyncio
    async def test_add_user(self, memory_store, capsys):
        with patch.object(admin, "open_store", new=AsyncMock(return_value=memory_store)):
            code = await admin.add_user(
                "anna", "anna@example.com", "supersecret", language="en", is_superuser=True
            )

        assert code == 0
        user = await memory_store.get_user_by_email("anna@example.com")
        assert user.language == "en"
        assert user.is_superuser is True
        assert verify_password("supersecret", user.hashed_password)
        assert "created successfully as admin" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_add_duplicate_user(self, memory_store, capsys):
        with patch.object(admin, "open_store", new=AsyncMock(return_value=memory_store)):
            await admin.add_user("anna", "anna@example.com", "supersecret")
            code = await admin.add_user("anna", "other@example.com", "supersecret")

        assert code == 1
        assert "already in use" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_list_users(self, memory_store, capsys):
        await memory_store.create_user(
            {"email": "anna@example.com", "username": "anna", "hashed_password": "hash"}
        )
        with patch.object(admin, "open_store", new=AsyncMock(return_value=memory_store)):
            code = await admin.list_users()

        assert code == 0
        out = capsys.readouterr().out
        assert "anna@example.com" in out
        assert "Never" in out

    @pytest.mark.asyncio
    async def test_list_users_empty(self, memory_store, capsys):
        with patch.object(admin, "open_store", new=AsyncMock(return_value=memory_store)):
            await admin.list_users()
        assert "No users found." in capsys.readouterr().out


class TestMain:
    """Argument parsing and dispatch."""

    def test_no_command_prints_help(self, capsys):
        assert admin.main([]) == 1
        assert "communitrack-admin" in capsys.readouterr().out

    def test_import_dry_run_via_main(self, csv_file, capsys):
        assert admin.main(["import", str(csv_file), "--email", "anna@example.com", "--dry-run"]) == 0
        assert "Valid rows:   1" in capsys.readouterr().out

    def test_import_requires_email(self, csv_file):
        with pytest.raises(SystemExit):
            admin.main(["import", str(csv_file)])

    def test_serve_dispatch(self):
        with patch.object(admin, "serve", return_value=0) as serve:
            assert admin.main(["serve", "--port", "9001"]) == 0
        serve.assert_called_once_with(None, 9001, False)
